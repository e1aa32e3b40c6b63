from .builder import RequestBuilder
from .engine import describe_error, perform
from .errors import ConfigurationError, ErrorKind, FileIOError, HttpError, RequestError, TransportError
from .model import Method, RequestDescriptor, Response, Timing
