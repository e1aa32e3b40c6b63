from abc import ABC, abstractmethod
import logging
from typing import List, Tuple

from .model import RequestDescriptor, Response
from .util import write_atomically


logger = logging.getLogger(__name__)


def build_header_list(descriptor: RequestDescriptor) -> List[str]:
    """
    Explicit headers in order, then the bearer token. An `Authorization` header
    given by the caller is kept alongside the bearer one.
    """
    lines = list(descriptor.headers)
    if descriptor.bearer_token is not None:
        lines.append('Authorization: Bearer {}'.format(descriptor.bearer_token))
    return lines


class Backend(ABC):
    """
    An abstraction of an HTTP transport.

    A backend has a narrow scope: turn one `RequestDescriptor` into one
    `Response`. It follows redirects internally, applies resolved (not raw)
    credentials and proxy settings, and never retries. Anything a backend
    cannot honour must either be reported as a `RequestError` or, for the
    documented capability gaps, logged as a warning.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        A short identifier for the backend, e.g. "curl".
        """

    @property
    @abstractmethod
    def version(self) -> str:
        """
        The version of the underlying HTTP library.
        """

    def identify(self) -> Tuple[str, str]:
        return self.name, self.version

    @abstractmethod
    def execute(self, descriptor: RequestDescriptor) -> Response:
        """
        Perform the transaction described by `descriptor`.

        If `descriptor.output_path` is set, the body is written there only
        after the transfer succeeded, and the returned response has an empty
        body.

        @param descriptor
          The request to perform.
        @return
          The final response after following redirects.
        @raise RequestError
          Any failure, classified.
        """

    def _finish(self, descriptor: RequestDescriptor, response: Response) -> Response:
        if descriptor.output_path is None:
            return response
        logger.info('Writing {} bytes of body to {}'.format(len(response.body), descriptor.output_path))
        write_atomically(descriptor.output_path, response.body)
        response.body = b''
        return response
