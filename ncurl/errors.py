"""
The closed set of failures a backend may surface to its caller.

Every failure leaving a backend is one of the `RequestError` subclasses below.
Only transport failures carry a remediation hint; see `ncurl.classifier` for how
the hint is chosen.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    TRANSPORT = 'transport'
    IO = 'io'
    CONFIGURATION = 'config'
    HTTP = 'http'


class RequestError(Exception):
    """
    Base class for classified failures.

    `str()` of an error is the display message prefixed by its kind, e.g.
    "config error: bad url".
    """

    kind = None  # type: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.__message = message

    @property
    def message(self) -> str:
        return self.__message

    @property
    def hint(self) -> Optional[str]:
        return None

    def __str__(self) -> str:
        return '{} error: {}'.format(self.kind.value, self.__message)


class TransportError(RequestError):
    """
    A network, TLS or protocol level failure reported by the transport.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, hint: Optional[str] = None, category=None) -> None:
        super().__init__(message)
        self.__hint = hint
        self.__category = category

    @property
    def hint(self) -> Optional[str]:
        return self.__hint

    @property
    def category(self):
        """
        The `ncurl.classifier.FailureCategory` the failure was sorted into, if any.
        """
        return self.__category


class FileIOError(RequestError):
    """
    A local filesystem failure, e.g. writing the output file.

    The originating `OSError` is chained as `__cause__` by whoever raises this.
    """

    kind = ErrorKind.IO


class ConfigurationError(RequestError):
    kind = ErrorKind.CONFIGURATION


class HttpError(RequestError):
    """
    The backend could not translate the request into its own terms.
    """

    kind = ErrorKind.HTTP
