"""
Defines the types that flow into and out of a backend.

These types are as simple as possible. A `RequestDescriptor` is produced once
per invocation (see `ncurl.builder`), handed to exactly one backend, and thrown
away once the `Response` comes back.
"""

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import List, Optional, Tuple

from .errors import ConfigurationError


class Method(Enum):
    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'
    HEAD = 'HEAD'
    PATCH = 'PATCH'
    OPTIONS = 'OPTIONS'


# RFC 7230 token characters.
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def is_valid_method(method: str) -> bool:
    return bool(method) and _TOKEN.fullmatch(method) is not None


def parse_method(text: str) -> str:
    """
    Normalize a method name.

    Known methods and custom verbs are both upper-cased. A custom verb must be
    a valid HTTP token.

    @raise ConfigurationError
      If `text` cannot be used as a method.
    """
    method = (text or '').strip().upper()
    if method in Method.__members__:
        return Method[method].value
    if not is_valid_method(method):
        raise ConfigurationError('invalid method: {!r}'.format(text))
    return method


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Everything needed to perform one HTTP transaction.

    Credential and proxy fields hold the values given by the caller. Backends
    never read them directly; they go through `ncurl.resolution` first so that
    environment fallbacks apply.
    """

    url: str
    """
    The only mandatory field.
    """

    method: str = Method.GET.value
    """
    The resolved HTTP method. E.g., "GET" or a custom verb such as "PURGE".
    """

    method_explicit: bool = False
    """
    Whether the caller chose `method`, as opposed to it being derived from the body or `head_only`.
    """

    headers: Tuple[str, ...] = ()
    """
    Raw "Name: Value" lines, sent in this order. Duplicates are allowed.
    """

    body: Optional[bytes] = field(default=None, repr=False)

    # region Authentication
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    bearer_token: Optional[str] = field(default=None, repr=False)
    use_negotiate: bool = False
    use_ntlm: bool = False
    # endregion

    # region TLS
    insecure: bool = False
    ca_cert_path: Optional[str] = None
    disable_revocation_check: bool = False
    # endregion

    # region Proxy
    proxy_url: Optional[str] = None
    proxy_username: Optional[str] = None
    proxy_password: Optional[str] = field(default=None, repr=False)
    proxy_use_negotiate: bool = False
    proxy_use_ntlm: bool = False
    proxy_insecure: bool = False
    proxy_ca_cert_path: Optional[str] = None
    no_proxy_list: Optional[str] = None
    # endregion

    # region Behaviour
    connect_timeout: Optional[float] = None
    """
    Seconds allowed for the connection phase.
    """

    max_time: Optional[float] = None
    """
    Seconds allowed for the whole transaction.
    """

    max_redirects: Optional[int] = None
    show_timing: bool = False
    accept_compressed: bool = False
    user_agent: Optional[str] = None
    """
    `None` means the backend sends `ncurl.settings.DEFAULT_USER_AGENT`.
    """

    resolve_overrides: Tuple[str, ...] = ()
    """
    "host:port:address" entries that bypass DNS for the given host and port.
    """

    output_path: Optional[str] = None
    """
    If set, the body is written here after a successful transfer and left out of the `Response`.
    """

    verbose: bool = False
    # endregion

    # region Presentation, consumed by the caller. `head_only` also forces a body-less transfer.
    silent: bool = False
    head_only: bool = False
    # endregion

    # region Cookies
    cookie_file: Optional[str] = None
    cookie_jar: Optional[str] = None
    # endregion

    @property
    def follow_redirects(self) -> bool:
        """
        Redirects are always followed. Only `max_redirects` is configurable.
        """
        return True

    @property
    def active_auth_scheme(self) -> Optional[str]:
        if self.use_negotiate:
            return 'negotiate'
        if self.use_ntlm:
            return 'ntlm'
        if self.username is not None:
            return 'basic'
        return None

    @property
    def active_proxy_auth_scheme(self) -> Optional[str]:
        if self.proxy_use_negotiate:
            return 'negotiate'
        if self.proxy_use_ntlm:
            return 'ntlm'
        if self.proxy_username is not None:
            return 'basic'
        return None


def _millis(seconds: float) -> str:
    return '{:>8.3f}ms'.format(seconds * 1000.0)


@dataclass(frozen=True)
class Timing:
    """
    Per-phase timings of a transfer, in seconds.

    Values are as reported by the transport, i.e. each phase is measured from
    the start of the transfer.
    """

    dns: float = 0.0
    connect: float = 0.0
    tls: float = 0.0
    first_byte: float = 0.0
    redirect: float = 0.0
    total: float = 0.0

    def __post_init__(self):
        for name in ('dns', 'connect', 'tls', 'first_byte', 'redirect', 'total'):
            value = getattr(self, name)
            if value is None or value < 0:
                object.__setattr__(self, name, 0.0)

    def __str__(self) -> str:
        return '\n'.join([
            'Timing:',
            '  DNS lookup:    {}'.format(_millis(self.dns)),
            '  Connect:       {}'.format(_millis(self.connect)),
            '  TLS handshake: {}'.format(_millis(self.tls)),
            '  First byte:    {}'.format(_millis(self.first_byte)),
            '  Redirect:      {}'.format(_millis(self.redirect)),
            '  Total:         {}'.format(_millis(self.total)),
        ])


@dataclass
class Response:
    """
    Represents the outcome of a transaction, without any bells and whistles.
    """

    status_code: int
    """
    The status code of the final response. E.g., 200 or 404.
    """

    headers: Tuple[str, ...] = ()
    """
    Raw header lines of the final response, status line excluded.
    """

    body: bytes = field(default=b'', repr=False)
    """
    The payload. Empty when it was written to the output file instead.
    """

    timing: Optional[Timing] = None

    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')

    def header_map(self) -> List[Tuple[str, str]]:
        pairs = []
        for line in self.headers:
            name, sep, value = line.partition(':')
            if not sep:
                continue
            pairs.append((name.strip().lower(), value.strip()))
        return pairs

    def get_header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.header_map():
            if key == name:
                return value
        return None
