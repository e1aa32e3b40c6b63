"""
Turns backend failures into `TransportError`s with a remediation hint.

Backends sort their native failures into a `FailureCategory`. The hint is then
chosen from the category and, where the transport gives no structured signal,
from the rendered message. The first matching rule wins.
"""

from enum import Enum
from typing import Optional

import requests
from urllib3.exceptions import NameResolutionError

from .errors import TransportError


class FailureCategory(Enum):
    HOST_RESOLUTION = 'host_resolution'
    PROXY_RESOLUTION = 'proxy_resolution'
    TLS = 'tls'
    TOO_MANY_REDIRECTS = 'too_many_redirects'
    TIMEOUT = 'timeout'
    CONNECTION = 'connection'
    OTHER = 'other'


HOST_RESOLUTION_HINT = ('Hint: DNS resolution failed. If behind a corporate proxy, '
                        'set HTTPS_PROXY or use -x <proxy-url>')
PROXY_RESOLUTION_HINT = 'Hint: Could not resolve proxy hostname. Check your proxy URL'
TLS_HINT = ('Hint: SSL error. Try --insecure (-k), --cacert <path>, '
            'or --ssl-no-revoke for revocation issues')
REVOCATION_HINT = ('Hint: Certificate revocation check failed. '
                   'Try --ssl-no-revoke to disable revocation checks')
PROXY_AUTH_HINT = ('Hint: Proxy requires authentication (407). '
                   'Try --proxy-negotiate for Kerberos/SPNEGO or --proxy-user <user:pass>')


def hint_for(category: FailureCategory, message: str) -> Optional[str]:
    if category is FailureCategory.HOST_RESOLUTION:
        return HOST_RESOLUTION_HINT
    if category is FailureCategory.PROXY_RESOLUTION:
        return PROXY_RESOLUTION_HINT
    if category is FailureCategory.TLS:
        return TLS_HINT
    # Neither transport exposes these two as a structured category.
    if 'revocation' in message:
        return REVOCATION_HINT
    if '407' in message:
        return PROXY_AUTH_HINT
    return None


def transport_error(category: FailureCategory, message: str) -> TransportError:
    return TransportError(message, hint=hint_for(category, message), category=category)


# region libcurl

# CURLcode values, see curl/curl.h.
CURLE_COULDNT_RESOLVE_PROXY = 5
CURLE_COULDNT_RESOLVE_HOST = 6
CURLE_COULDNT_CONNECT = 7
CURLE_OPERATION_TIMEDOUT = 28
CURLE_SSL_CONNECT_ERROR = 35
CURLE_TOO_MANY_REDIRECTS = 47
CURLE_PEER_FAILED_VERIFICATION = 60


def category_for_curl_code(code: int) -> FailureCategory:
    if code == CURLE_COULDNT_RESOLVE_HOST:
        return FailureCategory.HOST_RESOLUTION
    if code == CURLE_COULDNT_RESOLVE_PROXY:
        return FailureCategory.PROXY_RESOLUTION
    if code in (CURLE_SSL_CONNECT_ERROR, CURLE_PEER_FAILED_VERIFICATION):
        return FailureCategory.TLS
    if code == CURLE_TOO_MANY_REDIRECTS:
        return FailureCategory.TOO_MANY_REDIRECTS
    if code == CURLE_OPERATION_TIMEDOUT:
        return FailureCategory.TIMEOUT
    if code == CURLE_COULDNT_CONNECT:
        return FailureCategory.CONNECTION
    return FailureCategory.OTHER

# endregion


# region requests

def _causes(exc: BaseException):
    """
    Walk an exception, its chained causes and the reasons urllib3 tucks into its own exceptions.
    """
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend([current.__cause__, current.__context__, getattr(current, 'reason', None)])
        pending.extend(arg for arg in getattr(current, 'args', ()) if isinstance(arg, BaseException))


def category_for_requests_exception(exc: requests.RequestException) -> FailureCategory:
    resolution_failed = any(isinstance(cause, NameResolutionError) for cause in _causes(exc))
    if isinstance(exc, requests.exceptions.ProxyError):
        return FailureCategory.PROXY_RESOLUTION if resolution_failed else FailureCategory.CONNECTION
    if resolution_failed:
        return FailureCategory.HOST_RESOLUTION
    if isinstance(exc, requests.exceptions.SSLError):
        return FailureCategory.TLS
    if isinstance(exc, requests.exceptions.TooManyRedirects):
        return FailureCategory.TOO_MANY_REDIRECTS
    if isinstance(exc, requests.exceptions.Timeout):
        return FailureCategory.TIMEOUT
    if isinstance(exc, requests.exceptions.ConnectionError):
        return FailureCategory.CONNECTION
    return FailureCategory.OTHER

# endregion
