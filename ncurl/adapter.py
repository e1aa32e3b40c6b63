import logging
import ssl
from typing import List, Optional, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3 import HTTPHeaderDict


logger = logging.getLogger(__name__)


def parse_header_lines(lines: Sequence[str]) -> List[Tuple[str, str]]:
    """
    Split raw "Name: Value" lines. Lines without a colon are dropped.

    An empty value is kept; it means "do not send this header", as it does for curl.
    """
    fields = []
    for line in lines:
        name, sep, value = line.partition(':')
        name = name.strip()
        if not sep or not name:
            logger.warning('Ignoring malformed header line: {!r}'.format(line))
            continue
        fields.append((name, value.strip()))
    return fields


class TransportAdapter(HTTPAdapter):
    """
    An `HTTPAdapter` that sends the caller's header lines verbatim and can
    verify an HTTPS proxy with its own TLS settings.

    `requests` keeps headers in a case-insensitive dict, which cannot hold the
    same header twice. Right before sending, the headers `requests` computed
    are merged with the caller's lines: every name the caller mentions is
    replaced by the caller's values. Names go out in the order they first
    appear, with repeated values of a name kept together in the caller's order.
    """

    def __init__(self, header_lines: Sequence[str] = (), proxy_ssl_context: Optional[ssl.SSLContext] = None,
                 *args, **kw) -> None:
        super().__init__(*args, **kw)
        self.header_fields = parse_header_lines(header_lines)
        self.proxy_ssl_context = proxy_ssl_context

    def send(self, request: requests.PreparedRequest, **kw) -> requests.Response:
        request.headers = self.merge_headers(request.headers)
        return super().send(request, **kw)

    def merge_headers(self, headers) -> HTTPHeaderDict:
        explicit = {name.lower() for name, _ in self.header_fields}
        merged = HTTPHeaderDict()
        for name, value in headers.items():
            if name.lower() not in explicit:
                merged.add(name, value)
        for name, value in self.header_fields:
            if value:
                merged.add(name, value)
        return merged

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        if self.proxy_ssl_context is not None and proxy.lower().startswith('https:'):
            proxy_kwargs.setdefault('proxy_ssl_context', self.proxy_ssl_context)
        return super().proxy_manager_for(proxy, **proxy_kwargs)


def create_proxy_ssl_context(insecure: bool, ca_cert_path: Optional[str]) -> Optional[ssl.SSLContext]:
    """
    Build the context used for the TLS connection to an HTTPS proxy.

    @return
      `None` if neither option is set, leaving urllib3's defaults in place.
    @raise OSError
      If the CA bundle cannot be read.
    """
    if not insecure and ca_cert_path is None:
        return None
    context = ssl.create_default_context(cafile=ca_cert_path)
    if insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context
