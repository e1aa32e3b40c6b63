"""
The full-featured backend, built on libcurl through pycurl.

libcurl handles SPNEGO and NTLM itself, for both the origin and the proxy, so
every descriptor field maps onto a curl option.
"""

from io import BytesIO
import logging
from typing import Callable, List, Optional

import pycurl

from ..backend import Backend, build_header_list
from ..classifier import category_for_curl_code, transport_error
from ..errors import ConfigurationError
from ..model import Method, RequestDescriptor, Response, Timing
from ..resolution import ResolvedSettings, resolve
from .. import settings


logger = logging.getLogger(__name__)


_DEBUG_PREFIXES = {
    pycurl.INFOTYPE_TEXT: '*',
    pycurl.INFOTYPE_HEADER_IN: '<',
    pycurl.INFOTYPE_HEADER_OUT: '>',
}


def _trace(debug_type: int, data: bytes) -> None:
    prefix = _DEBUG_PREFIXES.get(debug_type)
    if prefix is None:
        # Body chunks and raw TLS records.
        return
    for line in data.decode('iso-8859-1').splitlines():
        if line:
            logger.debug('{} {}'.format(prefix, line))


class _HeaderCollector:
    """
    Receives header lines from libcurl. A status line starts a new response
    (after a redirect or an authentication round trip), so only the headers of
    the final response are kept.
    """

    def __init__(self) -> None:
        self.lines = []  # type: List[str]

    def __call__(self, data: bytes) -> None:
        line = data.decode('iso-8859-1').strip()
        if not line:
            return
        if line.startswith('HTTP/'):
            self.lines = []
            return
        self.lines.append(line)


class CurlBackend(Backend):
    def __init__(self, curl_factory: Callable[[], 'pycurl.Curl'] = pycurl.Curl) -> None:
        self.__curl_factory = curl_factory

    @property
    def name(self) -> str:
        return 'curl'

    @property
    def version(self) -> str:
        return pycurl.version_info()[1]

    def execute(self, descriptor: RequestDescriptor) -> Response:
        resolved = resolve(descriptor)
        headers = _HeaderCollector()
        body = BytesIO()

        handle = self.__curl_factory()
        try:
            try:
                self._apply(handle, descriptor, resolved)
                handle.setopt(pycurl.HEADERFUNCTION, headers)
                handle.setopt(pycurl.WRITEFUNCTION, body.write)
            except pycurl.error as e:
                raise ConfigurationError('curl rejected an option: {}'.format(_curl_message(e))) from e

            logger.info('Performing {} {}'.format(descriptor.method, descriptor.url))
            try:
                handle.perform()
            except pycurl.error as e:
                code = e.args[0] if e.args else 0
                message = 'curl error: [{}] {}'.format(code, _curl_message(e))
                logger.warning('Transfer failed. {}'.format(message))
                raise transport_error(category_for_curl_code(code), message) from e

            status_code = handle.getinfo(pycurl.RESPONSE_CODE)
            timing = self._timing(handle) if descriptor.show_timing else None
        finally:
            # Closing the handle is what makes libcurl write the cookie jar.
            handle.close()

        response = Response(status_code=status_code,
                            headers=tuple(headers.lines),
                            body=body.getvalue(),
                            timing=timing)
        return self._finish(descriptor, response)

    # region Option mapping

    def _apply(self, handle, descriptor: RequestDescriptor, resolved: ResolvedSettings) -> None:
        handle.setopt(pycurl.URL, descriptor.url)
        handle.setopt(pycurl.FOLLOWLOCATION, 1)

        self._apply_method(handle, descriptor)
        self._apply_auth(handle, descriptor, resolved)
        handle.setopt(pycurl.HTTPHEADER, build_header_list(descriptor))
        self._apply_tls(handle, descriptor)
        self._apply_proxy(handle, descriptor, resolved)
        self._apply_behaviour(handle, descriptor)

    def _apply_method(self, handle, descriptor: RequestDescriptor) -> None:
        method = descriptor.method
        has_body = descriptor.body is not None
        if method == Method.HEAD.value:
            handle.setopt(pycurl.NOBODY, 1)
        elif method == Method.GET.value and not has_body:
            handle.setopt(pycurl.HTTPGET, 1)
        elif method == Method.POST.value:
            handle.setopt(pycurl.POST, 1)
        else:
            handle.setopt(pycurl.CUSTOMREQUEST, method)

        # Applied after the method so that e.g. `-X GET -I` still skips the body.
        if descriptor.head_only and method != Method.HEAD.value:
            handle.setopt(pycurl.NOBODY, 1)

        if has_body or method == Method.POST.value:
            payload = descriptor.body or b''
            handle.setopt(pycurl.POSTFIELDSIZE, len(payload))
            handle.setopt(pycurl.POSTFIELDS, payload)

    def _apply_auth(self, handle, descriptor: RequestDescriptor, resolved: ResolvedSettings) -> None:
        scheme = None
        if descriptor.use_negotiate:
            scheme = pycurl.HTTPAUTH_GSSNEGOTIATE
        elif descriptor.use_ntlm:
            scheme = pycurl.HTTPAUTH_NTLM

        if scheme is not None:
            handle.setopt(pycurl.HTTPAUTH, scheme)
            handle.setopt(pycurl.USERNAME, resolved.username or '')
            handle.setopt(pycurl.PASSWORD, resolved.password or '')
        elif resolved.username is not None:
            handle.setopt(pycurl.USERNAME, resolved.username)
            if resolved.password is not None:
                handle.setopt(pycurl.PASSWORD, resolved.password)

    def _apply_tls(self, handle, descriptor: RequestDescriptor) -> None:
        if descriptor.insecure:
            handle.setopt(pycurl.SSL_VERIFYPEER, 0)
            handle.setopt(pycurl.SSL_VERIFYHOST, 0)
        if descriptor.ca_cert_path is not None:
            handle.setopt(pycurl.CAINFO, descriptor.ca_cert_path)
        if descriptor.disable_revocation_check:
            handle.setopt(pycurl.SSL_OPTIONS, pycurl.SSLOPT_NO_REVOKE)
            handle.setopt(pycurl.PROXY_SSL_OPTIONS, pycurl.SSLOPT_NO_REVOKE)

    def _apply_proxy(self, handle, descriptor: RequestDescriptor, resolved: ResolvedSettings) -> None:
        if resolved.no_proxy is not None:
            handle.setopt(pycurl.NOPROXY, resolved.no_proxy)
        if resolved.proxy_url is None:
            if descriptor.active_proxy_auth_scheme is not None:
                logger.info('Ignoring proxy authentication settings since no proxy is configured')
            return

        handle.setopt(pycurl.PROXY, resolved.proxy_url)

        if descriptor.proxy_use_negotiate:
            handle.setopt(pycurl.PROXYAUTH, pycurl.HTTPAUTH_GSSNEGOTIATE)
            if descriptor.proxy_username is None:
                # Empty user and password make libcurl use the current identity.
                handle.setopt(pycurl.PROXYUSERPWD, ':')
        elif descriptor.proxy_use_ntlm:
            handle.setopt(pycurl.PROXYAUTH, pycurl.HTTPAUTH_NTLM)

        if descriptor.proxy_username is not None:
            handle.setopt(pycurl.PROXYUSERNAME, descriptor.proxy_username)
        if descriptor.proxy_password is not None:
            handle.setopt(pycurl.PROXYPASSWORD, descriptor.proxy_password)

        if descriptor.proxy_insecure:
            handle.setopt(pycurl.PROXY_SSL_VERIFYPEER, 0)
            handle.setopt(pycurl.PROXY_SSL_VERIFYHOST, 0)
        if descriptor.proxy_ca_cert_path is not None:
            handle.setopt(pycurl.PROXY_CAINFO, descriptor.proxy_ca_cert_path)

    def _apply_behaviour(self, handle, descriptor: RequestDescriptor) -> None:
        if descriptor.connect_timeout is not None:
            handle.setopt(pycurl.CONNECTTIMEOUT_MS, int(descriptor.connect_timeout * 1000))
        if descriptor.max_time is not None:
            handle.setopt(pycurl.TIMEOUT_MS, int(descriptor.max_time * 1000))
        if descriptor.cookie_file is not None:
            handle.setopt(pycurl.COOKIEFILE, descriptor.cookie_file)
        if descriptor.cookie_jar is not None:
            handle.setopt(pycurl.COOKIEJAR, descriptor.cookie_jar)
        if descriptor.accept_compressed:
            # An empty string offers every encoding libcurl was built with.
            handle.setopt(pycurl.ENCODING, '')
        handle.setopt(pycurl.USERAGENT, descriptor.user_agent or settings.DEFAULT_USER_AGENT)
        if descriptor.max_redirects is not None:
            handle.setopt(pycurl.MAXREDIRS, descriptor.max_redirects)
        if descriptor.resolve_overrides:
            handle.setopt(pycurl.RESOLVE, list(descriptor.resolve_overrides))
        if descriptor.verbose:
            handle.setopt(pycurl.VERBOSE, 1)
            handle.setopt(pycurl.DEBUGFUNCTION, _trace)

    # endregion

    def _timing(self, handle) -> Timing:
        def seconds(info: int) -> float:
            try:
                return handle.getinfo(info)
            except pycurl.error:
                logger.info('libcurl could not report timing info {}'.format(info))
                return 0.0

        return Timing(dns=seconds(pycurl.NAMELOOKUP_TIME),
                      connect=seconds(pycurl.CONNECT_TIME),
                      tls=seconds(pycurl.APPCONNECT_TIME),
                      first_byte=seconds(pycurl.STARTTRANSFER_TIME),
                      redirect=seconds(pycurl.REDIRECT_TIME),
                      total=seconds(pycurl.TOTAL_TIME))


def _curl_message(error: pycurl.error) -> Optional[str]:
    if len(error.args) > 1:
        return error.args[1]
    return str(error)
