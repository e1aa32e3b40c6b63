"""
The reduced backend, built on `requests`.

It mirrors `CurlBackend`'s contract with a narrower capability surface:

- Negotiate works, with explicit credentials or the current identity. NTLM
  does not; it falls back to basic authentication when both a username and a
  password are known, and to no authentication otherwise.
- Proxy Negotiate/NTLM fall back to basic proxy credentials when present.
- No timing breakdown, no DNS overrides, no revocation toggles.
- `max_time` bounds each read rather than the whole transaction.
- Without `accept_compressed` it asks for `Accept-Encoding: identity`, where
  libcurl sends no Accept-Encoding header at all.

Every gap is logged as a warning, and the request still goes ahead.
"""

from http.cookiejar import LoadError, MozillaCookieJar
import logging
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit
import warnings

import requests
from requests.auth import HTTPBasicAuth
from requests.utils import should_bypass_proxies
from spnego.exceptions import SpnegoError
from urllib3.exceptions import InsecureRequestWarning

from ..adapter import TransportAdapter, create_proxy_ssl_context
from ..auth import HTTPNegotiateAuth
from ..backend import Backend, build_header_list
from ..classifier import FailureCategory, category_for_requests_exception, transport_error
from ..errors import ConfigurationError, FileIOError, HttpError
from ..model import Method, RequestDescriptor, Response, is_valid_method
from ..resolution import ResolvedSettings, resolve
from .. import settings


logger = logging.getLogger(__name__)


_CONFIGURATION_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidSchema,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidHeader,
)


class RequestsBackend(Backend):
    def __init__(self, session_factory: Callable[[], requests.Session] = requests.Session,
                 adapter_factory: Callable[..., TransportAdapter] = TransportAdapter) -> None:
        self.__session_factory = session_factory
        self.__adapter_factory = adapter_factory

    @property
    def name(self) -> str:
        return 'requests'

    @property
    def version(self) -> str:
        return requests.__version__

    def execute(self, descriptor: RequestDescriptor) -> Response:
        if not is_valid_method(descriptor.method):
            raise HttpError('invalid method: {!r}'.format(descriptor.method))
        resolved = resolve(descriptor)
        self._report_gaps(descriptor)

        session = self.__session_factory()
        try:
            cookies = self._configure(session, descriptor, resolved)
            response = self._send(session, descriptor, resolved)
            if cookies is not None and descriptor.cookie_jar is not None:
                self._save_cookies(cookies, descriptor.cookie_jar)
        finally:
            session.close()

        return self._finish(descriptor, response)

    def _report_gaps(self, descriptor: RequestDescriptor) -> None:
        if descriptor.show_timing:
            logger.warning('The requests backend cannot measure transfer phases; no timing will be reported')
        if descriptor.resolve_overrides:
            logger.warning('The requests backend ignores DNS overrides: {}'.format(', '.join(descriptor.resolve_overrides)))
        if descriptor.disable_revocation_check:
            logger.warning('The requests backend cannot toggle certificate revocation checks')
        if descriptor.max_time is not None:
            logger.info('max_time is applied per read, not to the whole transaction')

    # region Session set up

    def _configure(self, session: requests.Session, descriptor: RequestDescriptor,
                   resolved: ResolvedSettings) -> Optional[MozillaCookieJar]:
        # Only resolved values may apply, so keep requests away from the environment.
        session.trust_env = False
        session.headers['User-Agent'] = descriptor.user_agent or settings.DEFAULT_USER_AGENT
        if not descriptor.accept_compressed:
            session.headers['Accept-Encoding'] = 'identity'
        if descriptor.body is not None:
            session.headers['Content-Type'] = 'application/x-www-form-urlencoded'
        if descriptor.max_redirects is not None:
            session.max_redirects = descriptor.max_redirects

        session.auth = self._auth(descriptor, resolved)
        session.verify = False if descriptor.insecure else (descriptor.ca_cert_path or True)

        proxy_ssl_context = None
        proxies = self._proxies(descriptor, resolved)
        if proxies:
            session.proxies.update(proxies)
            try:
                proxy_ssl_context = create_proxy_ssl_context(descriptor.proxy_insecure,
                                                             descriptor.proxy_ca_cert_path)
            except OSError as e:
                raise FileIOError('failed to load proxy CA bundle {}: {}'.format(
                    descriptor.proxy_ca_cert_path, e)) from e

        adapter = self.__adapter_factory(header_lines=build_header_list(descriptor),
                                         proxy_ssl_context=proxy_ssl_context)
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        return self._load_cookies(session, descriptor)

    def _auth(self, descriptor: RequestDescriptor, resolved: ResolvedSettings):
        username, password = resolved.username, resolved.password
        if descriptor.use_negotiate:
            if descriptor.use_ntlm:
                logger.info('Both Negotiate and NTLM requested; using Negotiate')
            if username is not None or password is not None:
                return HTTPNegotiateAuth(username or '', password or '')
            return HTTPNegotiateAuth()
        if descriptor.use_ntlm:
            if username is not None and password is not None:
                logger.warning('NTLM is not supported by the requests backend; falling back to basic authentication')
                return HTTPBasicAuth(username, password)
            logger.warning('NTLM is not supported by the requests backend; sending the request unauthenticated')
            return None
        if username is not None:
            return HTTPBasicAuth(username, password or '')
        return None

    def _proxies(self, descriptor: RequestDescriptor, resolved: ResolvedSettings) -> dict:
        if resolved.proxy_url is None:
            if descriptor.active_proxy_auth_scheme is not None:
                logger.info('Ignoring proxy authentication settings since no proxy is configured')
            return {}
        if _bypasses_proxy(descriptor.url, resolved.no_proxy):
            logger.info('{} matches the no-proxy list; connecting directly'.format(descriptor.url))
            return {}

        if descriptor.proxy_use_negotiate or descriptor.proxy_use_ntlm:
            if descriptor.proxy_username is not None:
                logger.warning('Proxy Negotiate/NTLM is not supported by the requests backend; '
                               'falling back to basic proxy authentication')
            else:
                logger.warning('Proxy Negotiate/NTLM is not supported by the requests backend; '
                               'connecting to the proxy unauthenticated')

        proxy_url = _proxy_url_with_credentials(resolved.proxy_url, descriptor.proxy_username,
                                                descriptor.proxy_password)
        return {'http': proxy_url, 'https': proxy_url}

    def _load_cookies(self, session: requests.Session, descriptor: RequestDescriptor) -> Optional[MozillaCookieJar]:
        if descriptor.cookie_file is None and descriptor.cookie_jar is None:
            return None
        jar = MozillaCookieJar()
        if descriptor.cookie_file is not None:
            try:
                jar.load(descriptor.cookie_file, ignore_discard=True, ignore_expires=True)
            except FileNotFoundError:
                logger.info('Cookie file {} does not exist; starting without cookies'.format(descriptor.cookie_file))
            except LoadError as e:
                logger.warning('Ignoring unreadable cookie file {}: {}'.format(descriptor.cookie_file, e))
        session.cookies = jar
        return jar

    def _save_cookies(self, jar: MozillaCookieJar, path: str) -> None:
        logger.info('Writing {} cookies to {}'.format(len(jar), path))
        try:
            jar.save(path, ignore_discard=True, ignore_expires=True)
        except OSError as e:
            raise FileIOError('failed to write cookie jar {}: {}'.format(path, e)) from e

    # endregion

    def _send(self, session: requests.Session, descriptor: RequestDescriptor,
              resolved: ResolvedSettings) -> Response:
        timeout = None
        if descriptor.connect_timeout is not None or descriptor.max_time is not None:
            timeout = (descriptor.connect_timeout, descriptor.max_time)
        # A HEAD-only transfer of another method is streamed and never read.
        no_body = descriptor.head_only or descriptor.method == Method.HEAD.value

        logger.info('Performing {} {}'.format(descriptor.method, descriptor.url))
        try:
            with warnings.catch_warnings():
                if descriptor.insecure or descriptor.proxy_insecure:
                    warnings.simplefilter('ignore', InsecureRequestWarning)
                raw = session.request(descriptor.method, descriptor.url, data=descriptor.body,
                                      timeout=timeout, allow_redirects=True, stream=no_body)
            try:
                if descriptor.verbose:
                    for hop in raw.history + [raw]:
                        logger.debug('> {} {}'.format(hop.request.method, hop.request.url))
                        logger.debug('< {} {}'.format(hop.status_code, hop.reason))
                body = b'' if no_body else raw.content
                headers = _header_lines(raw)
            finally:
                raw.close()
        except _CONFIGURATION_ERRORS as e:
            raise ConfigurationError(str(e)) from e
        except SpnegoError as e:
            raise transport_error(FailureCategory.OTHER, 'negotiate error: {}'.format(e)) from e
        except requests.RequestException as e:
            message = 'requests error: {}'.format(e)
            logger.warning('Transfer failed. {}'.format(message))
            raise transport_error(category_for_requests_exception(e), message) from e
        except OSError as e:
            # requests reports an unreadable CA bundle this way.
            raise FileIOError(str(e)) from e

        return Response(status_code=raw.status_code, headers=headers, body=body, timing=None)


def _bypasses_proxy(url: str, no_proxy: Optional[str]) -> bool:
    if not no_proxy:
        return False
    if no_proxy.strip() == '*':
        return True
    return should_bypass_proxies(url, no_proxy=no_proxy)


def _proxy_url_with_credentials(proxy_url: str, username: Optional[str], password: Optional[str]) -> str:
    """
    Embed basic proxy credentials in the proxy URL, which is how `requests` picks them up.

    @raise ConfigurationError
      If the URL has no host.
    """
    if '://' not in proxy_url:
        # curl treats a bare "host:port" as an HTTP proxy.
        proxy_url = 'http://' + proxy_url
    parts = urlsplit(proxy_url)
    if not parts.hostname:
        raise ConfigurationError('invalid proxy URL: {!r}'.format(proxy_url))
    if username is None:
        return proxy_url
    host = parts.netloc.rpartition('@')[2]
    userinfo = quote(username, safe='')
    if password is not None:
        userinfo += ':' + quote(password, safe='')
    return urlunsplit((parts.scheme, '{}@{}'.format(userinfo, host), parts.path, parts.query, parts.fragment))


def _header_lines(response: requests.Response) -> Tuple[str, ...]:
    # The raw urllib3 headers keep repeated fields apart; `response.headers` folds them.
    raw_headers = getattr(response.raw, 'headers', None)
    source = raw_headers if raw_headers is not None else response.headers
    lines = []  # type: List[str]
    for name, value in source.items():
        lines.append('{}: {}'.format(name, value))
    return tuple(lines)
