from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .errors import ConfigurationError
from .model import Method, RequestDescriptor, parse_method


def split_credentials(value: str) -> Tuple[str, Optional[str]]:
    """
    Split "user:password" on the first colon. Without a colon there is no password.
    """
    user, sep, password = value.partition(':')
    if not sep:
        return value, None
    return user, password


@dataclass(frozen=True)
class RequestBuilder:
    """
    Immutable builder for `RequestDescriptor`.

    Every setter returns a new builder, so a partially configured builder can be
    shared and extended without affecting other users of it:

        base = RequestBuilder('https://example.com').insecure()
        get = base.build()
        post = base.data('{}').build()
    """

    url: str
    _method: Optional[str] = None
    _fields: Tuple[Tuple[str, object], ...] = ()

    def _with(self, **values) -> 'RequestBuilder':
        fields = dict(self._fields)
        fields.update(values)
        return replace(self, _fields=tuple(fields.items()))

    def _get(self, name, default=None):
        return dict(self._fields).get(name, default)

    # region Request line and payload

    def method(self, method: Union[Method, str]) -> 'RequestBuilder':
        if isinstance(method, Method):
            method = method.value
        return replace(self, _method=parse_method(method))

    def header(self, line: str) -> 'RequestBuilder':
        return self._with(headers=self._get('headers', ()) + (line,))

    def data(self, body: Union[str, bytes]) -> 'RequestBuilder':
        if isinstance(body, str):
            body = body.encode('utf-8')
        return self._with(body=body)

    # endregion

    # region Authentication

    def username(self, username: str) -> 'RequestBuilder':
        return self._with(username=username)

    def password(self, password: str) -> 'RequestBuilder':
        return self._with(password=password)

    def credentials(self, value: str) -> 'RequestBuilder':
        username, password = split_credentials(value)
        return self._with(username=username, password=password)

    def bearer(self, token: str) -> 'RequestBuilder':
        return self._with(bearer_token=token)

    def negotiate(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(use_negotiate=enable)

    def ntlm(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(use_ntlm=enable)

    # endregion

    # region TLS

    def insecure(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(insecure=enable)

    def ca_cert(self, path: str) -> 'RequestBuilder':
        return self._with(ca_cert_path=path)

    def ssl_no_revoke(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(disable_revocation_check=enable)

    # endregion

    # region Proxy

    def proxy(self, url: str) -> 'RequestBuilder':
        return self._with(proxy_url=url)

    def proxy_credentials(self, value: str) -> 'RequestBuilder':
        username, password = split_credentials(value)
        return self._with(proxy_username=username, proxy_password=password)

    def proxy_username(self, username: str) -> 'RequestBuilder':
        return self._with(proxy_username=username)

    def proxy_password(self, password: str) -> 'RequestBuilder':
        return self._with(proxy_password=password)

    def proxy_negotiate(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(proxy_use_negotiate=enable)

    def proxy_ntlm(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(proxy_use_ntlm=enable)

    def proxy_insecure(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(proxy_insecure=enable)

    def proxy_ca_cert(self, path: str) -> 'RequestBuilder':
        return self._with(proxy_ca_cert_path=path)

    def no_proxy(self, hosts: str) -> 'RequestBuilder':
        return self._with(no_proxy_list=hosts)

    # endregion

    # region Behaviour

    def connect_timeout(self, seconds: float) -> 'RequestBuilder':
        return self._with(connect_timeout=seconds)

    def max_time(self, seconds: float) -> 'RequestBuilder':
        return self._with(max_time=seconds)

    def max_redirects(self, count: int) -> 'RequestBuilder':
        return self._with(max_redirects=count)

    def location(self, enable: bool = True) -> 'RequestBuilder':
        """
        Accepted for compatibility with curl's -L. Redirects are always followed.
        """
        return self

    def show_timing(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(show_timing=enable)

    def compressed(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(accept_compressed=enable)

    def user_agent(self, value: str) -> 'RequestBuilder':
        return self._with(user_agent=value)

    def resolve(self, entry: str) -> 'RequestBuilder':
        return self._with(resolve_overrides=self._get('resolve_overrides', ()) + (entry,))

    def output(self, path: str) -> 'RequestBuilder':
        return self._with(output_path=path)

    def verbose(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(verbose=enable)

    def silent(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(silent=enable)

    def head_only(self, enable: bool = True) -> 'RequestBuilder':
        return self._with(head_only=enable)

    def cookie(self, path: str) -> 'RequestBuilder':
        return self._with(cookie_file=path)

    def cookie_jar(self, path: str) -> 'RequestBuilder':
        return self._with(cookie_jar=path)

    # endregion

    def build(self) -> RequestDescriptor:
        """
        Validate the collected values and produce the descriptor.

        An explicit method always wins. Otherwise a body implies POST, and
        `head_only` implies HEAD.

        @raise ConfigurationError
          If the URL is empty or a timeout or redirect count is negative.
        """
        if not self.url or not self.url.strip():
            raise ConfigurationError('URL is required')

        fields = dict(self._fields)
        for name in ('connect_timeout', 'max_time', 'max_redirects'):
            value = fields.get(name)
            if value is not None and value < 0:
                raise ConfigurationError('{} must not be negative'.format(name))

        if self._method is not None:
            method = self._method
        elif fields.get('body') is not None:
            method = Method.POST.value
        elif fields.get('head_only'):
            method = Method.HEAD.value
        else:
            method = Method.GET.value

        return RequestDescriptor(url=self.url.strip(),
                                 method=method,
                                 method_explicit=self._method is not None,
                                 **fields)
