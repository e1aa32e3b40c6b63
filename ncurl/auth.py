import base64
import logging
from typing import Optional
from urllib.parse import urlparse

from requests.auth import AuthBase
import spnego


logger = logging.getLogger(__name__)


def _negotiate_token(header: str) -> Optional[bytes]:
    """
    Extract the token of a "Negotiate" challenge, if the header carries one.
    """
    for challenge in header.split(','):
        scheme, _, token = challenge.strip().partition(' ')
        if scheme.lower() == 'negotiate':
            token = token.strip()
            return base64.b64decode(token) if token else b''
    return None


class HTTPNegotiateAuth(AuthBase):
    """
    SPNEGO authentication for `requests`.

    Without a username the security context uses the identity of the current
    user (e.g. a Kerberos ticket cache). Like the digest handler in `requests`,
    the first request goes out unauthenticated and a 401 carrying a Negotiate
    challenge is answered once. A Negotiate token on the final response is fed
    back into the context, so a server that fails mutual authentication raises
    `spnego.exceptions.SpnegoError`.
    """

    def __init__(self, username: Optional[str] = None, password: Optional[str] = None,
                 service: str = 'HTTP') -> None:
        self.username = username
        self.password = password
        self.service = service

    def __call__(self, request):
        request.register_hook('response', self.handle_401)
        return request

    def handle_401(self, response, **kw):
        if response.status_code != 401:
            return response
        in_token = _negotiate_token(response.headers.get('www-authenticate', ''))
        if in_token is None:
            logger.info('Server did not offer Negotiate authentication')
            return response
        if getattr(response.request, '_negotiate_sent', False):
            logger.warning('Server rejected the Negotiate credentials')
            return response

        host = urlparse(response.url).hostname
        logger.info('Answering Negotiate challenge from {}'.format(host))
        context = spnego.client(self.username, self.password, hostname=host,
                                service=self.service, protocol='negotiate')
        out_token = context.step(in_token or None)

        # Drain the 401 so the connection can be reused for the retry.
        response.content
        response.close()

        retry = response.request.copy()
        retry.headers['Authorization'] = 'Negotiate {}'.format(base64.b64encode(out_token).decode('ascii'))
        retry._negotiate_sent = True
        authenticated = response.connection.send(retry, **kw)
        authenticated.history.append(response)
        authenticated.request = retry

        final_token = _negotiate_token(authenticated.headers.get('www-authenticate', ''))
        if final_token:
            logger.info('Verifying the Negotiate token from {}'.format(host))
            context.step(final_token)
        return authenticated
