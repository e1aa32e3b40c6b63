from ddt import ddt, data, unpack
import socket
from unittest import TestCase

import requests
from urllib3.exceptions import NameResolutionError

from ncurl.classifier import (FailureCategory, HOST_RESOLUTION_HINT, PROXY_AUTH_HINT, PROXY_RESOLUTION_HINT,
                              REVOCATION_HINT, TLS_HINT, category_for_curl_code, category_for_requests_exception,
                              hint_for, transport_error)
from ncurl.errors import ConfigurationError, ErrorKind, FileIOError, HttpError, TransportError


def name_resolution_error(host='nonexistent.invalid') -> NameResolutionError:
    return NameResolutionError(host, None, socket.gaierror(-2, 'Name or service not known'))


@ddt
class TestHintFor(TestCase):
    @data(
        (FailureCategory.HOST_RESOLUTION, 'Could not resolve host: nonexistent.invalid', HOST_RESOLUTION_HINT),
        (FailureCategory.PROXY_RESOLUTION, "Couldn't resolve proxy 'bad'", PROXY_RESOLUTION_HINT),
        (FailureCategory.TLS, 'SSL certificate problem: self signed certificate', TLS_HINT),
        (FailureCategory.OTHER, 'schannel: next InitializeSecurityContext failed: revocation server offline',
         REVOCATION_HINT),
        (FailureCategory.CONNECTION, 'Received HTTP code 407 from proxy after CONNECT', PROXY_AUTH_HINT),
        (FailureCategory.TIMEOUT, 'Operation timed out after 1000 milliseconds', None),
        (FailureCategory.CONNECTION, 'Failed to connect to localhost port 1', None),
        (FailureCategory.OTHER, '', None),
    )
    @unpack
    def test_hint(self, category, message, expected):
        self.assertEqual(expected, hint_for(category, message))

    @data(
        # The category is checked before the message.
        (FailureCategory.TLS, 'revocation check failed behind a 407', TLS_HINT),
        (FailureCategory.HOST_RESOLUTION, 'proxy said 407', HOST_RESOLUTION_HINT),
        # Revocation before proxy authentication.
        (FailureCategory.OTHER, 'revocation 407', REVOCATION_HINT),
    )
    @unpack
    def test_first_match_wins(self, category, message, expected):
        self.assertEqual(expected, hint_for(category, message))

    def test_transport_error(self):
        error = transport_error(FailureCategory.TLS, 'curl error: [60] SSL peer certificate')

        self.assertIsInstance(error, TransportError)
        self.assertEqual(FailureCategory.TLS, error.category)
        self.assertEqual(TLS_HINT, error.hint)
        self.assertEqual('curl error: [60] SSL peer certificate', error.message)


@ddt
class TestCurlCodes(TestCase):
    @data(
        (5, FailureCategory.PROXY_RESOLUTION),
        (6, FailureCategory.HOST_RESOLUTION),
        (7, FailureCategory.CONNECTION),
        (28, FailureCategory.TIMEOUT),
        (35, FailureCategory.TLS),
        (47, FailureCategory.TOO_MANY_REDIRECTS),
        (60, FailureCategory.TLS),
        (1, FailureCategory.OTHER),
        (56, FailureCategory.OTHER),
    )
    @unpack
    def test_category(self, code, expected):
        self.assertEqual(expected, category_for_curl_code(code))


@ddt
class TestRequestsExceptions(TestCase):
    @data(
        (requests.exceptions.ConnectionError(name_resolution_error()), FailureCategory.HOST_RESOLUTION),
        (requests.exceptions.ProxyError(name_resolution_error('bad-proxy.invalid')),
         FailureCategory.PROXY_RESOLUTION),
        (requests.exceptions.ProxyError('Tunnel connection failed: 407 Proxy Authentication Required'),
         FailureCategory.CONNECTION),
        (requests.exceptions.SSLError('certificate verify failed'), FailureCategory.TLS),
        (requests.exceptions.TooManyRedirects('Exceeded 3 redirects.'), FailureCategory.TOO_MANY_REDIRECTS),
        (requests.exceptions.ConnectTimeout('timed out'), FailureCategory.TIMEOUT),
        (requests.exceptions.ReadTimeout('timed out'), FailureCategory.TIMEOUT),
        (requests.exceptions.ConnectionError('Connection refused'), FailureCategory.CONNECTION),
        (requests.exceptions.ChunkedEncodingError('broken'), FailureCategory.OTHER),
    )
    @unpack
    def test_category(self, exc, expected):
        self.assertEqual(expected, category_for_requests_exception(exc))

    def test_resolution_failure_found_through_cause(self):
        try:
            try:
                raise name_resolution_error()
            except NameResolutionError as e:
                raise requests.exceptions.ConnectionError('wrapped') from e
        except requests.exceptions.ConnectionError as e:
            self.assertEqual(FailureCategory.HOST_RESOLUTION, category_for_requests_exception(e))


@ddt
class TestErrors(TestCase):
    @data(
        (TransportError('boom'), ErrorKind.TRANSPORT, 'transport error: boom'),
        (FileIOError('disk full'), ErrorKind.IO, 'io error: disk full'),
        (ConfigurationError('bad url'), ErrorKind.CONFIGURATION, 'config error: bad url'),
        (HttpError('bad method'), ErrorKind.HTTP, 'http error: bad method'),
    )
    @unpack
    def test_kind_and_str(self, error, kind, rendered):
        self.assertEqual(kind, error.kind)
        self.assertEqual(rendered, str(error))

    def test_only_transport_errors_carry_hints(self):
        self.assertIsNone(ConfigurationError('x').hint)
        self.assertIsNone(TransportError('x').hint)
        self.assertEqual('try this', TransportError('x', hint='try this').hint)
