from mockito import mock, unstub, verify, when
from unittest import TestCase

from ncurl import engine
from ncurl.backend import Backend
from ncurl.classifier import FailureCategory, HOST_RESOLUTION_HINT, transport_error
from ncurl.engine import describe_error, perform
from ncurl.errors import ConfigurationError, FileIOError
from ncurl.model import RequestDescriptor, Response


class TestPerform(TestCase):
    def setUp(self):
        self.__backend = mock(Backend)
        when(self.__backend).identify().thenReturn(('fake', '1.0'))
        self.__descriptor = RequestDescriptor(url='https://example.com')

    def tearDown(self):
        unstub()

    def test_returns_backend_response(self):
        response = Response(status_code=204)
        when(self.__backend).execute(self.__descriptor).thenReturn(response)

        self.assertIs(response, perform(self.__descriptor, self.__backend))
        verify(self.__backend, times=1).execute(self.__descriptor)

    def test_defaults_to_configured_backend(self):
        response = Response(status_code=200)
        when(engine).get_backend().thenReturn(self.__backend)
        when(self.__backend).execute(self.__descriptor).thenReturn(response)

        self.assertIs(response, perform(self.__descriptor))

    def test_failures_propagate_without_retry(self):
        error = transport_error(FailureCategory.HOST_RESOLUTION, 'curl error: [6] Could not resolve host')
        when(self.__backend).execute(self.__descriptor).thenRaise(error)

        with self.assertRaises(type(error)) as context:
            perform(self.__descriptor, self.__backend)

        self.assertIs(error, context.exception)
        verify(self.__backend, times=1).execute(self.__descriptor)


class TestDescribeError(TestCase):
    def test_with_hint(self):
        error = transport_error(FailureCategory.HOST_RESOLUTION, 'curl error: [6] Could not resolve host')

        self.assertEqual(['Request failed: transport error: curl error: [6] Could not resolve host',
                          HOST_RESOLUTION_HINT],
                         describe_error(error))

    def test_without_hint(self):
        self.assertEqual(['Request failed: config error: bad url'], describe_error(ConfigurationError('bad url')))
        self.assertEqual(['Request failed: io error: disk full'], describe_error(FileIOError('disk full')))
