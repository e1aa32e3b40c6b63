from ddt import ddt, data, unpack
from unittest import TestCase

from ncurl.builder import RequestBuilder, split_credentials
from ncurl.errors import ConfigurationError
from ncurl.model import Method


@ddt
class TestMethodDefaults(TestCase):
    @data(
        # Nothing chosen: GET.
        (RequestBuilder('https://x.com'), 'GET', False),
        # A body without an explicit method means POST.
        (RequestBuilder('https://x.com').data('{}'), 'POST', False),
        # Head-only without an explicit method means HEAD.
        (RequestBuilder('https://x.com').head_only(), 'HEAD', False),
        # The body wins over head-only.
        (RequestBuilder('https://x.com').data('a=1').head_only(), 'POST', False),
        # An explicit method always wins.
        (RequestBuilder('https://x.com').method('PUT').data('{}'), 'PUT', True),
        (RequestBuilder('https://x.com').method(Method.GET).head_only(), 'GET', True),
        (RequestBuilder('https://x.com').method('purge'), 'PURGE', True),
    )
    @unpack
    def test_method(self, builder, expected, explicit):
        descriptor = builder.build()

        self.assertEqual(expected, descriptor.method)
        self.assertEqual(explicit, descriptor.method_explicit)

    def test_data_is_encoded(self):
        descriptor = RequestBuilder('https://example.com').data('{}').build()

        self.assertEqual('POST', descriptor.method)
        self.assertEqual(b'{}', descriptor.body)

    def test_bytes_data_is_kept(self):
        self.assertEqual(b'\x00\x01', RequestBuilder('https://example.com').data(b'\x00\x01').build().body)

    def test_invalid_method(self):
        with self.assertRaises(ConfigurationError):
            RequestBuilder('https://example.com').method('NOT A VERB')


@ddt
class TestRequestBuilder(TestCase):
    def test_setters_do_not_mutate(self):
        base = RequestBuilder('https://example.com').header('Accept: text/html')
        extended = base.header('X-Custom: foo').insecure()

        self.assertEqual(('Accept: text/html',), base.build().headers)
        self.assertFalse(base.build().insecure)
        self.assertEqual(('Accept: text/html', 'X-Custom: foo'), extended.build().headers)
        self.assertTrue(extended.build().insecure)

    def test_headers_keep_order_and_duplicates(self):
        descriptor = (RequestBuilder('https://example.com')
                      .header('X-B: 1')
                      .header('X-A: 2')
                      .header('X-B: 3')
                      .build())

        self.assertEqual(('X-B: 1', 'X-A: 2', 'X-B: 3'), descriptor.headers)

    def test_resolve_entries_accumulate(self):
        descriptor = (RequestBuilder('https://example.com')
                      .resolve('a.com:443:1.1.1.1')
                      .resolve('b.com:80:2.2.2.2')
                      .build())

        self.assertEqual(('a.com:443:1.1.1.1', 'b.com:80:2.2.2.2'), descriptor.resolve_overrides)

    def test_sets_all_fields(self):
        descriptor = (RequestBuilder('https://test.com')
                      .negotiate()
                      .ntlm()
                      .insecure()
                      .ca_cert('/ca.pem')
                      .ssl_no_revoke()
                      .credentials('admin:secret')
                      .bearer('tok123')
                      .proxy('http://proxy:8080')
                      .proxy_credentials('puser:ppass')
                      .proxy_negotiate()
                      .proxy_ntlm()
                      .proxy_insecure()
                      .proxy_ca_cert('/proxy-ca.pem')
                      .no_proxy('localhost,127.0.0.1')
                      .connect_timeout(10)
                      .max_time(30.5)
                      .max_redirects(5)
                      .location()
                      .show_timing()
                      .compressed()
                      .user_agent('ncurl/0.1')
                      .output('/tmp/out.html')
                      .verbose()
                      .silent()
                      .cookie('/tmp/cookies')
                      .cookie_jar('/tmp/jar')
                      .build())

        self.assertTrue(descriptor.use_negotiate)
        self.assertTrue(descriptor.use_ntlm)
        self.assertTrue(descriptor.insecure)
        self.assertEqual('/ca.pem', descriptor.ca_cert_path)
        self.assertTrue(descriptor.disable_revocation_check)
        self.assertEqual('admin', descriptor.username)
        self.assertEqual('secret', descriptor.password)
        self.assertEqual('tok123', descriptor.bearer_token)
        self.assertEqual('http://proxy:8080', descriptor.proxy_url)
        self.assertEqual('puser', descriptor.proxy_username)
        self.assertEqual('ppass', descriptor.proxy_password)
        self.assertTrue(descriptor.proxy_use_negotiate)
        self.assertTrue(descriptor.proxy_use_ntlm)
        self.assertTrue(descriptor.proxy_insecure)
        self.assertEqual('/proxy-ca.pem', descriptor.proxy_ca_cert_path)
        self.assertEqual('localhost,127.0.0.1', descriptor.no_proxy_list)
        self.assertEqual(10, descriptor.connect_timeout)
        self.assertEqual(30.5, descriptor.max_time)
        self.assertEqual(5, descriptor.max_redirects)
        self.assertTrue(descriptor.follow_redirects)
        self.assertTrue(descriptor.show_timing)
        self.assertTrue(descriptor.accept_compressed)
        self.assertEqual('ncurl/0.1', descriptor.user_agent)
        self.assertEqual('/tmp/out.html', descriptor.output_path)
        self.assertTrue(descriptor.verbose)
        self.assertTrue(descriptor.silent)
        self.assertEqual('/tmp/cookies', descriptor.cookie_file)
        self.assertEqual('/tmp/jar', descriptor.cookie_jar)

    @data('', '   ')
    def test_url_is_required(self, url):
        with self.assertRaises(ConfigurationError):
            RequestBuilder(url).build()

    @data(
        RequestBuilder('https://x.com').connect_timeout(-1),
        RequestBuilder('https://x.com').max_time(-0.5),
        RequestBuilder('https://x.com').max_redirects(-1),
    )
    def test_negative_limits_are_rejected(self, builder):
        with self.assertRaises(ConfigurationError):
            builder.build()


@ddt
class TestSplitCredentials(TestCase):
    @data(
        ('user:pass', ('user', 'pass')),
        ('user', ('user', None)),
        ('user:', ('user', '')),
        ('user:pa:ss', ('user', 'pa:ss')),
        (':', ('', '')),
    )
    @unpack
    def test_split(self, value, expected):
        self.assertEqual(expected, split_credentials(value))
