"""
URL normalization and small helpers
"""
import pytest

from site_audit.utils import normalize_url, origin_of, is_same_origin, route_slug, first_line, collapse_whitespace

ORIGIN = 'http://localhost:5000'
BASE = 'http://localhost:5000/blog/post-1'


class TestNormalizeUrl:
    """normalize_url"""

    @pytest.mark.parametrize('href,expected', [
        ('/about', 'http://localhost:5000/about'),
        ('post-2', 'http://localhost:5000/blog/post-2'),
        ('../contact', 'http://localhost:5000/contact'),
        ('/page#section', 'http://localhost:5000/page'),
        ('/search?q=ai#results', 'http://localhost:5000/search?q=ai'),
        ('http://localhost:5000', 'http://localhost:5000/'),
        ('HTTP://LOCALHOST:5000/Case', 'http://localhost:5000/Case'),
    ])
    def test_same_origin_links_are_resolved_without_fragment(self, href, expected):
        assert normalize_url(href, BASE, ORIGIN) == expected

    @pytest.mark.parametrize('href', [
        'mailto:hello@example.org',
        'tel:+15551234567',
        'javascript:void(0)',
        'https://twitter.com/advanta',
        'http://localhost:3000/other-port',
        'https://localhost:5000/other-scheme',
        '',
        '   ',
        None,
        '#',
        '#pricing',
    ])
    def test_non_page_targets_are_filtered(self, href):
        assert normalize_url(href, BASE, ORIGIN) is None

    def test_fragment_variants_collapse(self):
        assert normalize_url('/page#a', BASE, ORIGIN) == normalize_url('/page', BASE, ORIGIN)

    def test_default_port_is_same_origin(self):
        assert normalize_url('https://example.org:443/x', 'https://example.org/', 'https://example.org') \
            == 'https://example.org/x'


class TestOrigin:
    """origin helpers"""

    def test_origin_of_drops_default_port(self):
        assert origin_of('http://Example.org:80/path?x=1') == 'http://example.org'
        assert origin_of('http://example.org:8080/') == 'http://example.org:8080'

    def test_is_same_origin(self):
        assert is_same_origin('http://localhost:5000/a', ORIGIN)
        assert not is_same_origin('http://localhost:5001/a', ORIGIN)


class TestHelpers:
    """route_slug / first_line / collapse_whitespace"""

    def test_route_slug(self):
        assert route_slug('http://localhost:5000/') == 'home'
        assert route_slug('http://localhost:5000/ai-tool-quiz') == 'ai_tool_quiz'
        assert route_slug('http://localhost:5000/blog/post?id=3') == 'blog_post_id_3'

    def test_first_line(self):
        assert first_line(Exception("Timeout 5000ms exceeded.\nCall log:\n  - waiting")) == 'Timeout 5000ms exceeded.'
        assert first_line(ValueError()) == 'ValueError'

    def test_collapse_whitespace(self):
        assert collapse_whitespace('  a \n\n b\t c ') == 'a b c'
