"""
Unit tests for shared/url_utils.py
"""

import pytest

from shared.url_utils import (
    attribution_for,
    is_image_url,
    is_same_site,
    normalize_url,
    site_domain,
)


class TestNormalizeUrl:
    """Tests for normalize_url()"""

    def test_relative_path_resolved(self):
        assert normalize_url('/img/a.jpg', 'https://example.com/post/1') == 'https://example.com/img/a.jpg'

    def test_sibling_relative_path(self):
        assert normalize_url('b.png', 'https://example.com/post/1') == 'https://example.com/post/b.png'

    def test_protocol_relative(self):
        assert normalize_url('//cdn.example.com/a.jpg', 'https://example.com/') == 'https://cdn.example.com/a.jpg'

    def test_fragment_stripped(self):
        assert normalize_url('https://example.com/story#comments', 'https://example.com/') == 'https://example.com/story'

    def test_query_kept(self):
        assert normalize_url('/a.jpg?w=800', 'https://example.com/') == 'https://example.com/a.jpg?w=800'

    @pytest.mark.parametrize('url', [
        'mailto:someone@example.com',
        'javascript:void(0)',
        'data:image/gif;base64,R0lGOD',
        'ftp://example.com/file.jpg',
        'tel:+15551234567',
    ])
    def test_non_http_schemes_rejected(self, url):
        assert normalize_url(url, 'https://example.com/') is None

    def test_empty_rejected(self):
        assert normalize_url('', 'https://example.com/') is None
        assert normalize_url('   ', 'https://example.com/') is None
        assert normalize_url(None, 'https://example.com/') is None

    def test_no_base_and_no_scheme_rejected(self):
        assert normalize_url('not-a-valid-url', 'not-a-valid-url') is None


class TestSiteDomain:
    """Tests for site_domain() and is_same_site()"""

    def test_www_removed(self):
        assert site_domain('https://www.Example.com/path') == 'example.com'

    def test_subdomain_kept(self):
        assert site_domain('https://cdn.example.com/a.jpg') == 'cdn.example.com'

    def test_same_site_exact(self):
        assert is_same_site('https://example.com/about', 'example.com')

    def test_same_site_www(self):
        assert is_same_site('https://www.example.com/about', 'example.com')

    def test_same_site_subdomain(self):
        assert is_same_site('https://shop.example.com/', 'example.com')

    def test_other_site(self):
        assert not is_same_site('https://news.example.org/story', 'example.com')

    def test_suffix_lookalike_is_other_site(self):
        assert not is_same_site('https://notexample.com/', 'example.com')

    def test_empty_seed_domain(self):
        assert not is_same_site('https://example.com/', '')


class TestIsImageUrl:
    """Tests for is_image_url()"""

    @pytest.mark.parametrize('url', [
        'https://example.com/a.jpg',
        'https://example.com/a.JPEG',
        'https://example.com/a.png',
        'https://example.com/a.gif',
        'https://example.com/a.webp',
        'https://example.com/a.jpg?w=800&h=600',
    ])
    def test_raster_images(self, url):
        assert is_image_url(url)

    @pytest.mark.parametrize('url', [
        'https://example.com/a.svg',
        'https://example.com/page.html',
        'https://example.com/image?format=jpg',
        'https://example.com/a.jpg/view',
        '',
    ])
    def test_non_images(self, url):
        assert not is_image_url(url)


class TestAttributionFor:
    """Tests for attribution_for()"""

    def test_hostname(self):
        assert attribution_for('https://www.news.example.org/story?id=1') == 'www.news.example.org'

    def test_empty(self):
        assert attribution_for('') == ''
