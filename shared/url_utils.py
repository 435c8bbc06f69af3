"""
URL normalization and filtering rules.

Image and source URLs are always absolute http(s) URLs with the fragment
removed. Links back to the seed site are never treated as sources.
"""

from typing import Optional
from urllib.parse import urljoin, urlparse, urlunparse

ALLOWED_SCHEMES = ('http', 'https')
IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp')


def normalize_url(url: str, base_url: str) -> Optional[str]:
    """
    Resolve `url` against `base_url` and strip the fragment.

    Returns None for empty input, unparseable input, or any scheme other than
    http/https (mailto:, javascript:, data:, ...).

    Examples:
        >>> normalize_url('/img/a.jpg#top', 'https://example.com/post/1')
        'https://example.com/img/a.jpg'

        >>> normalize_url('mailto:someone@example.com', 'https://example.com/') is None
        True
    """
    if not url or not url.strip():
        return None

    try:
        absolute = urljoin(base_url, url.strip())
        parsed = urlparse(absolute)
    except ValueError:
        return None

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        return None

    return urlunparse(parsed._replace(fragment=''))


def site_domain(url: str) -> str:
    """Lowercase host of `url` without a leading 'www.'."""
    try:
        host = urlparse(url).hostname or ''
    except ValueError:
        return ''
    host = host.lower()
    if host.startswith('www.'):
        host = host[4:]
    return host


def is_same_site(url: str, seed_domain: str) -> bool:
    """True if `url` is on the seed domain or one of its subdomains."""
    if not seed_domain:
        return False
    domain = site_domain(url)
    return domain == seed_domain or domain.endswith('.' + seed_domain)


def is_image_url(url: str) -> bool:
    """True if the URL path ends with a raster image extension (query ignored)."""
    if not url:
        return False
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return path.endswith(IMAGE_EXTENSIONS)


def attribution_for(page_url: str) -> str:
    """Hostname of the page an image was found on."""
    if not page_url:
        return ''
    try:
        return urlparse(page_url).hostname or ''
    except ValueError:
        return ''
