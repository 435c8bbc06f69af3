"""
HTML extraction for episode and source pages.

Turns raw HTML into a page record:

    {
        'title': 'Episode 12: The Case',
        'text': 'visible page text, whitespace collapsed, truncated',
        'links': ['https://news.example.org/story', ...],
        'images': [ImageCandidate, ...],
    }

An ImageCandidate is a dict with url, alt, caption, context, sourcePageUrl
and sourcePageTitle. Only absolute http(s) raster images survive, and
anything that looks like an icon, navigation or advertising asset is dropped.
"""

import re
from typing import Dict, List, Optional, Union

from bs4 import BeautifulSoup

from .url_utils import is_image_url, is_same_site, normalize_url

UNTITLED = 'Untitled'

# Elements whose text is never visible
NON_VISIBLE_TAGS = ['script', 'style', 'noscript', 'template']

# Main content region
CONTENT_CLASS = re.compile(r'content|post|article|entry', re.I)

# Lazy loaders keep the real image URL in data-* attributes
IMAGE_SOURCE_ATTRS = ('src', 'data-src', 'data-lazy-src', 'data-original')

# Images inside these are site chrome, not story images
EXCLUDED_CONTAINER_TAGS = {'nav', 'footer', 'aside', 'header'}
EXCLUDED_CONTAINER_MARKERS = {
    'nav', 'navbar', 'navigation', 'menu',
    'footer', 'sidebar', 'widget',
    'ad', 'ads', 'advert', 'advertisement', 'sponsor', 'sponsored',
}
DOCUMENT_TAGS = {'body', 'html', '[document]'}

CAPTION_CLASS = re.compile(r'caption', re.I)
BLOCK_TAGS = ['p', 'figure', 'li', 'td', 'blockquote', 'div', 'section', 'article']

MIN_IMAGE_SIZE = 100
CONTEXT_CHARS = 250
CAPTION_CHARS = 300


def _clean(text: str) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()


def _strip_non_visible(soup: BeautifulSoup) -> None:
    for element in soup.find_all(NON_VISIBLE_TAGS):
        element.decompose()


def extract_title(soup: BeautifulSoup) -> str:
    """First <h1>, else <title> up to the first '|', else 'Untitled'."""
    h1 = soup.find('h1')
    if h1:
        text = _clean(h1.get_text(' '))
        if text:
            return text

    title_tag = soup.find('title')
    if title_tag:
        text = _clean(title_tag.get_text().split('|')[0])
        if text:
            return text

    return UNTITLED


def extract_text(soup: BeautifulSoup, limit: int) -> str:
    """Visible body text, whitespace collapsed, truncated to `limit` chars."""
    _strip_non_visible(soup)
    root = soup.body or soup
    return _clean(root.get_text(separator=' '))[:limit]


def main_content_region(soup: BeautifulSoup):
    """Article/main/content element, or the whole document if none exists."""
    return (
        soup.find('article') or
        soup.find('main') or
        soup.find(attrs={'class': CONTENT_CLASS}) or
        soup
    )


def extract_links(soup: BeautifulSoup, page_url: str, seed_domain: str, limit: int) -> List[str]:
    """
    Outbound links from the main content region.

    Links are normalized, links back to the seed site are dropped, and the
    result keeps order of first appearance up to `limit` entries.
    """
    links = []
    seen = set()

    if limit <= 0:
        return links

    for anchor in main_content_region(soup).find_all('a', href=True):
        url = normalize_url(anchor['href'], page_url)
        if not url or url in seen or is_same_site(url, seed_domain):
            continue
        seen.add(url)
        links.append(url)
        if len(links) >= limit:
            break

    return links


def _image_source(img, page_url: str) -> Optional[str]:
    for attr in IMAGE_SOURCE_ATTRS:
        url = normalize_url(img.get(attr), page_url)
        if url and is_image_url(url):
            return url
    return None


def _marker_tokens(element) -> set:
    values = list(element.get('class') or [])
    if element.get('id'):
        values.append(element['id'])
    tokens = set()
    for value in values:
        tokens.update(t for t in re.split(r'[^a-z0-9]+', value.lower()) if t)
    return tokens


def _in_excluded_container(img) -> bool:
    for parent in img.parents:
        # body/html classes describe the page layout, not a container
        if parent.name in DOCUMENT_TAGS:
            break
        if parent.name in EXCLUDED_CONTAINER_TAGS:
            return True
        if _marker_tokens(parent) & EXCLUDED_CONTAINER_MARKERS:
            return True
    return False


def _parse_dimension(value) -> Optional[int]:
    """'150', '150px' -> 150. Percentages and garbage -> None."""
    if value is None:
        return None
    value = str(value).strip()
    if '%' in value:
        return None
    match = re.match(r'(\d+)', value)
    return int(match.group(1)) if match else None


def _is_icon_sized(img) -> bool:
    for attr in ('width', 'height'):
        size = _parse_dimension(img.get(attr))
        if size is not None and size < MIN_IMAGE_SIZE:
            return True
    return False


def _caption_for(img) -> str:
    figure = img.find_parent('figure')
    if figure:
        figcaption = figure.find('figcaption')
        if figcaption:
            text = _clean(figcaption.get_text(' '))
            if text:
                return text[:CAPTION_CHARS]

    # WordPress style: <div class="wp-caption"><a><img></a><p class="wp-caption-text">
    for node in (img, img.parent):
        if node is None:
            break
        for sibling in (node.find_next_sibling(True), node.find_previous_sibling(True)):
            # a caption sibling that holds its own image belongs to that image
            if sibling is None or sibling.name == 'img' or sibling.find('img'):
                continue
            if CAPTION_CLASS.search(' '.join(sibling.get('class') or [])):
                text = _clean(sibling.get_text(' '))
                if text:
                    return text[:CAPTION_CHARS]

    return ''


def _context_for(img) -> str:
    block = img.find_parent(BLOCK_TAGS)
    if not block:
        return ''
    return _clean(block.get_text(' '))[:CONTEXT_CHARS]


def _candidate(url: str, alt: str, caption: str, context: str, page_url: str, page_title: str) -> Dict:
    return {
        'url': url,
        'alt': alt,
        'caption': caption,
        'context': context,
        'sourcePageUrl': page_url,
        'sourcePageTitle': page_title,
    }


def extract_images(soup: BeautifulSoup, page_url: str, page_title: str, limit: int) -> List[Dict]:
    """
    Image candidates from <img> tags, topped up with og:image.

    Stops as soon as `limit` candidates are found.
    """
    images = []
    seen = set()

    for img in soup.find_all('img'):
        if len(images) >= limit:
            break

        url = _image_source(img, page_url)
        if not url or url in seen:
            continue
        if _in_excluded_container(img) or _is_icon_sized(img):
            continue

        seen.add(url)
        images.append(_candidate(
            url,
            _clean(img.get('alt'))[:CAPTION_CHARS],
            _caption_for(img),
            _context_for(img),
            page_url,
            page_title,
        ))

    if len(images) < limit:
        og_image = (
            soup.find('meta', attrs={'property': 'og:image'}) or
            soup.find('meta', attrs={'name': 'og:image'})
        )
        url = normalize_url(og_image.get('content'), page_url) if og_image else None
        if url and is_image_url(url) and url not in seen:
            images.append(_candidate(url, page_title, '', '', page_url, page_title))

    return images


def extract_page(
    html: Union[str, bytes],
    page_url: str,
    seed_domain: str = '',
    text_limit: int = 4000,
    max_images: int = 6,
    max_links: int = 0,
) -> Dict:
    """
    Parse one page into {title, text, links, images}.

    Source pages pass max_links=0 since the crawl is only one hop deep.
    Bytes are decoded by BeautifulSoup from <meta charset> or by sniffing.
    """
    soup = BeautifulSoup(html or '', 'html.parser')
    _strip_non_visible(soup)

    title = extract_title(soup)
    return {
        'title': title,
        'text': extract_text(soup, text_limit),
        'links': extract_links(soup, page_url, seed_domain, max_links),
        'images': extract_images(soup, page_url, title, max_images),
    }
