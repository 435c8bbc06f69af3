"""Image candidate helpers: deduplication and public shaping."""

from typing import Dict, List

from .url_utils import attribution_for


def dedupe_images(images: List[Dict]) -> List[Dict]:
    """
    Keep the first candidate seen for each URL, in discovery order.

    Later duplicates are dropped without merging their metadata, so the
    function is idempotent.
    """
    seen = set()
    unique = []
    for image in images:
        url = image.get('url')
        if not url or url in seen:
            continue
        seen.add(url)
        unique.append(image)
    return unique


def with_attribution(image: Dict) -> Dict:
    """Copy of an image candidate with the source host as `attribution`."""
    return {
        'url': image.get('url', ''),
        'alt': image.get('alt', ''),
        'caption': image.get('caption', ''),
        'context': image.get('context', ''),
        'sourcePageUrl': image.get('sourcePageUrl', ''),
        'sourcePageTitle': image.get('sourcePageTitle', ''),
        'attribution': attribution_for(image.get('sourcePageUrl', '')),
    }
