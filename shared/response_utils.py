"""
Shaping of the model response into the final AnalysisResult.

The model is asked for JSON but may wrap it in a Markdown code fence.
Image references come back as indexes into the deduplicated candidate list;
references that point outside the list are dropped without error.
"""

import json
from typing import Dict, List, Optional

from .errors import ParseError
from .image_utils import with_attribution

IMAGE_ANNOTATIONS = ('people_shown', 'date', 'location')


def strip_code_fence(text: str) -> str:
    """
    Return the body of a ```json or ``` fence, or the text itself.

    Examples:
        >>> strip_code_fence('```json\\n{"a": 1}\\n```')
        '{"a": 1}'

        >>> strip_code_fence('{"a": 1}')
        '{"a": 1}'
    """
    if not text:
        return ''
    if '```json' in text:
        text = text.split('```json', 1)[1].split('```', 1)[0]
    elif '```' in text:
        parts = text.split('```')
        if len(parts) > 1:
            text = parts[1]
    return text.strip()


def parse_model_response(text: str) -> Dict:
    """Parse the model output as a JSON object. Raises ParseError."""
    try:
        parsed = json.loads(strip_code_fence(text))
    except (TypeError, ValueError):
        raise ParseError('Failed to parse model response')

    if not isinstance(parsed, dict):
        raise ParseError('Failed to parse model response')
    return parsed


def _index_of(ref) -> Optional[int]:
    if not isinstance(ref, dict):
        return None
    index = ref.get('image_index')
    # bool is an int subclass; True is not image 1
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    return index


def resolve_image_refs(refs, images: List[Dict]) -> List[Dict]:
    """
    Map model image references to image candidates.

    Each resolved entry is the candidate plus attribution and the model's
    annotations. Non-integer and out-of-range indexes are skipped.
    """
    resolved = []
    if not isinstance(refs, list):
        return resolved

    for ref in refs:
        index = _index_of(ref)
        if index is None or not 0 <= index < len(images):
            continue

        image = with_attribution(images[index])
        image['relevance'] = ref.get('relevance') or ''
        for key in IMAGE_ANNOTATIONS:
            if ref.get(key):
                image[key] = ref[key]
        resolved.append(image)

    return resolved


def shape_entity(entity: Dict, images: List[Dict]) -> Dict:
    return {
        'name': entity.get('name') or '',
        'type': entity.get('type') or '',
        'role': entity.get('role') or '',
        'description': entity.get('description') or '',
        'pronouns': entity.get('pronouns') or '',
        'images': resolve_image_refs(entity.get('images'), images),
    }


def shape_result(
    parsed: Dict,
    episode_title: str,
    episode_url: str,
    images: List[Dict],
    all_images_limit: Optional[int] = 50,
) -> Dict:
    """
    Build the AnalysisResult returned to the client.

    `allImages` lists every deduplicated candidate (capped when
    `all_images_limit` is set), whether or not an entity uses it.
    """
    entities = parsed.get('entities') or []
    if not isinstance(entities, list):
        entities = []

    all_images = images if all_images_limit is None else images[:all_images_limit]

    return {
        'episode': {'title': episode_title, 'url': episode_url},
        'summary': parsed.get('summary') or '',
        'entities': [shape_entity(e, images) for e in entities if isinstance(e, dict)],
        'allImages': [with_attribution(image) for image in all_images],
    }
