"""
Prompt construction for the entity and image matching call.

The prompt is a deterministic function of its inputs: the same pages and
images always produce the same text.
"""

from typing import Dict, List

from .config import AnalyzerConfig
from .url_utils import attribution_for

ENTITY_TYPES = ['Person', 'Location', 'Organization']
ENTITY_ROLES = ['victim', 'suspect', 'investigator', 'witness', 'family', 'location', 'organization', 'other']

RESPONSE_SCHEMA = """{
  "episode_title": "string",
  "summary": "2-3 sentence case overview",
  "entities": [
    {
      "name": "Full Name",
      "type": "Person or Location or Organization",
      "role": "victim/suspect/investigator/witness/family/location/organization/other",
      "description": "1-2 factual sentences",
      "pronouns": "he/him or she/her or they/them or empty string",
      "images": [
        {
          "image_index": 0,
          "relevance": "why this image relates to the entity",
          "people_shown": "who is visible, or empty string",
          "date": "when the image was taken, or empty string",
          "location": "where the image was taken, or empty string"
        }
      ]
    }
  ]
}"""

RULES = """RULES:
- Only use images from the IMAGE CANDIDATES list, referenced by their number (IMG_3 -> "image_index": 3)
- Never invent image URLs
- Pronouns: only include if clearly stated in the text (he/him, she/her, they/them), otherwise empty string
- people_shown, date, location: only fill in if the alt text, caption or context says so, otherwise empty string
- Keep descriptions factual and taken from the source material only
- An entity may have no images"""


def format_image_line(index: int, image: Dict, context_chars: int) -> str:
    """One '[IMG_n] ...' line for the candidate list."""
    source = image.get('sourcePageTitle') or ''
    host = attribution_for(image.get('sourcePageUrl', ''))
    if host:
        source = f"{source} ({host})" if source else host

    parts = [
        f"[IMG_{index}] URL: {image.get('url', '')}",
        f"Alt: {image.get('alt') or '(none)'}",
    ]
    if image.get('caption'):
        parts.append(f"Caption: {image['caption']}")
    if image.get('context'):
        parts.append(f"Context: {image['context'][:context_chars]}")
    parts.append(f"Source: {source or '(unknown)'}")
    return ' | '.join(parts)


def format_sources(source_pages: List[Dict], max_pages: int, max_chars: int) -> str:
    blocks = []
    for page in source_pages[:max_pages]:
        blocks.append(f"--- SOURCE: {page.get('title', '')} ({page.get('url', '')}) ---\n{page.get('text', '')[:max_chars]}")
    return '\n\n'.join(blocks) if blocks else '(no source pages could be fetched)'


def build_prompt(
    episode_title: str,
    episode_text: str,
    source_pages: List[Dict],
    images: List[Dict],
    config: AnalyzerConfig = None,
) -> str:
    """
    Render the full instruction for the model.

    `images` must be the deduplicated list: IMG_n refers to images[n], and
    the response is resolved against the same list.
    """
    config = config or AnalyzerConfig()

    image_lines = [
        format_image_line(i, image, config.prompt_context_chars)
        for i, image in enumerate(images[:config.prompt_max_images])
    ]
    image_list = '\n'.join(image_lines) if image_lines else '(no image candidates found)'

    source_texts = format_sources(source_pages, config.prompt_max_sources, config.prompt_source_chars)

    return f"""Analyze this true crime podcast episode and extract the key people, locations and organizations. Match relevant images to each of them.

EPISODE: "{episode_title}"

EPISODE TEXT:
{episode_text[:config.prompt_episode_chars]}

SOURCE TEXTS:
{source_texts}

IMAGE CANDIDATES:
{image_list}

Extract the main people (victims, suspects, investigators, witnesses, family), the key locations and any organizations involved. For each one, pick the images from the list above that show them.

{RULES}

Return ONLY valid JSON in exactly this format:
{RESPONSE_SCHEMA}
"""
