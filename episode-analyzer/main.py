"""
Episode Analyzer Cloud Function

Finds the people, places and images behind a podcast episode.

Responsibilities:
- Fetch the episode page and extract title, text, source links and images
- Crawl the linked source pages one hop deep (sequentially, with a delay)
- Deduplicate image candidates
- Ask Gemini to identify entities and match images by index
- Shape the response into the AnalysisResult returned to the browser
- Optionally stream STATUS lines while working, then one RESULT line

Does NOT:
- Persist results (the browser exports JSON itself)
- Retry failed pages (a failed source is skipped, a failed seed is fatal)
- Proxy image downloads (image-downloader's job)
"""

import functions_framework
import google.generativeai as genai
import requests
from flask import Response
import json
import logging
import os
import sys
import time

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from shared.config import AnalyzerConfig
from shared.errors import AnalyzerError, ConfigurationError, FetchError, InvalidRequestError, ModelServiceError
from shared.extract_utils import extract_page
from shared.image_utils import dedupe_images
from shared.logging_utils import configure_logging
from shared.prompt_utils import build_prompt
from shared.response_utils import parse_model_response, shape_result
from shared.stream_utils import RESULT, STATUS, format_event, format_result
from shared.url_utils import normalize_url, site_domain

configure_logging()
logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')

PREFLIGHT_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'POST',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Max-Age': '3600'
}


def fetch_page(url: str, config: AnalyzerConfig) -> requests.Response:
    """Fetch a page. Raises FetchError on network errors and non-2xx statuses."""
    headers = {
        'User-Agent': config.user_agent,
        'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        'Accept-Language': 'en-US,en;q=0.5',
    }

    try:
        response = requests.get(url, headers=headers, timeout=config.fetch_timeout, allow_redirects=True)
        response.raise_for_status()
    except requests.exceptions.Timeout:
        raise FetchError('Request timed out', url=url)
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code
        raise FetchError(f'HTTP {status}', url=url, status=status)
    except requests.exceptions.RequestException as e:
        raise FetchError(f'Request failed: {str(e)}', url=url)

    return response


def is_html_response(response: requests.Response) -> bool:
    content_type = (response.headers.get('Content-Type') or '').lower()
    return any(t in content_type for t in HTML_CONTENT_TYPES)


def page_markup(response: requests.Response):
    """
    Markup to hand to the extractor.

    Without a charset in Content-Type, requests decodes text/html as
    ISO-8859-1. Raw bytes let BeautifulSoup use <meta charset> or sniff.
    """
    if 'charset=' in (response.headers.get('Content-Type') or '').lower():
        return response.text
    return response.content


def fetch_source(url: str, config: AnalyzerConfig) -> dict:
    """
    Fetch and extract one source page.

    Returns the extracted page, or None if the source has to be skipped
    (network error, non-2xx, non-HTML). Never raises FetchError.
    """
    try:
        response = fetch_page(url, config)
    except FetchError as e:
        logger.info(f"Skipping source {url}: {e.message}")
        return None

    if not is_html_response(response):
        logger.info(f"Skipping non-HTML source {url} ({response.headers.get('Content-Type')})")
        return None

    return extract_page(
        page_markup(response),
        url,
        text_limit=config.source_text_limit,
        max_images=config.max_images_per_page,
    )


def call_model(prompt: str, config: AnalyzerConfig) -> str:
    """Send the prompt to Gemini and return the raw response text."""
    if not config.gemini_api_key:
        raise ConfigurationError('GEMINI_API_KEY not configured')

    try:
        genai.configure(api_key=config.gemini_api_key)
        model = genai.GenerativeModel(config.model_name)
        response = model.generate_content(
            prompt,
            generation_config={'max_output_tokens': config.max_output_tokens},
        )
        return response.text
    except Exception as e:
        logger.error(f"Gemini call failed: {e}")
        raise ModelServiceError(f'Model API error: {str(e)}')


def iter_analysis(url: str, config: AnalyzerConfig):
    """
    Run the whole pipeline, yielding (kind, payload) events.

    Yields any number of (STATUS, message) events followed by exactly one
    (RESULT, AnalysisResult). Fatal problems raise AnalyzerError; nothing
    partial is ever yielded as a result.
    """
    if not config.gemini_api_key:
        raise ConfigurationError('GEMINI_API_KEY not configured')

    # Step 1: Seed page
    yield STATUS, f'Fetching episode page {url}'
    try:
        response = fetch_page(url, config)
    except FetchError as e:
        raise FetchError(f'Failed to fetch episode: {e.message}', url=url, status=e.status)

    episode = extract_page(
        page_markup(response),
        url,
        seed_domain=site_domain(url),
        text_limit=config.seed_text_limit,
        max_images=config.max_images_per_page,
        max_links=config.max_links,
    )
    source_links = episode['links'][:config.max_sources]
    all_images = list(episode['images'])
    yield STATUS, f'Found "{episode["title"]}" with {len(source_links)} source links and {len(all_images)} images'

    # Step 2: Sources, one at a time
    source_pages = []
    for i, source_url in enumerate(source_links, 1):
        if config.request_delay > 0:
            time.sleep(config.request_delay)
        yield STATUS, f'Fetching source {i}/{len(source_links)}: {source_url}'

        page = fetch_source(source_url, config)
        if page is None:
            continue

        source_pages.append({'url': source_url, 'title': page['title'], 'text': page['text']})
        all_images.extend(page['images'])

    # Step 3: Deduplicate and prompt
    images = dedupe_images(all_images)
    yield STATUS, f'Collected {len(source_pages)} source pages and {len(images)} unique images'

    prompt = build_prompt(episode['title'], episode['text'], source_pages, images, config)

    # Step 4: Model
    yield STATUS, 'Asking the model to identify people, places and matching images'
    response_text = call_model(prompt, config)

    # Step 5: Shape
    parsed = parse_model_response(response_text)
    result = shape_result(parsed, episode['title'], url, images, config.all_images_limit)
    yield STATUS, f'Identified {len(result["entities"])} entities'

    yield RESULT, result


def analyze_episode_url(url: str, config: AnalyzerConfig = None) -> dict:
    """Run the pipeline to completion and return the AnalysisResult."""
    config = config or AnalyzerConfig.from_env()

    result = None
    for kind, payload in iter_analysis(url, config):
        if kind == STATUS:
            logger.info(payload)
        elif kind == RESULT:
            result = payload
    return result


def validate_request(request_json: dict) -> str:
    """Return the normalized episode URL or raise InvalidRequestError."""
    url = request_json.get('url') if isinstance(request_json, dict) else None

    if not url or not isinstance(url, str) or not url.strip():
        raise InvalidRequestError('Missing required field: url')

    normalized = normalize_url(url, url)
    if not normalized:
        raise InvalidRequestError(f'Invalid URL: {url}')
    return normalized


def _unexpected_error(e: Exception) -> dict:
    return {
        'stage': 'processing',
        'message': f'Server error: {str(e)}',
        'recoverable': False
    }


def stream_analysis(url: str, config: AnalyzerConfig):
    """Generator of STATUS/RESULT lines for a streaming response."""
    try:
        for kind, payload in iter_analysis(url, config):
            yield format_event(kind, payload)
    except AnalyzerError as e:
        logger.warning(f"Analysis of {url} failed at {e.stage}: {e.message}")
        yield format_result({'url': url, 'error': e.to_dict()})
    except Exception as e:
        logger.exception(f"Unhandled error analyzing {url}")
        yield format_result({'url': url, 'error': _unexpected_error(e)})


@functions_framework.http
def analyze_episode(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "url": "https://podcast.example.com/episodes/12",
        "stream": false
    }

    With "stream": true the response is text/plain STATUS:/RESULT: lines.
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        return ('', 204, PREFLIGHT_HEADERS)

    headers = {'Access-Control-Allow-Origin': '*', 'Content-Type': 'application/json'}

    request_json = request.get_json(silent=True)
    if not isinstance(request_json, dict):
        request_json = {}

    try:
        url = validate_request(request_json)
        config = AnalyzerConfig.from_env()
    except AnalyzerError as e:
        return (json.dumps({'error': e.to_dict()}), e.status_code, headers)

    if request_json.get('stream'):
        return Response(
            stream_analysis(url, config),
            mimetype='text/plain',
            headers={'Access-Control-Allow-Origin': '*', 'Cache-Control': 'no-cache'},
        )

    try:
        result = analyze_episode_url(url, config)
        return (json.dumps(result), 200, headers)

    except AnalyzerError as e:
        logger.warning(f"Analysis of {url} failed at {e.stage}: {e.message}")
        return (json.dumps({'url': url, 'error': e.to_dict()}), e.status_code, headers)

    except Exception as e:
        logger.exception(f"Unhandled error analyzing {url}")
        return (json.dumps({'url': url, 'error': _unexpected_error(e)}), 500, headers)
