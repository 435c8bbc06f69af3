"""
Image Downloader Cloud Function

Proxies an image so the browser can save it as a file. Most image hosts
do not send CORS headers, so the page cannot download them directly.

GET ?url=<image URL>[&filename=<name>]
"""

import functions_framework
import requests
from flask import Response
import json
import logging
import os
import re
import sys

# Add shared module to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from shared.config import AnalyzerConfig
from shared.errors import AnalyzerError
from shared.logging_utils import configure_logging
from shared.url_utils import normalize_url

configure_logging()
logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
DEFAULT_CONTENT_TYPE = 'image/jpeg'


def extension_for(content_type: str) -> str:
    """'image/png' -> 'png', 'image/svg+xml; charset=utf-8' -> 'svg'."""
    subtype = (content_type or '').split(';')[0].split('/')[-1]
    subtype = subtype.split('+')[0].strip().lower()
    return subtype if re.fullmatch(r'[a-z0-9]+', subtype or '') else 'jpg'


def attachment_filename(content_type: str, filename: str = None) -> str:
    """Safe attachment name; falls back to image.<ext>."""
    ext = extension_for(content_type)
    if filename:
        safe = re.sub(r'[^A-Za-z0-9._-]', '_', filename).strip('._')[:100]
        if safe:
            return safe if '.' in safe else f'{safe}.{ext}'
    return f'image.{ext}'


@functions_framework.http
def download_image(request):
    """Stream the upstream image back with its content type as an attachment."""
    if request.method == 'OPTIONS':
        headers = {
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'GET',
            'Access-Control-Allow-Headers': 'Content-Type',
            'Access-Control-Max-Age': '3600'
        }
        return ('', 204, headers)

    headers = {'Access-Control-Allow-Origin': '*', 'Content-Type': 'application/json'}

    url = request.args.get('url')
    if not url:
        return (json.dumps({'error': 'No URL provided'}), 400, headers)

    image_url = normalize_url(url, url)
    if not image_url:
        return (json.dumps({'error': f'Invalid URL: {url}'}), 400, headers)

    try:
        config = AnalyzerConfig.from_env()
    except AnalyzerError as e:
        return (json.dumps({'error': e.message}), e.status_code, headers)

    try:
        upstream = requests.get(
            image_url,
            headers={'User-Agent': config.user_agent},
            timeout=config.fetch_timeout,
            stream=True,
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"Image fetch failed for {image_url}: {e}")
        return (json.dumps({'error': 'Failed to fetch image'}), 502, headers)

    if not upstream.ok:
        upstream.close()
        return (json.dumps({'error': f'HTTP {upstream.status_code}'}), upstream.status_code, headers)

    content_type = upstream.headers.get('Content-Type') or DEFAULT_CONTENT_TYPE
    filename = attachment_filename(content_type, request.args.get('filename'))

    return Response(
        upstream.iter_content(chunk_size=CHUNK_SIZE),
        status=200,
        content_type=content_type,
        headers={
            'Access-Control-Allow-Origin': '*',
            'Content-Disposition': f'attachment; filename="{filename}"',
        },
    )
