"""Shared utilities for the Episode Image Finder."""

from .config import (
    AnalyzerConfig,
    USER_AGENT,
)

from .errors import (
    AnalyzerError,
    InvalidRequestError,
    ConfigurationError,
    FetchError,
    ModelServiceError,
    ParseError,
)

from .url_utils import (
    normalize_url,
    site_domain,
    is_same_site,
    is_image_url,
    attribution_for,
)

from .extract_utils import (
    extract_title,
    extract_text,
    extract_links,
    extract_images,
    extract_page,
)

from .image_utils import (
    dedupe_images,
    with_attribution,
)

from .prompt_utils import build_prompt

from .response_utils import (
    strip_code_fence,
    parse_model_response,
    resolve_image_refs,
    shape_result,
)

from .stream_utils import (
    format_status,
    format_result,
    read_stream,
)

__all__ = [
    # Configuration
    'AnalyzerConfig',
    'USER_AGENT',
    # Errors
    'AnalyzerError',
    'InvalidRequestError',
    'ConfigurationError',
    'FetchError',
    'ModelServiceError',
    'ParseError',
    # URL rules
    'normalize_url',
    'site_domain',
    'is_same_site',
    'is_image_url',
    'attribution_for',
    # Extraction
    'extract_title',
    'extract_text',
    'extract_links',
    'extract_images',
    'extract_page',
    # Images
    'dedupe_images',
    'with_attribution',
    # Prompt and response
    'build_prompt',
    'strip_code_fence',
    'parse_model_response',
    'resolve_image_refs',
    'shape_result',
    # Streaming
    'format_status',
    'format_result',
    'read_stream',
]
