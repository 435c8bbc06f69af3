"""
Runtime configuration for the episode analyzer.

All tunables live on one frozen AnalyzerConfig that is built per request
with AnalyzerConfig.from_env() and passed explicitly through the pipeline.

Environment overrides:
- GEMINI_API_KEY: model credential (required for analysis)
- GEMINI_MODEL: model name
- ANALYZER_MAX_SOURCES: how many outbound links to crawl
- ANALYZER_FETCH_TIMEOUT: per-request timeout in seconds
- ANALYZER_REQUEST_DELAY: pause before each source fetch in seconds
- ANALYZER_ALL_IMAGES_LIMIT: cap on allImages in the result (0 = no cap)
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

USER_AGENT = 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
DEFAULT_MODEL = 'gemini-2.0-flash'


@dataclass(frozen=True)
class AnalyzerConfig:
    # Crawl
    max_sources: int = 10
    max_links: int = 10
    max_images_per_page: int = 6
    fetch_timeout: float = 8.0
    request_delay: float = 0.5
    user_agent: str = USER_AGENT

    # Text budgets
    seed_text_limit: int = 8000
    source_text_limit: int = 4000

    # Prompt budgets
    prompt_episode_chars: int = 8000
    prompt_max_sources: int = 6
    prompt_source_chars: int = 2000
    prompt_max_images: int = 30
    prompt_context_chars: int = 150

    # Result
    all_images_limit: Optional[int] = 50

    # Model
    gemini_api_key: Optional[str] = None
    model_name: str = DEFAULT_MODEL
    max_output_tokens: int = 4096

    @classmethod
    def from_env(cls) -> 'AnalyzerConfig':
        """Build a config from the current environment."""
        all_images_limit = _env_int('ANALYZER_ALL_IMAGES_LIMIT', 50)
        return cls(
            max_sources=_env_int('ANALYZER_MAX_SOURCES', 10),
            max_links=_env_int('ANALYZER_MAX_SOURCES', 10),
            fetch_timeout=_env_float('ANALYZER_FETCH_TIMEOUT', 8.0),
            request_delay=_env_float('ANALYZER_REQUEST_DELAY', 0.5),
            all_images_limit=all_images_limit if all_images_limit > 0 else None,
            gemini_api_key=os.environ.get('GEMINI_API_KEY') or None,
            model_name=os.environ.get('GEMINI_MODEL') or DEFAULT_MODEL,
        )


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f'{name} must be an integer, got {value!r}')


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f'{name} must be a number, got {value!r}')
