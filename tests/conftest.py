"""
Shared pytest fixtures for Episode Image Finder tests.
"""

import pytest
import sys
import importlib.util
from pathlib import Path

from shared.config import AnalyzerConfig

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load Cloud Function modules with unique names at module load time
_episode_analyzer_module = _load_module_from_path(
    'episode_analyzer_main',
    PROJECT_ROOT / 'episode-analyzer' / 'main.py'
)

_image_downloader_module = _load_module_from_path(
    'image_downloader_main',
    PROJECT_ROOT / 'image-downloader' / 'main.py'
)


SEED_URL = 'https://www.podcast.example.com/episodes/12-the-lake-house'


# ============================================================================
# Episode Analyzer Function Fixtures
# ============================================================================

@pytest.fixture
def analyzer_module():
    """The loaded episode-analyzer main module (for patching)."""
    return _episode_analyzer_module


@pytest.fixture
def fetch_page():
    """Returns fetch_page function from episode-analyzer."""
    return _episode_analyzer_module.fetch_page


@pytest.fixture
def fetch_source():
    """Returns fetch_source function from episode-analyzer."""
    return _episode_analyzer_module.fetch_source


@pytest.fixture
def call_model():
    """Returns call_model function from episode-analyzer."""
    return _episode_analyzer_module.call_model


@pytest.fixture
def iter_analysis():
    """Returns iter_analysis generator from episode-analyzer."""
    return _episode_analyzer_module.iter_analysis


@pytest.fixture
def analyze_episode_url():
    """Returns analyze_episode_url function from episode-analyzer."""
    return _episode_analyzer_module.analyze_episode_url


@pytest.fixture
def analyze_episode():
    """Returns main entry point from episode-analyzer."""
    return _episode_analyzer_module.analyze_episode


# ============================================================================
# Image Downloader Function Fixtures
# ============================================================================

@pytest.fixture
def download_image():
    """Returns main entry point from image-downloader."""
    return _image_downloader_module.download_image


@pytest.fixture
def attachment_filename():
    """Returns attachment_filename function from image-downloader."""
    return _image_downloader_module.attachment_filename


# ============================================================================
# Configuration and request fixtures
# ============================================================================

@pytest.fixture
def config():
    """Config with no inter-request delay and a fake model key."""
    return AnalyzerConfig(request_delay=0, gemini_api_key='test-key')


@pytest.fixture
def analyzer_env(monkeypatch):
    """Environment for handler tests: fake key, no delay."""
    monkeypatch.setenv('GEMINI_API_KEY', 'test-key')
    monkeypatch.setenv('ANALYZER_REQUEST_DELAY', '0')
    monkeypatch.delenv('ANALYZER_MAX_SOURCES', raising=False)
    monkeypatch.delenv('ANALYZER_ALL_IMAGES_LIMIT', raising=False)


@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST', args=None):
            self._json = json_data
            self.method = method
            self.args = args or {}
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# HTML fixtures
# ============================================================================

@pytest.fixture
def seed_url():
    return SEED_URL


@pytest.fixture
def seed_html():
    """Episode page with sources, a photo, an icon and site chrome."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Case 12: The Lake House | True Crime Weekly</title>
        <meta property="og:image" content="https://cdn.podcast.example.com/covers/case-12.jpg">
        <script>var tracking = "do not index me";</script>
        <style>.hero { color: red; }</style>
    </head>
    <body>
        <nav>
            <a href="/">Home</a>
            <img src="/static/logo.png" alt="Logo">
        </nav>
        <article>
            <h1>Case 12: The Lake House</h1>
            <p>In 1998 Jane Roe disappeared from her family's lake house.</p>
            <figure>
                <img src="/images/jane-roe.jpg" width="150" height="150" alt="Jane Roe">
                <figcaption>Jane Roe in 1997</figcaption>
            </figure>
            <img src="/images/play-icon.png" width="50" height="50" alt="Play">
            <p>Sources:
                <a href="https://news.example.org/story-1">Local news</a>
                <a href="https://news.example.org/story-1#comments">Comments</a>
                <a href="https://court.example.gov/ruling.pdf">Ruling</a>
                <a href="/episodes/11">Previous episode</a>
                <a href="https://podcast.example.com/about">About</a>
                <a href="mailto:tips@podcast.example.com">Send a tip</a>
            </p>
        </article>
        <footer>
            <img src="/static/footer-banner.jpg" alt="Sponsor">
            <a href="https://sponsor.example.net/">Sponsor</a>
        </footer>
    </body>
    </html>
    """


@pytest.fixture
def source_html():
    """A news source page with one photo and a lazy-loaded image."""
    return """
    <html>
    <head><title>Woman missing after lake visit | Example News</title></head>
    <body>
        <div class="article-body">
            <p>Police searched the lake for Jane Roe on Sunday.</p>
            <div class="wp-caption">
                <img src="https://news.example.org/uploads/search-team.jpeg?w=800" alt="Search team">
                <p class="wp-caption-text">Divers at the lake</p>
            </div>
            <img src="data:image/gif;base64,R0lGOD" data-src="/uploads/lake.webp" alt="The lake">
        </div>
        <div class="sidebar-widget">
            <img src="/uploads/ad-300x250.png" alt="Advertisement">
        </div>
    </body>
    </html>
    """
