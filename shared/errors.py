"""
Error types for the Episode Image Finder.

Every fatal condition is raised as an AnalyzerError subclass and rendered
into the error contract used by the HTTP handlers:

    {'stage': 'fetch', 'message': 'Failed to fetch episode: HTTP 503', 'recoverable': True}

Source pages that fail to fetch are NOT errors at the request level; the
crawl loop catches FetchError and skips them.
"""

from typing import Dict


class AnalyzerError(Exception):
    """Base error carrying the stage it happened in."""

    stage = 'processing'
    status_code = 500
    recoverable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {
            'stage': self.stage,
            'message': self.message,
            'recoverable': self.recoverable,
        }


class InvalidRequestError(AnalyzerError):
    """Request body is missing the url or it is not http(s)."""

    stage = 'input'
    status_code = 400


class ConfigurationError(AnalyzerError):
    """Missing model credential or other deployment setting."""

    stage = 'config'
    status_code = 500


class FetchError(AnalyzerError):
    """
    A page could not be fetched (network error, timeout, non-2xx).

    Network errors, 429 and 5xx are recoverable; other 4xx are not, since
    retrying won't make a missing or forbidden page appear.
    """

    stage = 'fetch'
    status_code = 400

    def __init__(self, message: str, url: str = None, status: int = None):
        super().__init__(message)
        self.url = url
        self.status = status
        self.recoverable = status is None or status == 429 or status >= 500


class ModelServiceError(AnalyzerError):
    """The language model call failed; message holds the upstream text."""

    stage = 'ai_analysis'
    status_code = 500
    recoverable = True


class ParseError(AnalyzerError):
    """Model output was not a JSON object after code fence stripping."""

    stage = 'parse'
    status_code = 500
