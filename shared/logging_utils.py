"""
Logging for the Cloud Functions.

Cloud Logging collects stdout and stamps each entry itself, so lines carry
only level, logger and message. Library loggers that chatter at INFO on every
request (one line per connection for a ten-source crawl) are held at WARNING.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(levelname)s %(name)s: %(message)s'
DEFAULT_LEVEL = 'INFO'
QUIET_LOGGERS = ('urllib3', 'charset_normalizer', 'google.auth', 'google.api_core')

_HANDLER_NAME = 'episode-image-finder'


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get('LOG_LEVEL') or DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> logging.Handler:
    """
    Attach one stdout handler to the root logger and set its level.

    An explicit `level` wins over LOG_LEVEL. Both function modules call this
    at import, and they share one handler however many times it runs. Handlers
    installed by someone else (pytest's capture, a local runner) stay in place.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
