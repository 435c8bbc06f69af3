"""
Progress-then-result streaming protocol.

A streamed analysis is plain text, one message per line:

    STATUS: Fetching episode page...
    STATUS: Crawling source 1/10: https://news.example.org/story
    RESULT: {"episode": {...}, "summary": "...", ...}

Any number of STATUS lines is followed by exactly one RESULT line. Fatal
errors are sent as RESULT: {"error": {...}} so a consumer always ends on a
result. Consumers must buffer until the RESULT marker and only then parse.
"""

import json
from typing import Dict, Iterable, List, Optional, Tuple

STATUS_PREFIX = 'STATUS:'
RESULT_PREFIX = 'RESULT:'

# Event kinds produced by the analysis pipeline
STATUS = 'status'
RESULT = 'result'


def format_status(message: str) -> str:
    # status text must stay on one line
    return f"{STATUS_PREFIX} {' '.join(str(message).split())}\n"


def format_result(payload: Dict) -> str:
    return f"{RESULT_PREFIX} {json.dumps(payload)}\n"


def format_event(kind: str, payload) -> str:
    if kind == STATUS:
        return format_status(payload)
    if kind == RESULT:
        return format_result(payload)
    raise ValueError(f'Unknown stream event kind: {kind}')


def read_stream(lines: Iterable[str]) -> Tuple[List[str], Optional[Dict]]:
    """
    Consume a stream and return (status_messages, result_payload).

    `lines` may be chunks that split lines anywhere; text is buffered until a
    full line is available. The result is None if the stream ended without a
    RESULT line.
    """
    statuses = []
    buffer = ''

    for chunk in lines:
        if isinstance(chunk, bytes):
            chunk = chunk.decode('utf-8')
        buffer += chunk
        while '\n' in buffer:
            line, buffer = buffer.split('\n', 1)
            if line.startswith(STATUS_PREFIX):
                statuses.append(line[len(STATUS_PREFIX):].strip())
            elif line.startswith(RESULT_PREFIX):
                return statuses, json.loads(line[len(RESULT_PREFIX):])

    if buffer.startswith(RESULT_PREFIX):
        return statuses, json.loads(buffer[len(RESULT_PREFIX):])
    if buffer.startswith(STATUS_PREFIX):
        statuses.append(buffer[len(STATUS_PREFIX):].strip())
    return statuses, None
