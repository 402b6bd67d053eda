"""Domain event constants and publisher.

Events are logged for operator visibility and buffered in-process so tests
and the CLI can observe what was emitted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

RESPONSE_SAVED = "response.saved"
RESPONSE_SUBMIT_FAILED = "response.submit_failed"
CONDITIONAL_ANSWERS_SUPPRESSED = "response.conditional_answers_suppressed"

_BUFFER_LIMIT = 1000

EVENT_BUFFER: List[Dict[str, Any]] = []


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    EVENT_BUFFER.append({"type": event_type, "payload": payload})
    if len(EVENT_BUFFER) > _BUFFER_LIMIT:
        del EVENT_BUFFER[: len(EVENT_BUFFER) - _BUFFER_LIMIT]


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "RESPONSE_SAVED",
    "RESPONSE_SUBMIT_FAILED",
    "CONDITIONAL_ANSWERS_SUPPRESSED",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]
