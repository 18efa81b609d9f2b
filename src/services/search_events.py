"""
Checkpoint events emitted by the search pipeline.

The orchestrator never logs directly; it reports to a SearchEventSink. The
default sink forwards to the standard logger with structured ``extra`` fields.
"""
import logging
from typing import Any

CACHE_HIT = "cache_hit"
CACHE_MISS = "cache_miss"
ADAPTER_FAILURE = "adapter_failure"
CANDIDATE_SKIPPED = "candidate_skipped"
CANDIDATE_FAILED = "candidate_failed"
STAGE_COMPLETE = "stage_complete"


class SearchEventSink:
    def emit(self, event: str, **fields: Any) -> None:
        raise NotImplementedError


class NullEventSink(SearchEventSink):
    def emit(self, event: str, **fields: Any) -> None:
        return None


class LoggingEventSink(SearchEventSink):
    LEVELS = {
        CACHE_HIT: logging.DEBUG,
        CACHE_MISS: logging.DEBUG,
        ADAPTER_FAILURE: logging.WARNING,
        CANDIDATE_SKIPPED: logging.WARNING,
        CANDIDATE_FAILED: logging.ERROR,
        STAGE_COMPLETE: logging.INFO,
    }

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger("src.search")

    def emit(self, event: str, **fields: Any) -> None:
        level = self.LEVELS.get(event, logging.INFO)
        # LogRecord reserves "name", "message" etc.; prefix to stay clear of them
        extra = {f"event_{key}": value for key, value in fields.items()}
        extra["event"] = event
        self.logger.log(level, f"[search] {event}", extra=extra)
