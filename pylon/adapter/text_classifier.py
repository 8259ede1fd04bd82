"""
pylon/adapter/text_classifier.py

WHAT THIS FILE IS FOR
---------------------
Decides whether a response body can be returned to the gateway verbatim
("text") or must be base64-encoded ("binary"), based only on the
response Content-Type.

MATCHING RULE
-------------
The configured patterns are combined into one regular expression:

    (?:p1|p2|...)\\b.*

matched at the START of the Content-Type value. Each pattern is an
independent alternative; the trailing word boundary plus ".*" lets
parameters such as "; charset=utf-8" through while rejecting
"application/jsonp" for the "application/json" pattern.

CONCURRENCY
-----------
The compiled matcher is replaced wholesale by a single attribute
assignment. Readers calling is_text() concurrently with configure()
observe either the old matcher or the new one, never a partial build.
A failed configure() leaves the previous matcher in force.
"""

from __future__ import annotations

import re
import threading
from functools import lru_cache
from typing import Iterable, Optional, Pattern

import structlog

from pylon.utils.errors import ConfigurationError
from pylon.utils.settings import DEFAULT_TEXT_CONTENT_TYPES, get_settings

logger = structlog.get_logger(__name__)

__all__ = [
    "DEFAULT_TEXT_CONTENT_TYPES",
    "TextClassifier",
    "get_text_classifier",
    "set_text_content_types",
]


def _compile(patterns: Iterable[str]) -> Pattern[str]:
    items = list(patterns)
    if not items:
        raise ConfigurationError("text content type list must contain at least one pattern")

    for p in items:
        if not isinstance(p, str):
            raise ConfigurationError(f"text content type pattern must be a string, got {type(p).__name__}")
        try:
            re.compile(p)
        except re.error as exc:
            raise ConfigurationError(f"invalid text content type pattern {p!r}: {exc}") from exc

    combined = "(?:" + "|".join(f"(?:{p})" for p in items) + r")\b.*"
    try:
        return re.compile(combined)
    except re.error as exc:
        raise ConfigurationError(f"invalid text content type patterns {items!r}: {exc}") from exc


class TextClassifier:
    """
    Content-type policy shared by every response writer in the process.

    Build one with the desired patterns (defaults to DEFAULT_TEXT_CONTENT_TYPES)
    and hand it to writers, or use get_text_classifier() for the shared one.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.Lock()
        self._patterns: tuple[str, ...] = ()
        self._matcher: Optional[Pattern[str]] = None
        self.configure(DEFAULT_TEXT_CONTENT_TYPES if patterns is None else patterns)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def configure(self, patterns: Iterable[str]) -> None:
        """
        Replace the recognized text content types.

        Raises:
            ConfigurationError: empty list or a pattern that does not compile.
                The previous matcher stays active.
        """
        items = tuple(patterns)
        try:
            matcher = _compile(items)
        except ConfigurationError as exc:
            logger.error("text_content_types_rejected", patterns=list(items), error=str(exc))
            raise

        # Writers serialise against each other; readers never take the lock.
        with self._lock:
            self._matcher = matcher
            self._patterns = items

        logger.info("text_content_types_configured", patterns=list(items))

    def is_text(self, content_type: str) -> bool:
        matcher = self._matcher
        return matcher is not None and matcher.match(content_type or "") is not None


@lru_cache(maxsize=1)
def get_text_classifier() -> TextClassifier:
    """
    Process-wide classifier built from Settings.text_content_types.

    Raises ConfigurationError on first call if the configured list is unusable.
    """
    return TextClassifier(get_settings().text_content_types)


def set_text_content_types(patterns: Iterable[str]) -> None:
    """Reconfigure the process-wide classifier in place."""
    get_text_classifier().configure(patterns)
