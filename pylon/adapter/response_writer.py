"""
pylon/adapter/response_writer.py

WHAT THIS FILE IS FOR
---------------------
Response writers let handler code that expects an incremental HTTP
response sink (set headers, write status, write body chunks) run
behind a Lambda front door that wants one finished object.

    writer = GatewayResponseWriter()
    writer.header().set("Content-Type", "application/json")
    writer.write_header(201)
    writer.write(b'{"ok":true}')
    response = writer.finish()          # GatewayResponse
    return response.to_event()

STATE MACHINE
-------------
    FRESH --write_header(s) / first write--> COMMITTED --finish()--> FINISHED
    FRESH --finish()--> FINISHED
    COMMITTED --write_header(s)--> COMMITTED            (ignored)

Standard HTTP write semantics apply:
- the first write without a prior write_header commits status 200
- only the first write_header takes effect
- header mutations after commit have no effect on the response

On commit the multi-value header table is collapsed ("last value wins")
and an empty or missing Content-Type becomes "text/plain; charset=utf-8".

BODY ENCODING
-------------
finish() asks the TextClassifier whether the committed Content-Type is
text. Text bodies are returned as a UTF-8 string; anything else is
base64-encoded and flagged with is_base64_encoded=True.

A body written without any Content-Type is classified as text because
of the injected default, even if the bytes are binary. Invalid UTF-8
sequences become U+FFFD so the finished response always serialises to
JSON; such handlers must declare a binary Content-Type to keep their bytes.

VARIANTS
--------
The state machine lives in ResponseWriter. Subclasses only supply the
target shape:
- GatewayResponseWriter -> GatewayResponse
- ALBResponseWriter     -> ALBTargetGroupResponse (adds status_description)

A writer serves exactly one request and is not thread-safe.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Dict, Generic, Optional, TypeVar

import structlog

from pylon.adapter.header_table import HeaderTable
from pylon.adapter.status_description import status_description
from pylon.adapter.text_classifier import TextClassifier, get_text_classifier
from pylon.schemas.output_schema import ALBTargetGroupResponse, GatewayResponse

logger = structlog.get_logger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain; charset=utf-8"
CONTENT_TYPE_HEADER = "Content-Type"

ResponseT = TypeVar("ResponseT", bound=GatewayResponse)


class WriterState(str, Enum):
    FRESH = "fresh"
    COMMITTED = "committed"
    FINISHED = "finished"


class ResponseWriter(Generic[ResponseT]):
    """
    Buffering response sink shared by both target shapes.

    Args:
        classifier:
            Text/binary policy used by finish(). Defaults to the
            process-wide classifier from get_text_classifier().
    """

    def __init__(self, classifier: Optional[TextClassifier] = None) -> None:
        self._classifier = classifier
        self._headers: Optional[HeaderTable] = None
        self._output = bytearray()
        self._status_code = 0
        self._committed_headers: Dict[str, str] = {}
        self._state = WriterState.FRESH
        self._response: Optional[ResponseT] = None

    # ------------------------------------------------------------------ #
    # Handler-facing API
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def headers_written(self) -> bool:
        return self._state is not WriterState.FRESH

    @property
    def status_code(self) -> int:
        return self._status_code

    def header(self) -> HeaderTable:
        """Mutable header table; created on first access."""
        if self._headers is None:
            self._headers = HeaderTable()
        return self._headers

    def write(self, data: bytes) -> int:
        """Append body bytes, committing status 200 first if nothing is committed yet."""
        if self._state is WriterState.FINISHED:
            logger.warning("response_write_after_finish_ignored", size=len(data))
            return 0

        if self._state is WriterState.FRESH:
            self.write_header(200)

        self._output += data
        return len(data)

    def write_header(self, status: int) -> None:
        """Commit status and headers. Only the first call has any effect."""
        if self._state is not WriterState.FRESH:
            return

        self._status_code = status

        final_headers = self._headers.collapse() if self._headers is not None else {}
        if not final_headers.get(CONTENT_TYPE_HEADER):
            final_headers[CONTENT_TYPE_HEADER] = DEFAULT_CONTENT_TYPE

        self._committed_headers = final_headers
        self._on_commit(status)
        self._state = WriterState.COMMITTED

    def finish(self) -> ResponseT:
        """
        Build the finished response. Repeated calls return the same object.
        """
        if self._response is not None:
            return self._response

        classifier = self._classifier or get_text_classifier()
        content_type = self._committed_headers.get(CONTENT_TYPE_HEADER, "")
        payload = bytes(self._output)

        if classifier.is_text(content_type):
            body = payload.decode("utf-8", errors="replace")
            is_base64_encoded = False
        else:
            body = base64.b64encode(payload).decode("ascii")
            is_base64_encoded = True

        self._response = self._build_response(
            headers=dict(self._committed_headers),
            body=body,
            is_base64_encoded=is_base64_encoded,
        )
        self._state = WriterState.FINISHED
        return self._response

    # ------------------------------------------------------------------ #
    # Variant hooks
    # ------------------------------------------------------------------ #
    def _on_commit(self, status: int) -> None:
        """Called once, when status and headers are committed."""

    def _build_response(self, *, headers: Dict[str, str], body: str, is_base64_encoded: bool) -> ResponseT:
        raise NotImplementedError


class GatewayResponseWriter(ResponseWriter[GatewayResponse]):
    """Response writer producing an API Gateway proxy response."""

    def _build_response(self, *, headers: Dict[str, str], body: str, is_base64_encoded: bool) -> GatewayResponse:
        return GatewayResponse(
            status_code=self._status_code,
            headers=headers,
            body=body,
            is_base64_encoded=is_base64_encoded,
        )


class ALBResponseWriter(ResponseWriter[ALBTargetGroupResponse]):
    """Response writer producing an ALB target group response."""

    def __init__(self, classifier: Optional[TextClassifier] = None) -> None:
        super().__init__(classifier)
        self._status_description = ""

    def _on_commit(self, status: int) -> None:
        self._status_description = status_description(status)

    def _build_response(
        self, *, headers: Dict[str, str], body: str, is_base64_encoded: bool
    ) -> ALBTargetGroupResponse:
        return ALBTargetGroupResponse(
            status_code=self._status_code,
            status_description=self._status_description,
            headers=headers,
            body=body,
            is_base64_encoded=is_base64_encoded,
        )
