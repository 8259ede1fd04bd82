"""
pylon/adapter/wsgi_bridge.py

WHAT THIS FILE IS FOR
---------------------
Runs a WSGI application against a response writer and returns the
finished gateway/ALB response. WSGI is the generic streaming handler
interface in Python; this module maps it onto the writer contract:

- start_response(status, headers) stages the status and copies the
  headers into writer.header()
- headers are committed at the first non-empty body chunk (or when the
  body is exhausted), so an application can still switch to an error
  response with start_response(..., exc_info) until then
- the legacy write() callable writes straight through the writer

Building `environ` from the inbound event is the caller's job.

ERROR HANDLING RULES
--------------------
- start_response() with exc_info after headers are committed re-raises
  the original exception
- a second start_response() without exc_info is a WSGI contract breach
  (AssertionError)
- str body chunks -> TypeError
- application returns without calling start_response -> RuntimeError
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Tuple

import structlog

from pylon.adapter.response_writer import ResponseT, ResponseWriter

logger = structlog.get_logger(__name__)


WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


def parse_status_line(status: str) -> int:
    """'404 Not Found' -> 404"""
    code = status.split(" ", 1)[0]
    if not code.isdigit():
        raise ValueError(f"Malformed WSGI status line: {status!r}")
    return int(code)


class _WSGIResponder:
    def __init__(self, writer: ResponseWriter[Any]) -> None:
        self.writer = writer
        self.status: Optional[int] = None
        self._staged_headers: List[Tuple[str, str]] = []

    def start_response(
        self,
        status: str,
        response_headers: List[Tuple[str, str]],
        exc_info: Optional[Tuple[Any, Any, Any]] = None,
    ) -> Callable[[bytes], None]:
        if exc_info:
            try:
                if self.writer.headers_written:
                    logger.warning("wsgi_exception_after_commit", error=str(exc_info[1]))
                    raise exc_info[1].with_traceback(exc_info[2])
            finally:
                exc_info = None
        elif self.status is not None:
            raise AssertionError("start_response() already called")

        self.status = parse_status_line(status)
        self._staged_headers = list(response_headers)
        return self.write

    def commit(self) -> None:
        if self.writer.headers_written:
            return
        if self.status is None:
            raise RuntimeError("WSGI application did not call start_response()")

        # Headers preset on the writer by the caller stay; the application's values win.
        table = self.writer.header()
        for name, value in self._staged_headers:
            table.add(name, value)
        self.writer.write_header(self.status)

    def write(self, data: bytes) -> None:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"WSGI body chunks must be bytes, got {type(data).__name__}")
        if not data:
            return
        self.commit()
        self.writer.write(data)


def run_wsgi(app: WSGIApp, environ: dict, writer: ResponseWriter[ResponseT]) -> ResponseT:
    """
    Call `app(environ, start_response)`, buffer everything it produces
    into `writer`, and return writer.finish().
    """
    responder = _WSGIResponder(writer)
    result = app(environ, responder.start_response)
    try:
        for chunk in result:
            responder.write(chunk)
    finally:
        close = getattr(result, "close", None)
        if close is not None:
            close()

    responder.commit()
    return writer.finish()
