"""
pylon/adapter/status_description.py

WHAT THIS FILE IS FOR
---------------------
The single rule for turning a numeric HTTP status into the
"statusDescription" string an ALB target-group response carries:

    404 -> "404 Not Found"
    201 -> "201 Created"

Codes without a registered reason phrase keep the code and an empty
reason ("599 "), the same shape the load balancer receives from other
runtimes.

This module performs pure, deterministic mapping only.
"""

from __future__ import annotations

from http import HTTPStatus


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def status_description(status: int) -> str:
    return f"{status} {reason_phrase(status)}"
