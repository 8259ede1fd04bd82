"""
pylon/utils/json_naming_converter.py

WHAT THIS FILE IS FOR
---------------------
Response models in pylon/schemas use snake_case attribute names.
AWS expects camelCase keys in the payload a Lambda returns
("statusCode", "isBase64Encoded", ...).

snake_to_camel() is used as the Pydantic alias generator for those
models, so the conversion happens in exactly one place: when a model is
dumped with by_alias=True.

Only field names are converted. Keys INSIDE a field's value (header
names in particular) are never touched.
"""

from __future__ import annotations


def snake_to_camel(s: str) -> str:
    """
    Convert snake_case string to camelCase.

    - Leaves strings without '_' unchanged
    - Preserves leading/trailing underscores
    """
    if "_" not in s:
        return s

    core = s.strip("_")
    if not core:
        return s  # e.g. "___"

    leading = s[: len(s) - len(s.lstrip("_"))]
    trailing = s[len(s.rstrip("_")):]

    head, *rest = [p for p in core.split("_") if p]
    return leading + head + "".join(p[:1].upper() + p[1:] for p in rest) + trailing
