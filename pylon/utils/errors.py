"""
pylon/utils/errors.py

Exceptions raised by the adapter layer.

Only configuration can fail. Writing headers, body and status into a
response writer is total and never raises.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when the text content-type pattern set cannot be installed."""
