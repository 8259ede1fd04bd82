# -------------------------------------------------------------------
# pylon/schemas/output_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# The finished, whole-buffer response objects produced by
# ResponseWriter.finish(), one per front door:
#
#   - GatewayResponse          -> API Gateway proxy integration
#   - ALBTargetGroupResponse   -> Application Load Balancer target group
#
# NAMING CONVENTION
# -----------------
# Fields are snake_case in Python. to_event() dumps them with the
# camelCase names AWS expects (statusCode, isBase64Encoded, ...) via the
# snake_to_camel alias generator. Header names inside `headers` are
# emitted exactly as committed.
#
# Both models are frozen: once finish() has built one it cannot change.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from pylon.utils.json_naming_converter import snake_to_camel


class GatewayResponse(BaseModel):
    """
    API Gateway proxy integration response.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=snake_to_camel,
        populate_by_name=True,
    )

    status_code: int = 0
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    is_base64_encoded: bool = False

    def to_event(self) -> Dict[str, Any]:
        """Plain dict suitable as a Lambda handler return value."""
        return self.model_dump(by_alias=True)


class ALBTargetGroupResponse(GatewayResponse):
    """
    ALB target group response. Adds the "<code> <reason>" status line.
    """

    status_description: str = ""
