"""
AWS X-Ray tracing for generative backend calls.

Subsegment wrapper around each AIGateway request.
No-op when no X-Ray segment is active (tests, local dev).
"""

import os
from contextlib import contextmanager
from typing import Any

from aws_xray_sdk.core import patch_all, xray_recorder

_MAX_METADATA_CHARS = 500

if os.environ.get("AWS_LAMBDA_FUNCTION_NAME") or os.environ.get("AWS_XRAY_DAEMON_ADDRESS"):
    patch_all()


def _clip(value: Any) -> Any:
    if isinstance(value, str) and len(value) > _MAX_METADATA_CHARS:
        return value[:_MAX_METADATA_CHARS] + "..."
    return value


@contextmanager
def ai_span(operation: str, model: str, **attributes: Any):
    """Open an X-Ray subsegment named ``ai.<operation>``.

    Yields None when there is no active segment.
    """
    with xray_recorder.in_subsegment(f"ai.{operation}") as subsegment:
        if subsegment is None:
            yield None
            return
        subsegment.put_annotation("ai_operation", operation)
        subsegment.put_metadata("model", model)
        for key, value in attributes.items():
            subsegment.put_metadata(key, _clip(value))
        yield subsegment


def add_ai_response_attributes(subsegment, **attributes: Any) -> None:
    """Attach response metadata to a subsegment. No-op if subsegment is None."""
    if subsegment is None:
        return
    for key, value in attributes.items():
        subsegment.put_metadata(key, _clip(value))


def mark_ai_failure(subsegment, error: BaseException) -> None:
    """Flag the subsegment as failed."""
    if subsegment is None:
        return
    subsegment.put_annotation("ai_degraded", True)
    subsegment.put_metadata("error", _clip(str(error)))
