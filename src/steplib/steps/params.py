from __future__ import annotations

from steplib.config import ExecutionContext
from steplib.errors import StepParameterError


def require_text(name: str, value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        raise StepParameterError(f"{name} must not be empty")
    return normalized


def require_build_number(context: ExecutionContext) -> int:
    if context.build_number is None:
        raise StepParameterError("build_number is required to tag the image")
    return context.build_number
