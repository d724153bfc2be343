"""
Error envelope returned by every failed request.
"""

from typing import Optional

from pydantic import BaseModel

from shared.exceptions import EmoteMarketError


class ErrorResponse(BaseModel):
    """`error` is the exception class name, `code` the stable machine-readable code."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_error(cls, exc: EmoteMarketError, detail: str) -> "ErrorResponse":
        return cls(error=type(exc).__name__, detail=detail, code=exc.code)

    @classmethod
    def internal(cls) -> "ErrorResponse":
        return cls(error="InternalServerError", detail="Internal error", code="INTERNAL_ERROR")
