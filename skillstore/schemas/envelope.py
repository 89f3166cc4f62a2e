"""Uniform response envelope: ``{ok: true, data}`` / ``{ok: false, error}``."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorBody(BaseModel):
    code: str
    message: str


class Envelope(BaseModel, Generic[T]):
    ok: bool = True
    data: T


class ErrorEnvelope(BaseModel):
    ok: bool = False
    error: ErrorBody


def ok(data: Any) -> dict[str, Any]:
    return {"ok": True, "data": data}


def fail(code: str, message: str) -> dict[str, Any]:
    return ErrorEnvelope(error=ErrorBody(code=str(code), message=message)).model_dump()
