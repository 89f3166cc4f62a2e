"""Typed failures raised by the versioning engine and import pipeline.

Every failure carries a machine-readable ``code`` and an HTTP ``status_code``;
transports decide how to render them (see ``skillstore.main`` and
``skillstore.mcp.skills``).
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    DB_ERROR = "DB_ERROR"


class SkillStoreError(Exception):
    code: ErrorCode = ErrorCode.DB_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class NotFoundError(SkillStoreError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class ValidationError(SkillStoreError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or [message]
        super().__init__(message)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationError:
        return cls("; ".join(errors), errors)


class ConflictError(SkillStoreError):
    code = ErrorCode.CONFLICT
    status_code = 409


class DbError(SkillStoreError):
    code = ErrorCode.DB_ERROR
    status_code = 500


def not_found(resource: str) -> NotFoundError:
    return NotFoundError(f"{resource} not found")
