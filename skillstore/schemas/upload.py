"""Archive import schemas: staged folders, previews and commit results."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class ExtractedFile(BaseModel):
    path: str  # relative to the skill folder
    content: str  # empty for binary and oversized files
    is_binary: bool = False
    size: int | None = None  # uncompressed bytes, when known


class SkillFolder(BaseModel):
    name: str
    files: list[ExtractedFile]

    @property
    def text_files(self) -> list[ExtractedFile]:
        return [f for f in self.files if not f.is_binary]


class SessionData(BaseModel):
    skills: list[SkillFolder]
    created_at: datetime
    expires_at: datetime


class SkillPreview(BaseModel):
    name: str
    valid: bool
    file_count: int
    errors: list[str]
    description: str | None = None


class ParseResult(BaseModel):
    session_id: str
    skills: list[SkillPreview]
    expires_at: datetime


class ProcessRequest(BaseModel):
    session_id: str
    selected_skills: list[str]


class SkillImportResult(BaseModel):
    name: str
    status: Literal["success", "failed"]
    skill_id: str | None = None
    version: int | None = None
    is_new: bool | None = None
    error: str | None = None


class ProcessResult(BaseModel):
    total: int
    successful: int
    failed: int
    results: list[SkillImportResult]
