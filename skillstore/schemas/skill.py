"""Skill request/response schemas."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class CreatorKind(StrEnum):
    """Who produced a version: an automated client or a person."""

    AI = "ai"
    HUMAN = "human"


class ChangeType(StrEnum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


# ── Inputs ──────────────────────────────────────────────────────────
# Length and size limits are enforced by skillstore.utils.validation so that
# every violation is reported at once, not only the first one pydantic hits.


class FileInput(BaseModel):
    path: str
    content: str
    is_executable: bool = False
    script_language: str | None = None
    run_instructions_for_ai: str | None = None


class FileChange(BaseModel):
    type: ChangeType
    path: str
    content: str | None = None  # required for add/update
    is_executable: bool | None = None
    script_language: str | None = None
    run_instructions_for_ai: str | None = None


class SkillCreate(BaseModel):
    name: str
    description: str | None = None
    files: list[FileInput]
    changelog: str | None = None


class SkillUpdate(BaseModel):
    skill_id: str = ""  # id or name; REST routes fill it from the URL
    description: str | None = None
    file_changes: list[FileChange] | None = None
    changelog: str | None = None


class SkillStatusUpdate(BaseModel):
    active: bool


# ── Responses ───────────────────────────────────────────────────────


class SkillResponse(BaseModel):
    id: str
    name: str
    description: str | None
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SkillListItem(SkillResponse):
    latest_version: int


class MinimalSkillItem(BaseModel):
    name: str
    description: str | None


class VersionResponse(BaseModel):
    id: str
    skill_id: str
    version_number: int
    changelog: str | None
    created_at: datetime
    created_by: CreatorKind

    model_config = {"from_attributes": True}


class FileMetadata(BaseModel):
    id: str
    skill_id: str
    version_id: str
    path: str
    is_executable: bool
    script_language: str | None
    run_instructions_for_ai: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SkillFileResponse(FileMetadata):
    content: str


class SkillDetail(SkillResponse):
    """A skill as seen at one version: skill fields + version + file listing."""

    version: VersionResponse
    files: list[FileMetadata]


class VersionListResponse(BaseModel):
    versions: list[VersionResponse]
