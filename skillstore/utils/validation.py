"""Constraint checks for skill inputs.

Every check is pure and never raises: it returns a :class:`ValidationResult`
carrying all violations so callers can surface them together.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from skillstore.schemas.skill import ChangeType, FileChange, FileInput, SkillCreate, SkillUpdate

SKILL_NAME_MAX = 100
DESCRIPTION_MAX = 1024
CHANGELOG_MAX = 2000
FILE_PATH_MAX = 255
FILE_CONTENT_MAX = 200 * 1024  # bytes, UTF-8 encoded
FILES_PER_VERSION_MAX = 50


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def extend(self, other: ValidationResult, prefix: str = "") -> None:
        self.errors.extend(f"{prefix}{e}" for e in other.errors)


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))


def validate_name(name: str | None) -> ValidationResult:
    result = ValidationResult()
    if not name or not name.strip():
        result.errors.append("Skill name is required")
    elif len(name) > SKILL_NAME_MAX:
        result.errors.append(f"Skill name exceeds {SKILL_NAME_MAX} characters")
    return result


def validate_text_length(value: str | None, label: str, limit: int) -> ValidationResult:
    result = ValidationResult()
    if value and len(value) > limit:
        result.errors.append(f"{label} exceeds {limit} characters")
    return result


def validate_path(path: str | None) -> ValidationResult:
    result = ValidationResult()
    if not path:
        result.errors.append("File path is required")
    elif len(path) > FILE_PATH_MAX:
        result.errors.append(f"File path exceeds {FILE_PATH_MAX} characters")
    return result


def validate_content(content: str | None, operation: str | None = None) -> ValidationResult:
    result = ValidationResult()
    if content is None:
        suffix = f" for {operation} operation" if operation else ""
        result.errors.append(f"File content is required{suffix}")
    elif content_size(content) > FILE_CONTENT_MAX:
        result.errors.append(f"File content exceeds {FILE_CONTENT_MAX // 1024}KB")
    return result


def validate_file_count(count: int) -> ValidationResult:
    result = ValidationResult()
    if count > FILES_PER_VERSION_MAX:
        result.errors.append(f"Number of files ({count}) exceeds {FILES_PER_VERSION_MAX}")
    return result


def find_duplicate_paths(paths: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for path in paths:
        if path in seen and path not in duplicates:
            duplicates.append(path)
        seen.add(path)
    return duplicates


def validate_file(file: FileInput) -> ValidationResult:
    result = validate_path(file.path)
    result.extend(validate_content(file.content))
    return result


def validate_file_change(change: FileChange) -> ValidationResult:
    result = validate_path(change.path)
    if change.type in (ChangeType.ADD, ChangeType.UPDATE):
        result.extend(validate_content(change.content, change.type.value))
    return result


def resulting_paths(current: Iterable[str], changes: Iterable[FileChange]) -> set[str]:
    """Paths a version would hold after ``changes`` are applied to ``current``.

    ``add`` and ``update`` both leave the path present; ``delete`` removes it.
    """
    paths = set(current)
    for change in changes:
        if change.type is ChangeType.DELETE:
            paths.discard(change.path)
        else:
            paths.add(change.path)
    return paths


def validate_create_skill(data: SkillCreate) -> ValidationResult:
    result = validate_name(data.name)
    result.extend(validate_text_length(data.description, "Description", DESCRIPTION_MAX))
    result.extend(validate_text_length(data.changelog, "Changelog", CHANGELOG_MAX))

    if not data.files:
        result.errors.append("At least one file is required")
        return result

    result.extend(validate_file_count(len(data.files)))
    for file in data.files:
        result.extend(validate_file(file), prefix=f'File "{file.path}": ')

    if find_duplicate_paths(f.path for f in data.files):
        result.errors.append("Duplicate file paths are not allowed")
    return result


def validate_update_skill(data: SkillUpdate, current_paths: Iterable[str] = ()) -> ValidationResult:
    result = ValidationResult()
    if not data.skill_id or not data.skill_id.strip():
        result.errors.append("Skill ID is required")
    result.extend(validate_text_length(data.description, "Description", DESCRIPTION_MAX))
    result.extend(validate_text_length(data.changelog, "Changelog", CHANGELOG_MAX))

    if not data.file_changes:
        return result

    for path in find_duplicate_paths(c.path for c in data.file_changes):
        result.errors.append(f"Duplicate file change path: {path}")
    for change in data.file_changes:
        result.extend(validate_file_change(change), prefix=f'File "{change.path}": ')

    result.extend(validate_file_count(len(resulting_paths(current_paths, data.file_changes))))
    return result
