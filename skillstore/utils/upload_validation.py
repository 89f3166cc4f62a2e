"""Structural rules for uploaded archives and the skill folders inside them."""

from __future__ import annotations

from skillstore.schemas.upload import SkillFolder
from skillstore.utils.markdown import MARKER_FILE, is_marker_file
from skillstore.utils.validation import (
    FILE_CONTENT_MAX,
    FILES_PER_VERSION_MAX,
    ValidationResult,
    content_size,
)


def validate_archive_size(size_in_bytes: int, limit: int) -> ValidationResult:
    result = ValidationResult()
    if size_in_bytes > limit:
        result.errors.append(f"ZIP file exceeds maximum size of {limit // (1024 * 1024)}MB")
    return result


def validate_skill_folder(folder: SkillFolder) -> ValidationResult:
    """Check one candidate folder; binary files are ignored since they are never imported."""
    result = ValidationResult()
    text_files = folder.text_files

    if not any(is_marker_file(f.path) for f in text_files):
        result.errors.append(f"Skill folder must contain {MARKER_FILE} file")

    if len(text_files) > FILES_PER_VERSION_MAX:
        result.errors.append(f"Skill contains more than {FILES_PER_VERSION_MAX} files")

    for file in text_files:
        size = file.size if file.size is not None else content_size(file.content)
        if size > FILE_CONTENT_MAX:
            result.errors.append(
                f'File "{file.path}" exceeds maximum size of {FILE_CONTENT_MAX // 1024}KB'
            )

    return result
