"""Upload service: two-step archive import (parse → select → process).

Parsing stages every candidate folder in a :class:`SessionStore`; processing
commits the selected ones through the versioning engine, creating a new skill
or a new version of an existing one, and reports each outcome separately.
"""

from __future__ import annotations

import logging

from skillstore.config import settings
from skillstore.errors import ConflictError, SkillStoreError, ValidationError, not_found
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.schemas.skill import ChangeType, CreatorKind, FileChange, FileInput, SkillCreate, SkillUpdate
from skillstore.schemas.upload import (
    ParseResult,
    ProcessResult,
    SkillFolder,
    SkillImportResult,
    SkillPreview,
)
from skillstore.services import skill_service
from skillstore.services.archive import extract_skill_folders, read_zip
from skillstore.services.session_service import SessionStore
from skillstore.utils.file_types import is_executable, script_language
from skillstore.utils.ids import utcnow
from skillstore.utils.markdown import is_marker_file, read_skill_metadata
from skillstore.utils.upload_validation import validate_archive_size, validate_skill_folder

logger = logging.getLogger(__name__)

CREATE_CHANGELOG = "Imported via ZIP upload"
UPDATE_CHANGELOG = "Updated via ZIP upload"


def extract_description(folder: SkillFolder) -> str | None:
    marker = next((f for f in folder.text_files if is_marker_file(f.path)), None)
    if marker is None:
        return None
    return read_skill_metadata(marker.content).description


def build_preview(folder: SkillFolder) -> SkillPreview:
    validation = validate_skill_folder(folder)
    return SkillPreview(
        name=folder.name,
        valid=validation.valid,
        file_count=len(folder.text_files),
        errors=validation.errors,
        description=extract_description(folder) if validation.valid else None,
    )


def to_file_inputs(folder: SkillFolder) -> list[FileInput]:
    return [
        FileInput(
            path=f.path,
            content=f.content,
            is_executable=is_executable(f.path),
            script_language=script_language(f.path),
        )
        for f in folder.text_files
    ]


async def parse_archive(store: SessionStore, data: bytes, max_bytes: int | None = None) -> ParseResult:
    """Step 1: split an archive into candidate skills and stage them."""
    size_check = validate_archive_size(len(data), max_bytes or settings.max_archive_bytes)
    if not size_check.valid:
        raise ValidationError.from_errors(size_check.errors)

    folders = extract_skill_folders(read_zip(data))
    previews = [build_preview(folder) for folder in folders]

    # Invalid folders are staged too so their errors stay inspectable
    session_id = await store.create(folders)
    return ParseResult(session_id=session_id, skills=previews, expires_at=utcnow() + store.ttl)


async def import_folder(repo: SkillRepository, folder: SkillFolder) -> SkillImportResult:
    """Create a skill from ``folder``, or replace an existing skill's files with it."""
    files = to_file_inputs(folder)
    try:
        created = await skill_service.create_skill(
            repo,
            SkillCreate(name=folder.name, files=files, changelog=CREATE_CHANGELOG),
            created_by=CreatorKind.AI,
        )
        return SkillImportResult(
            name=folder.name,
            status="success",
            skill_id=created.id,
            version=created.version.version_number,
            is_new=True,
        )
    except ConflictError:
        logger.info("Skill %r already exists, importing as a new version", folder.name)

    existing = await repo.find_skill_by_name(folder.name)
    if existing is None:
        raise not_found("Skill")
    current = await skill_service.get_skill(repo, existing.id)

    imported = {f.path for f in files}
    changes = [
        FileChange(
            type=ChangeType.UPDATE,
            path=f.path,
            content=f.content,
            is_executable=f.is_executable,
            script_language=f.script_language,
        )
        for f in files
    ]
    changes += [
        FileChange(type=ChangeType.DELETE, path=f.path)
        for f in current.files
        if f.path not in imported
    ]

    updated = await skill_service.update_skill(
        repo,
        SkillUpdate(skill_id=existing.id, file_changes=changes, changelog=UPDATE_CHANGELOG),
        created_by=CreatorKind.AI,
    )
    return SkillImportResult(
        name=folder.name,
        status="success",
        skill_id=updated.id,
        version=updated.version.version_number,
        is_new=False,
    )


async def process_selected(
    repo: SkillRepository, store: SessionStore, session_id: str, selected_skills: list[str]
) -> ProcessResult:
    """Step 2: import the selected folders of a staged session.

    The session is consumed whatever the outcome. Names that match no staged
    folder are ignored and do not count towards ``total``.
    """
    session = await store.get(session_id)
    if session is None:
        raise not_found("Session")

    wanted = set(selected_skills)
    unknown = wanted - {folder.name for folder in session.skills}
    if unknown:
        logger.info("Ignoring selections not present in session %s: %s", session_id, sorted(unknown))

    results: list[SkillImportResult] = []
    try:
        for folder in session.skills:
            if folder.name not in wanted:
                continue

            # Re-check: the selection may have been made against a stale preview
            validation = validate_skill_folder(folder)
            if not validation.valid:
                results.append(
                    SkillImportResult(name=folder.name, status="failed", error="; ".join(validation.errors))
                )
                continue

            try:
                results.append(await import_folder(repo, folder))
            except SkillStoreError as exc:
                logger.warning("Import of %r failed: %s", folder.name, exc.message)
                results.append(SkillImportResult(name=folder.name, status="failed", error=exc.message))
            except Exception:
                logger.exception("Unexpected error importing %r", folder.name)
                await repo.rollback()
                results.append(
                    SkillImportResult(name=folder.name, status="failed", error="Unknown error")
                )
    finally:
        await store.delete(session_id)

    successful = sum(1 for r in results if r.status == "success")
    logger.info(
        "Processed session %s: %d imported, %d failed", session_id, successful, len(results) - successful
    )
    return ProcessResult(
        total=len(results),
        successful=successful,
        failed=len(results) - successful,
        results=results,
    )
