"""Skill service: the versioning engine.

Every mutation produces a new, fully materialised version: the complete file
set is written as fresh rows bound to the new version, so earlier versions are
never touched. Skills may be referenced by id or by name everywhere.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from skillstore.config import settings
from skillstore.errors import ConflictError, DbError, ValidationError, not_found
from skillstore.models.skill import Skill, SkillFile, SkillVersion
from skillstore.repositories.skill_repo import ListSkillsFilter, NewFile, SkillRepository
from skillstore.schemas.skill import (
    ChangeType,
    CreatorKind,
    FileChange,
    FileInput,
    FileMetadata,
    MinimalSkillItem,
    SkillCreate,
    SkillDetail,
    SkillFileResponse,
    SkillListItem,
    SkillResponse,
    SkillUpdate,
    VersionResponse,
)
from skillstore.utils.ids import utcnow
from skillstore.utils.markdown import is_marker_file, read_skill_metadata
from skillstore.utils.validation import (
    DESCRIPTION_MAX,
    validate_create_skill,
    validate_name,
    validate_update_skill,
)

logger = logging.getLogger(__name__)


# ── Lookup helpers ─────────────────────────────────────────────────


async def resolve_skill(repo: SkillRepository, skill_ref: str) -> Skill:
    """Find a skill by id, falling back to name."""
    skill = await repo.find_skill_by_id(skill_ref)
    if skill is None:
        skill = await repo.find_skill_by_name(skill_ref)
    if skill is None:
        raise not_found("Skill")
    return skill


async def resolve_version(
    repo: SkillRepository, skill: Skill, version_number: int | None = None
) -> SkillVersion:
    """Return the requested version, or the latest one when none is given."""
    if version_number is not None:
        version = await repo.find_version(skill.id, version_number)
        if version is None:
            raise not_found(f"Version {version_number}")
        return version

    latest = await repo.get_latest_version_number(skill.id)
    version = await repo.find_version(skill.id, latest) if latest else None
    if version is None:
        raise not_found("Version")
    return version


def _detail(skill: Skill, version: SkillVersion, files: list[SkillFile]) -> SkillDetail:
    return SkillDetail(
        **SkillResponse.model_validate(skill).model_dump(),
        version=VersionResponse.model_validate(version),
        files=[FileMetadata.model_validate(f) for f in files],
    )


def _truncate(description: str | None) -> str | None:
    if description and len(description) > DESCRIPTION_MAX:
        return description[:DESCRIPTION_MAX]
    return description


def _description_from_files(files: list[FileInput]) -> str | None:
    marker = next((f for f in files if is_marker_file(f.path)), None)
    if marker is None:
        return None
    return read_skill_metadata(marker.content).description


# ── File changes ───────────────────────────────────────────────────


def apply_file_changes(files: dict[str, NewFile], changes: list[FileChange]) -> dict[str, NewFile]:
    """Apply ``changes`` in order to a copy of a path → file map.

    ``add`` inserts or overwrites. ``update`` replaces content and any flags
    it sets, keeping the rest; on a path that does not exist it acts as
    ``add``. Both carry content; validation rejects them otherwise. ``delete`` drops the path if present.
    """
    result = dict(files)
    for change in changes:
        if change.type is ChangeType.DELETE:
            result.pop(change.path, None)
        elif change.type is ChangeType.ADD or change.path not in result:
            result[change.path] = NewFile(
                path=change.path,
                content=change.content or "",
                is_executable=bool(change.is_executable),
                script_language=change.script_language,
                run_instructions_for_ai=change.run_instructions_for_ai,
            )
        elif change.type is ChangeType.UPDATE:
            existing = result[change.path]
            result[change.path] = NewFile(
                path=change.path,
                content=change.content or "",
                is_executable=(
                    change.is_executable
                    if change.is_executable is not None
                    else existing.is_executable
                ),
                script_language=change.script_language or existing.script_language,
                run_instructions_for_ai=(
                    change.run_instructions_for_ai or existing.run_instructions_for_ai
                ),
            )
        else:
            raise ValueError(f"Unknown file change type: {change.type}")
    return result


async def _metadata_updates(repo: SkillRepository, skill: Skill, data: SkillUpdate) -> dict:
    """Skill-level fields to patch alongside a new version."""
    updates: dict = {}
    if data.description is not None:
        updates["description"] = data.description

    marker = next(
        (
            c
            for c in data.file_changes or []
            if is_marker_file(c.path) and c.type is not ChangeType.DELETE and c.content
        ),
        None,
    )
    if marker is None:
        return updates

    meta = read_skill_metadata(marker.content)
    if data.description is None and meta.description:
        updates["description"] = meta.description
    if meta.name and meta.name != skill.name and validate_name(meta.name).valid:
        if await repo.find_skill_by_name(meta.name) is None:
            updates["name"] = meta.name
        else:
            logger.info(
                "Not renaming skill %s to %r: name already taken", skill.id, meta.name
            )
    return updates


# ── Operations ─────────────────────────────────────────────────────


async def create_skill(
    repo: SkillRepository, data: SkillCreate, created_by: CreatorKind = CreatorKind.AI
) -> SkillDetail:
    """Create a skill together with its version 1."""
    validation = validate_create_skill(data)
    if not validation.valid:
        raise ValidationError.from_errors(validation.errors)

    if await repo.find_skill_by_name(data.name) is not None:
        raise ConflictError(f'Skill with name "{data.name}" already exists')

    description = data.description or _description_from_files(data.files)
    now = utcnow()
    try:
        skill = await repo.create_skill(
            name=data.name,
            description=description,
            active=True,
            created_at=now,
            updated_at=now,
        )
        version = await repo.create_version(
            skill_id=skill.id,
            version_number=1,
            changelog=data.changelog,
            created_at=now,
            created_by=created_by.value,
        )
        files = await repo.create_files(
            skill.id,
            version.id,
            [
                NewFile(
                    path=f.path,
                    content=f.content,
                    is_executable=f.is_executable,
                    script_language=f.script_language,
                    run_instructions_for_ai=f.run_instructions_for_ai,
                )
                for f in data.files
            ],
        )
        await repo.commit()
    except IntegrityError as exc:
        await repo.rollback()
        # Lost a race against a concurrent create with the same name
        if await repo.find_skill_by_name(data.name) is not None:
            raise ConflictError(f'Skill with name "{data.name}" already exists') from exc
        logger.exception("Integrity error creating skill %r", data.name)
        raise DbError("Failed to create skill") from exc
    except SQLAlchemyError as exc:
        await repo.rollback()
        logger.exception("Database error creating skill %r", data.name)
        raise DbError("Failed to create skill") from exc

    logger.info("Created skill %s (%s) with %d files", skill.name, skill.id, len(files))
    return _detail(skill, version, files)


async def _write_next_version(
    repo: SkillRepository, data: SkillUpdate, created_by: CreatorKind
) -> SkillDetail:
    skill = await resolve_skill(repo, data.skill_id)

    current_number = await repo.get_latest_version_number(skill.id)
    current_files: list[SkillFile] = []
    if current_number:
        current_version = await repo.find_version(skill.id, current_number)
        if current_version is not None:
            current_files = await repo.find_files_by_version_id(current_version.id)

    validation = validate_update_skill(data, [f.path for f in current_files])
    if not validation.valid:
        raise ValidationError.from_errors(validation.errors)

    base = {
        f.path: NewFile(
            path=f.path,
            content=f.content,
            is_executable=f.is_executable,
            script_language=f.script_language,
            run_instructions_for_ai=f.run_instructions_for_ai,
        )
        for f in current_files
    }
    next_files = apply_file_changes(base, data.file_changes or [])

    now = utcnow()
    updates = await _metadata_updates(repo, skill, data)
    await repo.update_skill(skill, **updates, updated_at=now)

    version = await repo.create_version(
        skill_id=skill.id,
        version_number=current_number + 1,
        changelog=data.changelog,
        created_at=now,
        created_by=created_by.value,
    )
    files = await repo.create_files(skill.id, version.id, list(next_files.values()))
    await repo.commit()

    logger.info(
        "Skill %s (%s) now at version %d with %d files",
        skill.name,
        skill.id,
        version.version_number,
        len(files),
    )
    return _detail(skill, version, files)


async def update_skill(
    repo: SkillRepository, data: SkillUpdate, created_by: CreatorKind = CreatorKind.AI
) -> SkillDetail:
    """Write a new version numbered ``latest + 1`` from the given file changes.

    ``(skill_id, version_number)`` is unique, so two concurrent updates cannot
    both claim the same number: the loser rolls back and retries against the
    fresh latest version.
    """
    attempts = max(1, settings.version_write_retries)
    collision: IntegrityError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await _write_next_version(repo, data, created_by)
        except IntegrityError as exc:
            await repo.rollback()
            collision = exc
            logger.warning(
                "Version number collision on skill %r (attempt %d/%d)",
                data.skill_id,
                attempt,
                attempts,
            )
        except SQLAlchemyError as exc:
            await repo.rollback()
            logger.exception("Database error updating skill %r", data.skill_id)
            raise DbError("Failed to update skill") from exc

    logger.error("Giving up on updating skill %r after %d attempts", data.skill_id, attempts)
    raise DbError("Failed to allocate a version number") from collision


async def list_skills(
    repo: SkillRepository,
    *,
    active_only: bool | None = None,
    show_inactive: bool = False,
    limit: int | None = None,
    offset: int = 0,
    query: str | None = None,
    detailed: bool = True,
) -> list[SkillListItem] | list[MinimalSkillItem]:
    if limit is None:
        limit = settings.list_limit_default
    filters = ListSkillsFilter(
        active_only=active_only if active_only is not None else not show_inactive,
        limit=max(1, min(limit, settings.list_limit_max)),
        offset=max(offset, 0),
        query=query or None,
    )
    rows = await repo.list_skills(filters)

    if detailed:
        return [
            SkillListItem(
                **SkillResponse.model_validate(row.skill).model_dump(exclude={"description"}),
                description=_truncate(row.skill.description),
                latest_version=row.latest_version,
            )
            for row in rows
        ]
    return [
        MinimalSkillItem(name=row.skill.name, description=_truncate(row.skill.description))
        for row in rows
    ]


async def get_skill(
    repo: SkillRepository, skill_ref: str, version_number: int | None = None
) -> SkillDetail:
    skill = await resolve_skill(repo, skill_ref)
    version = await resolve_version(repo, skill, version_number)
    files = await repo.find_files_by_version_id(version.id)
    return _detail(skill, version, files)


async def get_file(
    repo: SkillRepository, skill_ref: str, path: str, version_number: int | None = None
) -> SkillFileResponse:
    skill = await resolve_skill(repo, skill_ref)
    version = await resolve_version(repo, skill, version_number)
    file = await repo.find_file(version.id, path)
    if file is None:
        raise not_found(f'File "{path}"')
    return SkillFileResponse.model_validate(file)


async def list_versions(repo: SkillRepository, skill_ref: str) -> list[VersionResponse]:
    skill = await resolve_skill(repo, skill_ref)
    versions = await repo.find_versions_by_skill_id(skill.id)
    return [VersionResponse.model_validate(v) for v in versions]


async def update_status(repo: SkillRepository, skill_ref: str, active: bool) -> SkillResponse:
    skill = await resolve_skill(repo, skill_ref)
    try:
        await repo.update_skill(skill, active=active, updated_at=utcnow())
        await repo.commit()
    except SQLAlchemyError as exc:
        await repo.rollback()
        logger.exception("Database error updating status of skill %s", skill.id)
        raise DbError("Failed to update skill status") from exc
    return SkillResponse.model_validate(skill)
