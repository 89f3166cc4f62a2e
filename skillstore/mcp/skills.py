"""
Skills MCP server

Exposes the versioning engine to MCP clients as five tools: ``skill_create``,
``skill_update``, ``skill_list``, ``skill_get`` and ``skill_get_file``. Skills
are referenced by id or name. Engine failures surface as tool errors whose
text is ``"<CODE>: <message>"`` so the calling model can read them.

Mounted over streamable HTTP at ``/mcp`` by ``skillstore.main``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from skillstore.database import async_session
from skillstore.errors import SkillStoreError
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.schemas.skill import CreatorKind, FileChange, FileInput, SkillCreate, SkillUpdate
from skillstore.services import skill_service

logger = logging.getLogger(__name__)

SERVER_NAME = "skillstore"

mcp = FastMCP(
    SERVER_NAME,
    instructions=(
        "Skillstore keeps versioned skills: named bundles of files. Every change creates a new "
        "version and earlier versions stay readable. Always include a SKILL.md file as the "
        "primary documentation of a skill."
    ),
)


@asynccontextmanager
async def _engine(tool: str) -> AsyncIterator[SkillRepository]:
    """One database session per tool call; engine errors become tool errors."""
    async with async_session() as db:
        try:
            yield SkillRepository(db)
        except SkillStoreError as exc:
            logger.info("Tool %s failed: %s %s", tool, exc.code, exc.message)
            raise ToolError(f"{exc.code}: {exc.message}") from exc


@mcp.tool
async def skill_create(
    name: str,
    files: list[FileInput],
    description: str | None = None,
    changelog: str | None = None,
) -> dict[str, Any]:
    """Create a new skill with files; it starts at version 1.

    Args:
        name: Unique skill name (case-sensitive, at most 100 characters)
        files: Files of the skill. Use SKILL.md for the main doc
        description: Optional; derived from SKILL.md when omitted
        changelog: Optional note stored on version 1
    """
    data = SkillCreate(name=name, files=files, description=description, changelog=changelog)
    async with _engine("skill_create") as repo:
        skill = await skill_service.create_skill(repo, data, created_by=CreatorKind.AI)
    return skill.model_dump(mode="json")


@mcp.tool
async def skill_update(
    skill_id: str,
    file_changes: list[FileChange] | None = None,
    description: str | None = None,
    changelog: str | None = None,
) -> dict[str, Any]:
    """Update an existing skill, creating a new version.

    Args:
        skill_id: ID or name of the skill
        file_changes: Ordered add / update / delete changes; unchanged files carry over
        description: Optional new description
        changelog: Optional note stored on the new version
    """
    data = SkillUpdate(
        skill_id=skill_id, file_changes=file_changes, description=description, changelog=changelog
    )
    async with _engine("skill_update") as repo:
        skill = await skill_service.update_skill(repo, data, created_by=CreatorKind.AI)
    return skill.model_dump(mode="json")


@mcp.tool
async def skill_list(
    active_only: bool | None = None,
    show_inactive: bool = False,
    limit: int | None = None,
    offset: int = 0,
    query: str | None = None,
    detailed: bool = False,
) -> dict[str, Any]:
    """List skills (name and description) with optional filtering.

    Args:
        active_only: Only active skills (the default unless show_inactive is set)
        show_inactive: Include deactivated skills
        limit: Page size, capped at 100
        offset: Rows to skip
        query: Case-insensitive substring of the skill name
        detailed: Return full records with the latest version number
    """
    async with _engine("skill_list") as repo:
        skills = await skill_service.list_skills(
            repo,
            active_only=active_only,
            show_inactive=show_inactive,
            limit=limit,
            offset=offset,
            query=query,
            detailed=detailed,
        )
    return {"skills": [s.model_dump(mode="json") for s in skills], "count": len(skills)}


@mcp.tool
async def skill_get(skill_id: str, version: int | None = None) -> dict[str, Any]:
    """Get a skill and its file listing, at the latest or a given version."""
    async with _engine("skill_get") as repo:
        skill = await skill_service.get_skill(repo, skill_id, version)
    return skill.model_dump(mode="json")


@mcp.tool
async def skill_get_file(skill_id: str, path: str, version: int | None = None) -> dict[str, Any]:
    """Get the content of one file of a skill, at the latest or a given version."""
    async with _engine("skill_get_file") as repo:
        file = await skill_service.get_file(repo, skill_id, path, version)
    return file.model_dump(mode="json")
