"""Data access for skills, versions and files.

Writes only ``flush``; the caller decides when a unit of work is committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from skillstore.models.skill import Skill, SkillFile, SkillVersion
from skillstore.utils.ids import new_id


@dataclass
class ListSkillsFilter:
    active_only: bool = True
    limit: int = 50
    offset: int = 0
    query: str | None = None


@dataclass
class SkillWithVersion:
    skill: Skill
    latest_version: int = 0


@dataclass
class NewFile:
    path: str
    content: str
    is_executable: bool = False
    script_language: str | None = None
    run_instructions_for_ai: str | None = None


class SkillRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    # ── Skills ──────────────────────────────────────────────────────

    async def create_skill(self, **fields: Any) -> Skill:
        skill = Skill(id=new_id(), **fields)
        self.db.add(skill)
        await self.db.flush()
        return skill

    async def find_skill_by_id(self, skill_id: str) -> Skill | None:
        return await self.db.get(Skill, skill_id)

    async def find_skill_by_name(self, name: str) -> Skill | None:
        result = await self.db.execute(select(Skill).where(Skill.name == name))
        return result.scalar_one_or_none()

    async def list_skills(self, filters: ListSkillsFilter) -> list[SkillWithVersion]:
        latest = func.coalesce(func.max(SkillVersion.version_number), 0).label("latest_version")
        stmt = (
            select(Skill, latest)
            .outerjoin(SkillVersion, SkillVersion.skill_id == Skill.id)
            .group_by(Skill.id)
            .order_by(Skill.updated_at.desc(), Skill.name)
            .limit(filters.limit)
            .offset(filters.offset)
        )
        if filters.active_only:
            stmt = stmt.where(Skill.active.is_(True))
        if filters.query:
            stmt = stmt.where(Skill.name.icontains(filters.query, autoescape=True))

        result = await self.db.execute(stmt)
        return [SkillWithVersion(skill=row[0], latest_version=row[1]) for row in result.all()]

    async def update_skill(self, skill: Skill, **fields: Any) -> Skill:
        for name, value in fields.items():
            setattr(skill, name, value)
        await self.db.flush()
        return skill

    # ── Versions ────────────────────────────────────────────────────

    async def create_version(self, **fields: Any) -> SkillVersion:
        version = SkillVersion(id=new_id(), **fields)
        self.db.add(version)
        await self.db.flush()
        return version

    async def find_versions_by_skill_id(self, skill_id: str) -> list[SkillVersion]:
        stmt = (
            select(SkillVersion)
            .where(SkillVersion.skill_id == skill_id)
            .order_by(SkillVersion.version_number.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_version(self, skill_id: str, version_number: int) -> SkillVersion | None:
        stmt = select(SkillVersion).where(
            SkillVersion.skill_id == skill_id,
            SkillVersion.version_number == version_number,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_version_number(self, skill_id: str) -> int:
        stmt = select(func.max(SkillVersion.version_number)).where(SkillVersion.skill_id == skill_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() or 0

    # ── Files ───────────────────────────────────────────────────────

    async def create_files(self, skill_id: str, version_id: str, files: list[NewFile]) -> list[SkillFile]:
        rows = [
            SkillFile(
                id=new_id(),
                skill_id=skill_id,
                version_id=version_id,
                path=f.path,
                content=f.content,
                is_executable=f.is_executable,
                script_language=f.script_language,
                run_instructions_for_ai=f.run_instructions_for_ai,
            )
            for f in files
        ]
        self.db.add_all(rows)
        await self.db.flush()
        return sorted(rows, key=lambda r: r.path)

    async def find_files_by_version_id(self, version_id: str) -> list[SkillFile]:
        stmt = select(SkillFile).where(SkillFile.version_id == version_id).order_by(SkillFile.path)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_file(self, version_id: str, path: str) -> SkillFile | None:
        stmt = select(SkillFile).where(SkillFile.version_id == version_id, SkillFile.path == path)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
