"""FastAPI dependencies wiring request-scoped collaborators."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from skillstore.database import get_db
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.services.session_service import SessionStore


def get_skill_repo(db: AsyncSession = Depends(get_db)) -> SkillRepository:
    return SkillRepository(db)


def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    return SessionStore(db)
