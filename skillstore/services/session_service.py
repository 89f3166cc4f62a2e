"""Upload session store: parsed archives staged between preview and commit.

Sessions live in the ``upload_sessions`` table so any worker can serve the
commit step. A session past ``expires_at`` is indistinguishable from one
that never existed; :func:`run_cleanup_loop` reclaims the rows.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from skillstore.config import settings
from skillstore.models.upload_session import UploadSession
from skillstore.schemas.upload import SessionData, SkillFolder
from skillstore.utils.ids import new_id, utcnow

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, db: AsyncSession, ttl: timedelta | None = None):
        self.db = db
        self.ttl = ttl if ttl is not None else timedelta(seconds=settings.session_ttl_seconds)

    async def create(self, skills: list[SkillFolder]) -> str:
        now = utcnow()
        row = UploadSession(
            id=new_id(),
            skills_data=json.dumps([s.model_dump() for s in skills]),
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.db.add(row)
        await self.db.commit()
        logger.info("Created upload session %s with %d folders", row.id, len(skills))
        return row.id

    async def get(self, session_id: str) -> SessionData | None:
        stmt = select(UploadSession).where(
            UploadSession.id == session_id, UploadSession.expires_at > utcnow()
        )
        row = (await self.db.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return SessionData(
            skills=[SkillFolder.model_validate(s) for s in json.loads(row.skills_data)],
            created_at=row.created_at,
            expires_at=row.expires_at,
        )

    async def delete(self, session_id: str) -> None:
        await self.db.execute(delete(UploadSession).where(UploadSession.id == session_id))
        await self.db.commit()

    async def cleanup(self) -> int:
        """Drop every expired session; returns how many were removed."""
        result = await self.db.execute(
            delete(UploadSession).where(UploadSession.expires_at <= utcnow())
        )
        await self.db.commit()
        return result.rowcount or 0


async def run_cleanup_loop(session_factory: async_sessionmaker, interval: float) -> None:
    """Sweep expired sessions every ``interval`` seconds until cancelled."""
    while True:
        try:
            async with session_factory() as db:
                removed = await SessionStore(db).cleanup()
            if removed:
                logger.info("Swept %d expired upload sessions", removed)
        except Exception as exc:
            logger.warning("Upload session cleanup failed: %s", exc)
        await asyncio.sleep(interval)
