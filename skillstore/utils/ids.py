"""Identifier and clock helpers shared by models and services."""

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite stores DateTime columns without a zone."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
