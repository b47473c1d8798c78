"""Schema and rating-system metadata helpers shared by repositories."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from models import Base, RatingSystem


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def ensure_schema(engine: Engine) -> None:
    """Create required tables and indexes when missing."""
    with engine.begin() as connection:
        Base.metadata.create_all(bind=connection, checkfirst=True)


def upsert_system(
    session: Session,
    *,
    name: str,
    description: str | None,
    config_json: dict[str, Any],
) -> RatingSystem:
    """Create or update the rating-system metadata row."""
    system = session.execute(select(RatingSystem).where(RatingSystem.name == name)).scalar_one_or_none()
    if system is None:
        system = RatingSystem(
            name=name,
            description=description,
            config_json=config_json,
        )
        session.add(system)
    else:
        system.description = description
        system.config_json = config_json
        system.updated_at = utcnow()
    session.flush()
    return system


def mark_system_synced(session: Session, system: RatingSystem) -> None:
    system.last_synced_at = utcnow()
    session.flush()


__all__ = ["ensure_schema", "mark_system_synced", "upsert_system", "utcnow"]
