from __future__ import annotations
import logging
import uuid
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from ..models import Semester
from .audit import add_audit, emit_audit

logger = logging.getLogger(__name__)

async def get_semester(db: AsyncSession, semester_id: uuid.UUID) -> Semester | None:
    return (await db.execute(select(Semester).where(Semester.id == semester_id))).scalar_one_or_none()

async def get_current_semester(db: AsyncSession) -> Semester | None:
    # newest wins if the flag was ever set twice outside this service
    return (await db.execute(
        select(Semester).where(Semester.is_current.is_(True)).order_by(Semester.start_date.desc())
    )).scalars().first()

async def list_semesters(db: AsyncSession) -> list[Semester]:
    return list((await db.execute(select(Semester).order_by(Semester.start_date.desc()))).scalars().all())

async def _clear_current(db: AsyncSession) -> None:
    await db.execute(update(Semester).where(Semester.is_current.is_(True)).values(is_current=False))

async def create_semester(db: AsyncSession, *, fields: dict[str, Any], actor_id: str, ip: str | None = None) -> Semester:
    if fields.get("is_current"):
        await _clear_current(db)
    sem = Semester(**fields)
    db.add(sem)
    await db.flush()
    audit = add_audit(db, actor_id=actor_id, action="create_semester", entity_type="semester",
                      entity_id=sem.id, details={"name": sem.name}, ip=ip)
    await db.commit(); await db.refresh(sem)
    logger.info("Semester %s (%s) created by %s", sem.name, sem.id, actor_id)
    await emit_audit(audit)
    return sem

async def update_semester(db: AsyncSession, sem: Semester, *, changes: dict[str, Any], actor_id: str, ip: str | None = None) -> Semester:
    """Apply a partial update. Raises ValueError when the resulting date range is inverted."""
    start = changes.get("start_date", sem.start_date)
    end = changes.get("end_date", sem.end_date)
    if end < start:
        raise ValueError("end_date must not be before start_date")

    if changes.get("is_current") and not sem.is_current:
        await _clear_current(db)
    for key, value in changes.items():
        setattr(sem, key, value)

    audit = add_audit(db, actor_id=actor_id, action="update_semester", entity_type="semester",
                      entity_id=sem.id, details={k: str(v) for k, v in changes.items()}, ip=ip)
    await db.commit(); await db.refresh(sem)
    await emit_audit(audit)
    return sem
