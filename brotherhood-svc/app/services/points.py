from __future__ import annotations
import logging
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import aliased

from ..models import Member, PointCategory, PointEntry, Semester
from .audit import add_audit, emit_audit

logger = logging.getLogger(__name__)

async def get_or_create_category(db: AsyncSession, name: str, *, default_points: int = 1) -> PointCategory:
    cat = (await db.execute(select(PointCategory).where(PointCategory.name == name))).scalar_one_or_none()
    if cat:
        return cat
    cat = PointCategory(name=name, default_points=default_points)
    db.add(cat)
    await db.flush()
    return cat

def append_point_entry(
    db: AsyncSession,
    *,
    member_id: str,
    semester_id: uuid.UUID,
    category_id: uuid.UUID,
    points: int,
    awarded_by: str,
    reason: str | None = None,
    event_id: str | None = None,
    brother_date_id: uuid.UUID | None = None,
) -> PointEntry:
    """Stage one ledger row. Zero deltas are refused here, before anything reaches the ledger."""
    if points == 0:
        raise ValueError("non-zero points are required")
    entry = PointEntry(
        member_id=member_id, semester_id=semester_id, category_id=category_id, points=points,
        reason=reason, event_id=event_id, brother_date_id=brother_date_id, awarded_by=awarded_by,
    )
    db.add(entry)
    return entry

async def award_points(
    db: AsyncSession,
    *,
    member_id: str,
    category_id: uuid.UUID,
    semester_id: uuid.UUID,
    points: int,
    awarded_by: str,
    reason: str | None = None,
    event_id: str | None = None,
    ip: str | None = None,
) -> PointEntry:
    """
    Officer award (or deduction, when ``points`` is negative).

    Raises LookupError for an unknown member, category or semester and
    ValueError for an inactive category or a zero delta.
    """
    if (await db.get(Member, member_id)) is None:
        raise LookupError("Member not found")
    cat = await db.get(PointCategory, category_id)
    if cat is None:
        raise LookupError("Point category not found")
    if not cat.is_active:
        raise ValueError("Point category is inactive")
    if (await db.get(Semester, semester_id)) is None:
        raise LookupError("Semester not found")

    entry = append_point_entry(
        db, member_id=member_id, semester_id=semester_id, category_id=category_id,
        points=points, awarded_by=awarded_by, reason=reason, event_id=event_id,
    )
    await db.flush()
    audit = add_audit(db, actor_id=awarded_by, action="award_points", entity_type="points",
                      entity_id=entry.id, details={"member_id": member_id, "points": points}, ip=ip)
    await db.commit(); await db.refresh(entry)
    logger.info("%s awarded %+d points to %s (%s)", awarded_by, points, member_id, cat.name)
    await emit_audit(audit)
    return entry

async def list_points(
    db: AsyncSession,
    *,
    semester_id: uuid.UUID | None = None,
    member_id: str | None = None,
    limit: int = 500,
) -> list[dict]:
    awarder = aliased(Member)
    q = (
        select(
            PointEntry,
            Member.first_name, Member.last_name,
            PointCategory.name.label("category_name"),
            awarder.first_name.label("awarded_first"), awarder.last_name.label("awarded_last"),
        )
        .join(Member, PointEntry.member_id == Member.id)
        .join(PointCategory, PointEntry.category_id == PointCategory.id)
        .outerjoin(awarder, PointEntry.awarded_by == awarder.id)
    )
    if semester_id:
        q = q.where(PointEntry.semester_id == semester_id)
    if member_id:
        q = q.where(PointEntry.member_id == member_id)
    q = q.order_by(PointEntry.created_at.desc()).limit(limit)

    rows = (await db.execute(q)).all()
    return [
        {
            "id": p.id, "member_id": p.member_id, "semester_id": p.semester_id, "category_id": p.category_id,
            "points": p.points, "reason": p.reason, "event_id": p.event_id,
            "brother_date_id": p.brother_date_id, "awarded_by": p.awarded_by, "created_at": p.created_at,
            "first_name": first, "last_name": last, "category_name": category_name,
            "awarded_first": awarded_first, "awarded_last": awarded_last,
        }
        for p, first, last, category_name, awarded_first, awarded_last in rows
    ]

async def member_total(db: AsyncSession, member_id: str, semester_id: uuid.UUID | None = None) -> int:
    q = select(func.coalesce(func.sum(PointEntry.points), 0)).where(PointEntry.member_id == member_id)
    if semester_id:
        q = q.where(PointEntry.semester_id == semester_id)
    return int((await db.execute(q)).scalar_one())
