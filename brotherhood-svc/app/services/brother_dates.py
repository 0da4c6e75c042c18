from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import aliased

from ..core.config import get_settings
from ..models import BrotherDate, BrotherDateStatus, Member, Semester, utcnow
from .audit import add_audit, emit_audit
from .points import append_point_entry, get_or_create_category

logger = logging.getLogger(__name__)
settings = get_settings()

MISSING_MEMBER = "Both members are required"
SELF_PAIRING = "Cannot create a brother date with yourself"

@dataclass(frozen=True)
class PairVerdict:
    valid: bool
    error: str | None = None

def validate_brother_date(member1_id: str | None, member2_id: str | None) -> PairVerdict:
    """Gate-check a proposed pair. Emptiness is reported before self-pairing."""
    if not member1_id or not member2_id:
        return PairVerdict(False, MISSING_MEMBER)
    if member1_id == member2_id:
        return PairVerdict(False, SELF_PAIRING)
    return PairVerdict(True)

def ensure_id_ordering(id1: str, id2: str) -> tuple[str, str]:
    """Canonical order for an unordered pair: lexicographically smaller id first."""
    return (id1, id2) if id1 <= id2 else (id2, id1)

class BrotherDateConflict(Exception):
    """Duplicate submission, or a second decision on an already decided brother date."""

async def submit_brother_date(
    db: AsyncSession,
    *,
    member1_id: str,
    member2_id: str,
    semester_id: uuid.UUID,
    occurred_on: date,
    submitted_by: str,
    description: str | None = None,
    ip: str | None = None,
) -> BrotherDate:
    verdict = validate_brother_date(member1_id, member2_id)
    if not verdict.valid:
        raise ValueError(verdict.error)

    m1, m2 = ensure_id_ordering(member1_id, member2_id)

    found = (await db.execute(select(func.count()).select_from(Member).where(Member.id.in_((m1, m2))))).scalar_one()
    if found != 2:
        raise LookupError("Member not found")
    if (await db.get(Semester, semester_id)) is None:
        raise LookupError("Semester not found")

    # A->B and B->A collapse to the same canonical pair
    dup = (await db.execute(
        select(BrotherDate.id).where(
            BrotherDate.semester_id == semester_id,
            BrotherDate.member1_id == m1,
            BrotherDate.member2_id == m2,
            BrotherDate.occurred_on == occurred_on,
            BrotherDate.status != BrotherDateStatus.REJECTED,
        )
    )).first()
    if dup:
        raise BrotherDateConflict("Brother date already submitted")

    bd = BrotherDate(
        member1_id=m1, member2_id=m2, submitted_by=submitted_by, semester_id=semester_id,
        occurred_on=occurred_on, description=description,
    )
    db.add(bd)
    await db.flush()
    audit = add_audit(db, actor_id=submitted_by, action="submit_brother_date", entity_type="brother_date",
                      entity_id=bd.id, details={"member1_id": m1, "member2_id": m2}, ip=ip)
    await db.commit(); await db.refresh(bd)
    await emit_audit(audit)
    return bd

async def decide_brother_date(
    db: AsyncSession,
    brother_date_id: uuid.UUID,
    *,
    approved: bool,
    decided_by: str,
    points_awarded: int = 0,
    ip: str | None = None,
) -> BrotherDate | None:
    """
    One-shot pending -> approved/rejected transition. Returns None when the
    submission does not exist; raises BrotherDateConflict when already decided.
    An approval with points books one ledger entry per member; ValueError when
    the brother-date category has been deactivated.
    """
    bd = (await db.execute(
        select(BrotherDate).where(BrotherDate.id == brother_date_id).with_for_update()
    )).scalar_one_or_none()
    if bd is None:
        return None
    if bd.status != BrotherDateStatus.PENDING:
        raise BrotherDateConflict("Brother date already decided")

    cat = None
    if approved and points_awarded > 0:
        cat = await get_or_create_category(db, settings.brother_date_category, default_points=points_awarded)
        if not cat.is_active:
            raise ValueError("Brother date point category is inactive")

    bd.decided_by = decided_by
    bd.decided_at = utcnow()
    if approved:
        bd.status = BrotherDateStatus.APPROVED
        bd.points_awarded = points_awarded
        if cat is not None:
            for member_id in (bd.member1_id, bd.member2_id):
                append_point_entry(
                    db, member_id=member_id, semester_id=bd.semester_id, category_id=cat.id,
                    points=points_awarded, awarded_by=decided_by, brother_date_id=bd.id,
                    reason=f"Brother date on {bd.occurred_on.isoformat()}",
                )
    else:
        bd.status = BrotherDateStatus.REJECTED
        bd.points_awarded = 0

    audit = add_audit(
        db, actor_id=decided_by,
        action="approve_brother_date" if approved else "reject_brother_date",
        entity_type="brother_date", entity_id=bd.id, details={"points_awarded": bd.points_awarded}, ip=ip,
    )
    await db.commit(); await db.refresh(bd)
    logger.info("Brother date %s %s by %s", bd.id, bd.status.value, decided_by)
    await emit_audit(audit)
    return bd

async def list_brother_dates(
    db: AsyncSession,
    *,
    semester_id: uuid.UUID | None = None,
    status: BrotherDateStatus | None = None,
) -> list[dict]:
    m1 = aliased(Member)
    m2 = aliased(Member)
    q = (
        select(BrotherDate, m1.first_name, m1.last_name, m2.first_name, m2.last_name)
        .join(m1, BrotherDate.member1_id == m1.id)
        .join(m2, BrotherDate.member2_id == m2.id)
    )
    if semester_id:
        q = q.where(BrotherDate.semester_id == semester_id)
    if status:
        q = q.where(BrotherDate.status == status)
    q = q.order_by(BrotherDate.occurred_on.desc(), BrotherDate.created_at.desc())

    rows = (await db.execute(q)).all()
    return [
        {
            **brother_date_fields(bd),
            "m1_first": m1_first, "m1_last": m1_last, "m2_first": m2_first, "m2_last": m2_last,
        }
        for bd, m1_first, m1_last, m2_first, m2_last in rows
    ]

def brother_date_fields(bd: BrotherDate) -> dict:
    return {
        "id": bd.id, "member1_id": bd.member1_id, "member2_id": bd.member2_id,
        "submitted_by": bd.submitted_by, "semester_id": bd.semester_id, "date": bd.occurred_on,
        "description": bd.description, "status": bd.status.value, "points_awarded": bd.points_awarded,
        "decided_by": bd.decided_by, "decided_at": bd.decided_at, "created_at": bd.created_at,
    }
