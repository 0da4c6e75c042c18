from __future__ import annotations
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from ..core.roles import NON_RANKED_ROLES
from ..models import Member, PointEntry
from .ranking import rank_leaderboard

async def semester_totals(db: AsyncSession, semester_id: uuid.UUID | None) -> list[dict]:
    """
    Per-member point totals over active, ranked members. Members without
    entries are included at zero. ``semester_id=None`` sums all semesters.
    """
    on = PointEntry.member_id == Member.id
    if semester_id is not None:
        on = and_(on, PointEntry.semester_id == semester_id)

    q = (
        select(
            Member.id, Member.first_name, Member.last_name, Member.avatar_url,
            func.coalesce(func.sum(PointEntry.points), 0).label("total_points"),
            func.count(PointEntry.id).label("entries"),
        )
        .select_from(Member)
        .outerjoin(PointEntry, on)
        .where(Member.is_active.is_(True), Member.role.not_in(sorted(NON_RANKED_ROLES)))
        .group_by(Member.id, Member.first_name, Member.last_name, Member.avatar_url)
        # fixed input order so ties rank the same way on every read
        .order_by(Member.last_name, Member.first_name, Member.id)
    )
    rows = (await db.execute(q)).all()
    return [
        {
            "id": r.id, "first_name": r.first_name, "last_name": r.last_name, "avatar_url": r.avatar_url,
            "total_points": int(r.total_points), "entries": int(r.entries),
        }
        for r in rows
    ]

async def build_leaderboard(db: AsyncSession, semester_id: uuid.UUID | None, *, limit: int | None = None) -> list[dict]:
    ranked = rank_leaderboard(await semester_totals(db, semester_id))
    return ranked[:limit] if limit else ranked
