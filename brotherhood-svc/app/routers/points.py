from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.roles import POINTS_OFFICER_ROLES
from ..deps import get_db, get_claims, require_roles, client_ip
from ..schemas import Created, Leaderboard, LeaderboardRow, MyPoints, PointAward, PointRead
from ..services.leaderboard import build_leaderboard
from ..services.points import award_points, list_points, member_total
from ..services.semesters import get_current_semester, get_semester

settings = get_settings()
router = APIRouter(prefix="/points", tags=["points"])

@router.get("", response_model=list[PointRead])
async def ledger(
    semester_id: uuid.UUID | None = None,
    member_id: str | None = None,
    claims: dict = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_points(db, semester_id=semester_id, member_id=member_id, limit=settings.points_list_limit)
    return [PointRead(**r) for r in rows]

@router.get("/users/me", response_model=MyPoints)
async def my_points(
    semester_id: uuid.UUID | None = None,
    claims: dict = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    member_id = claims["sub"]
    rows = await list_points(db, semester_id=semester_id, member_id=member_id, limit=settings.points_list_limit)
    total = await member_total(db, member_id, semester_id)
    return MyPoints(member_id=member_id, semester_id=semester_id, total_points=total,
                    entries=[PointRead(**r) for r in rows])

@router.get("/leaderboard", response_model=Leaderboard)
async def leaderboard(
    semester_id: uuid.UUID | None = None,
    limit: int | None = Query(None, ge=1, le=500),
    claims: dict = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    # explicit semester, else the current one, else all-time
    if semester_id is not None:
        if not await get_semester(db, semester_id):
            raise HTTPException(status_code=404, detail="Semester not found")
    else:
        current = await get_current_semester(db)
        semester_id = current.id if current else None

    rows = await build_leaderboard(db, semester_id, limit=limit or settings.leaderboard_default_limit)
    return Leaderboard(semester_id=semester_id, rows=[LeaderboardRow(**r) for r in rows])

@router.post("", response_model=Created, status_code=201)
async def award(
    payload: PointAward,
    request: Request,
    claims: dict = Depends(require_roles(POINTS_OFFICER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    try:
        entry = await award_points(
            db,
            member_id=payload.member_id,
            category_id=payload.category_id,
            semester_id=payload.semester_id,
            points=payload.points,
            reason=payload.reason,
            event_id=payload.event_id,
            awarded_by=claims["sub"],
            ip=client_ip(request),
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Created(id=entry.id)
