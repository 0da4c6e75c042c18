from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.redis import allow_request
from ..core.roles import BROTHER_DATE_CHAIRS, POINTS_OFFICER_ROLES
from ..deps import get_db, get_claims, require_roles, is_points_officer, client_ip
from ..models import BrotherDateStatus
from ..schemas import BrotherDateCreate, BrotherDateDecision, BrotherDateRead, BrotherDateStatusLit, Created
from ..services.brother_dates import (
    BrotherDateConflict, brother_date_fields, decide_brother_date, list_brother_dates,
    submit_brother_date, validate_brother_date,
)
from ..services.semesters import get_current_semester

router = APIRouter(prefix="/brother-dates", tags=["brother-dates"])

@router.get("", response_model=list[BrotherDateRead])
async def brother_dates(
    semester_id: uuid.UUID | None = None,
    status: BrotherDateStatusLit | None = None,
    claims: dict = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_brother_dates(
        db, semester_id=semester_id, status=BrotherDateStatus(status) if status else None
    )
    return [BrotherDateRead(**r) for r in rows]

@router.post("", response_model=Created, status_code=201)
async def submit(
    payload: BrotherDateCreate,
    request: Request,
    claims: dict = Depends(get_claims),
    db: AsyncSession = Depends(get_db),
):
    ip = client_ip(request)
    if not await allow_request(ip, "brother_dates.submit"):
        raise HTTPException(status_code=429, detail="Too many requests")

    caller = claims["sub"]
    member1_id = payload.member1_id or caller
    member2_id = payload.member2_id

    verdict = validate_brother_date(member1_id, member2_id)
    if not verdict.valid:
        raise HTTPException(status_code=400, detail=verdict.error)
    if caller not in (member1_id, member2_id) and not is_points_officer(claims):
        raise HTTPException(status_code=403, detail="You can only submit brother dates you took part in")

    semester_id = payload.semester_id
    if semester_id is None:
        current = await get_current_semester(db)
        if not current:
            raise HTTPException(status_code=400, detail="semester_id is required when no semester is current")
        semester_id = current.id

    try:
        bd = await submit_brother_date(
            db,
            member1_id=member1_id,
            member2_id=member2_id,
            semester_id=semester_id,
            occurred_on=payload.date,
            description=payload.description or None,
            submitted_by=caller,
            ip=ip,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except BrotherDateConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return Created(id=bd.id)

@router.put("/{brother_date_id}", response_model=BrotherDateRead)
async def decide(
    brother_date_id: uuid.UUID,
    payload: BrotherDateDecision,
    request: Request,
    claims: dict = Depends(require_roles(POINTS_OFFICER_ROLES, chairs=BROTHER_DATE_CHAIRS)),
    db: AsyncSession = Depends(get_db),
):
    try:
        bd = await decide_brother_date(
            db,
            brother_date_id,
            approved=payload.approved,
            points_awarded=payload.points_awarded,
            decided_by=claims["sub"],
            ip=client_ip(request),
        )
    except BrotherDateConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if bd is None:
        raise HTTPException(status_code=404, detail="Brother date not found")
    return BrotherDateRead(**brother_date_fields(bd))
