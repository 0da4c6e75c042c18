from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.roles import SEMESTER_MANAGER_ROLES
from ..deps import get_db, get_claims, require_roles, client_ip
from ..models import Semester
from ..schemas import SemesterCreate, SemesterUpdate, SemesterRead
from ..services.semesters import (
    create_semester, get_current_semester, get_semester, list_semesters, update_semester
)

router = APIRouter(prefix="/semesters", tags=["semesters"])

def _read(s: Semester) -> SemesterRead:
    return SemesterRead(id=s.id, name=s.name, start_date=s.start_date, end_date=s.end_date,
                        dues_amount=s.dues_amount, is_current=s.is_current)

@router.get("", response_model=list[SemesterRead])
async def all_semesters(claims: dict = Depends(get_claims), db: AsyncSession = Depends(get_db)):
    return [_read(s) for s in await list_semesters(db)]

@router.get("/current", response_model=SemesterRead)
async def current_semester(claims: dict = Depends(get_claims), db: AsyncSession = Depends(get_db)):
    sem = await get_current_semester(db)
    if not sem:
        raise HTTPException(status_code=404, detail="No current semester")
    return _read(sem)

@router.post("", response_model=SemesterRead, status_code=201)
async def new_semester(
    payload: SemesterCreate,
    request: Request,
    claims: dict = Depends(require_roles(SEMESTER_MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    sem = await create_semester(db, fields=payload.model_dump(), actor_id=claims["sub"], ip=client_ip(request))
    return _read(sem)

@router.patch("/{semester_id}", response_model=SemesterRead)
async def edit_semester(
    semester_id: uuid.UUID,
    payload: SemesterUpdate,
    request: Request,
    claims: dict = Depends(require_roles(SEMESTER_MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    sem = await get_semester(db, semester_id)
    if not sem:
        raise HTTPException(status_code=404, detail="Semester not found")
    try:
        sem = await update_semester(db, sem, changes=changes, actor_id=claims["sub"], ip=client_ip(request))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _read(sem)
