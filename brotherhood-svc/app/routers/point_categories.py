from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..core.roles import POINTS_OFFICER_ROLES
from ..deps import get_db, get_claims, require_roles, client_ip
from ..models import PointCategory
from ..schemas import PointCategoryCreate, PointCategoryRead
from ..services.audit import add_audit, emit_audit

router = APIRouter(prefix="/point-categories", tags=["points"])

def _read(c: PointCategory) -> PointCategoryRead:
    return PointCategoryRead(id=c.id, name=c.name, default_points=c.default_points,
                             description=c.description, is_active=c.is_active)

@router.get("", response_model=list[PointCategoryRead])
async def list_categories(claims: dict = Depends(get_claims), db: AsyncSession = Depends(get_db)):
    rows = (await db.execute(
        select(PointCategory).where(PointCategory.is_active.is_(True)).order_by(PointCategory.name)
    )).scalars().all()
    return [_read(c) for c in rows]

@router.post("", response_model=PointCategoryRead, status_code=201)
async def create_category(
    payload: PointCategoryCreate,
    request: Request,
    claims: dict = Depends(require_roles(POINTS_OFFICER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    exists = (await db.execute(select(PointCategory.id).where(PointCategory.name == payload.name))).scalar_one_or_none()
    if exists:
        raise HTTPException(status_code=409, detail="Point category already exists")
    c = PointCategory(name=payload.name, default_points=payload.default_points, description=payload.description)
    db.add(c)
    await db.flush()
    audit = add_audit(db, actor_id=claims["sub"], action="create_point_category", entity_type="point_category",
                      entity_id=c.id, details={"name": c.name}, ip=client_ip(request))
    await db.commit(); await db.refresh(c)
    await emit_audit(audit)
    return _read(c)
