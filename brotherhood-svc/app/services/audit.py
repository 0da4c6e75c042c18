from __future__ import annotations
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.nats import publish_audit
from ..models import AuditLog, utcnow

def add_audit(
    db: AsyncSession,
    *,
    actor_id: str | None,
    action: str,
    entity_type: str | None,
    entity_id: Any,
    details: dict[str, Any] | None = None,
    ip: str | None = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    entry = AuditLog(
        member_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
        ip_address=ip,
        created_at=utcnow(),
    )
    db.add(entry)
    return entry

async def emit_audit(entry: AuditLog) -> None:
    await publish_audit({
        "action": entry.action,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "member_id": entry.member_id,
        "details": entry.details,
        "at": entry.created_at.isoformat(),
    })
