from __future__ import annotations
import json
import logging
from typing import Any, Sequence
from nats.aio.client import Client as NATS
from .config import get_settings

logger = logging.getLogger(__name__)
_settings = get_settings()
_nats = NATS()

async def nats_connect():
    if not _nats.is_connected:
        servers: Sequence[str] = [u.strip() for u in _settings.nats_urls.split(",") if u.strip()]
        await _nats.connect(servers=servers, allow_reconnect=True, max_reconnect_attempts=3)

async def nats_close():
    if _nats.is_connected:
        await _nats.drain()

async def publish_audit(evt: dict[str, Any]):
    """
    evt = {
      "action": "approve_brother_date",
      "entity_type": "brother_date",
      "entity_id": str,
      "member_id": str,      # actor
      "details": {...},
      "at": iso8601
    }
    """
    if not _settings.enable_nats_events:
        return
    # reconnects happen in the client's background loop, never on a request
    if not _nats.is_connected:
        logger.warning("NATS not connected, dropping %s event", evt.get("action"))
        return
    try:
        await _nats.publish(_settings.nats_subject_audit, json.dumps(evt, default=str).encode("utf-8"))
    except Exception as exc:
        # audit row is already committed; the event is best-effort
        logger.warning("Failed to publish %s event: %s", evt.get("action"), exc)
