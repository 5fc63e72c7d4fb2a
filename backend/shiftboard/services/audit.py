"""
Audit trail for pipeline mutations.

Audit rows are committed separately, after the business transaction. A failing
audit write is rolled back and logged; it never undoes the state change it
describes.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import config
from ..models.audit_log import AuditLog
from ..utils.validation import normalize_organization_id

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    # Enums and anything else readable
    return getattr(value, "value", None) or str(value)


def log_event(
    db: Session,
    *,
    event_type: str,
    entity_type: str,
    entity_id: str | int | None,
    payload: dict[str, Any] | None,
    actor_id: str | None,
    organization_id: str | None,
) -> AuditLog | None:
    """
    Append one audit entry. Returns the row, or None when auditing is disabled
    or the write failed.
    """
    if not config.AUDIT_ENABLED:
        return None

    row = AuditLog(
        action=event_type,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        user_id=str(actor_id) if actor_id is not None else None,
        organization_id=normalize_organization_id(organization_id) if organization_id else None,
        details=json.dumps(payload or {}, default=_json_default, ensure_ascii=False),
        timestamp=datetime.now(timezone.utc),
    )
    try:
        db.add(row)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(
            "Audit write failed for %s on %s %s: %s",
            event_type, entity_type, entity_id, e,
        )
        return None

    logger.debug("Audit logged: %s on %s %s", event_type, entity_type, entity_id)
    return row


def get_logs(
    db: Session,
    *,
    organization_id: str | None = None,
    user_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 100,
) -> list[AuditLog]:
    query = db.query(AuditLog)
    if organization_id:
        query = query.filter(func.lower(AuditLog.organization_id) == normalize_organization_id(organization_id))
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    if start is not None:
        query = query.filter(AuditLog.timestamp >= start)
    if end is not None:
        query = query.filter(AuditLog.timestamp <= end)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(max(1, int(limit))).all()


def public_view(row: AuditLog) -> dict[str, Any]:
    try:
        details = json.loads(row.details) if row.details else {}
    except ValueError:
        details = {"raw": row.details}
    return {
        "id": row.id,
        "action": row.action,
        "entity_type": row.entity_type,
        "entity_id": row.entity_id,
        "user_id": row.user_id,
        "organization_id": row.organization_id,
        "details": details,
        "timestamp": row.timestamp.isoformat() if isinstance(row.timestamp, datetime) else row.timestamp,
    }
