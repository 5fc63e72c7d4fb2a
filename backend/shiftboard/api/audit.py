from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import audit as audit_service
from ..utils.dependencies import get_organization_id
from ..utils.roles import staff_only
from ..utils.validation import normalize_organization_id, validate_integer_field

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("")
def list_audit_logs(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    limit: int | None = Query(default=None),
    organization_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(staff_only),
):
    """Business users only ever see their own organization; admins may filter by any."""
    if user.get("role") == "business":
        org = get_organization_id(user)
        if organization_id and normalize_organization_id(organization_id) != org:
            raise HTTPException(status_code=403, detail="Forbidden")
        organization_id = org

    limit_n = validate_integer_field(limit, "Limit", min_value=1, max_value=500, required=False) or 100
    rows = audit_service.get_logs(
        db,
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        start=start,
        end=end,
        limit=limit_n,
    )
    return {"success": True, "logs": [audit_service.public_view(r) for r in rows]}
