from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import get_error_message
from .jwt import decode_access_token
from .validation import validate_organization_id

_bearer = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=get_error_message("unauthorized"))

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return payload


def get_organization_id(user: dict) -> str:
    org_id = str(user.get("org_id") or "").strip()
    if not org_id:
        raise HTTPException(status_code=400, detail=get_error_message("organization_required"))
    return validate_organization_id(org_id)
