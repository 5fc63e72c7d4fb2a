from fastapi import Depends, HTTPException
from .dependencies import get_current_user


def _role_required(*allowed_roles: str):
    def check_role(user=Depends(get_current_user)):
        if user.get("role") not in allowed_roles:
            label = " or ".join(r.capitalize() for r in allowed_roles)
            raise HTTPException(status_code=403, detail=f"{label} access only")
        return user
    return check_role


business_only = _role_required("business")
candidate_only = _role_required("candidate")
staff_only = _role_required("business", "admin")
