import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import applications as application_service
from ..utils.dependencies import get_current_user, get_organization_id
from ..utils.roles import business_only, candidate_only
from ..utils.validation import validate_pagination, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


class ApplyIn(BaseModel):
    cover_letter: str | None = None
    cv_url: str | None = None


def _scope_for(user: dict) -> dict:
    """Candidates see their own applications, business users their organization's."""
    role = user.get("role")
    if role == "candidate":
        return {"candidate_id": str(user.get("sub"))}
    if role == "business":
        return {"organization_id": get_organization_id(user)}
    if role == "admin":
        return {}
    raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/jobs/{job_id:int}/apply", status_code=201)
def apply_to_job(
    job_id: int,
    body: ApplyIn,
    db: Session = Depends(get_db),
    user=Depends(candidate_only),
):
    cover_letter = validate_string_field(
        body.cover_letter, "Cover letter", max_length=5000, required=False
    )
    cv_url = validate_string_field(body.cv_url, "CV URL", max_length=500, required=False)

    application = application_service.apply_to_job(
        db,
        job_id=job_id,
        candidate_id=str(user.get("sub")),
        cover_letter=cover_letter,
        cv_url=cv_url,
    )
    return {"success": True, "application": application.model_dump(mode="json")}


@router.get("/mine")
def my_applications(
    page: int | None = Query(default=None),
    page_size: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(candidate_only),
):
    page_n, size_n = validate_pagination(page, page_size)
    result = application_service.get_candidate_applications(
        db, candidate_id=str(user.get("sub")), page=page_n, page_size=size_n
    )
    return {"success": True, **result.model_dump(mode="json")}


@router.get("/job/{job_id:int}")
def job_applications(
    job_id: int,
    page: int | None = Query(default=None),
    page_size: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    page_n, size_n = validate_pagination(page, page_size)
    result = application_service.get_applications_for_job(
        db,
        job_id=job_id,
        organization_id=get_organization_id(user),
        page=page_n,
        page_size=size_n,
    )
    return {"success": True, **result.model_dump(mode="json")}


@router.get("/{application_id:int}")
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    application = application_service.get_application_by_id(
        db, application_id=application_id, **_scope_for(user)
    )
    return {"success": True, "application": application.model_dump(mode="json")}


@router.get("/{application_id:int}/history")
def get_application_history(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    history = application_service.get_application_history(
        db, application_id=application_id, **_scope_for(user)
    )
    return {"success": True, "history": [h.model_dump(mode="json") for h in history]}


@router.delete("/{application_id:int}")
def withdraw_application(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(candidate_only),
):
    application = application_service.withdraw_application(
        db, application_id=application_id, candidate_id=str(user.get("sub"))
    )
    return {
        "success": True,
        "message": "Application withdrawn successfully",
        "application": application.model_dump(mode="json"),
    }
