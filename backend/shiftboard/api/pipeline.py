import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import eligibility
from ..services import pipeline as pipeline_service
from ..services.transitions import allowed_targets
from ..models.status import ApplicationStatus
from ..utils.dependencies import get_organization_id
from ..utils.roles import business_only
from ..utils.validation import validate_application_status, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])


class MoveApplicationIn(BaseModel):
    to_status: str | int
    notes: str | None = None
    pre_hire_check_confirmation: bool | None = None
    pre_hire_check_confirmation_text: str | None = None


class PreHireConfirmationIn(BaseModel):
    right_to_work_confirmed: bool
    confirmation_text: str | None = Field(default=None, max_length=4000)


@router.get("/jobs/{job_id:int}")
def get_pipeline_view(
    job_id: int,
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    view = pipeline_service.get_pipeline_view(db, job_id=job_id, organization_id=get_organization_id(user))
    return {"success": True, "pipeline": view.model_dump(mode="json")}


@router.post("/applications/{application_id:int}/move")
def move_application(
    application_id: int,
    body: MoveApplicationIn,
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    organization_id = get_organization_id(user)
    to_status = validate_application_status(body.to_status)
    notes = validate_string_field(body.notes, "Notes", max_length=1000, required=False)

    application = pipeline_service.move_application(
        db,
        application_id=application_id,
        to_status=to_status,
        actor_id=str(user.get("sub")),
        organization_id=organization_id,
        notes=notes,
        pre_hire_confirmed=body.pre_hire_check_confirmation,
        pre_hire_confirmation_text=body.pre_hire_check_confirmation_text,
    )
    current = ApplicationStatus.from_code(application.status)
    return {
        "success": True,
        "application": application.model_dump(mode="json"),
        "allowed_next": [s.value for s in allowed_targets(current)],
    }


@router.post("/applications/{application_id:int}/pre-hire-checks")
def confirm_pre_hire_checks(
    application_id: int,
    body: PreHireConfirmationIn,
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    confirmation_text = validate_string_field(
        body.confirmation_text, "Confirmation text", max_length=4000, required=False
    )
    application = pipeline_service.confirm_pre_hire_checks(
        db,
        application_id=application_id,
        right_to_work_confirmed=body.right_to_work_confirmed,
        confirmation_text=confirmation_text,
        confirmed_by_user_id=str(user.get("sub")),
        organization_id=get_organization_id(user),
    )
    return {"success": True, "application": application.model_dump(mode="json")}


@router.get("/applications/{application_id:int}/can-hire")
def can_hire(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    allowed = pipeline_service.can_hire(
        db, application_id=application_id, organization_id=get_organization_id(user)
    )
    return {"success": True, "application_id": application_id, "can_hire": allowed}


@router.get("/applications/{application_id:int}/history/verify")
def verify_history(
    application_id: int,
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    report = pipeline_service.verify_history(
        db, application_id=application_id, organization_id=get_organization_id(user)
    )
    return {"success": True, "report": report.model_dump(mode="json")}


@router.get("/messaging-eligibility")
def messaging_eligibility(
    candidate_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    organization_id = get_organization_id(user)
    business_user_id = str(user.get("sub"))
    highest = eligibility.get_highest_status(
        db, organization_id=organization_id, candidate_id=candidate_id, business_user_id=business_user_id
    )
    return {
        "success": True,
        "candidate_id": candidate_id,
        "can_message": eligibility.can_message(
            db, organization_id=organization_id, candidate_id=candidate_id, business_user_id=business_user_id
        ),
        "highest_status": highest.value if highest else None,
    }


@router.get("/applications/{application_id:int}/messaging-eligibility")
def application_messaging_eligibility(
    application_id: int,
    user_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(business_only),
):
    """Whether a conversation may be opened on this application, and whether ``user_id`` belongs in it."""
    organization_id = get_organization_id(user)
    participant_id = (user_id or "").strip() or str(user.get("sub"))
    screening_or_later = eligibility.is_in_screening_or_later(
        db, application_id=application_id, organization_id=organization_id
    )
    is_participant = eligibility.is_user_in_application(
        db, application_id=application_id, organization_id=organization_id, user_id=participant_id
    )
    return {
        "success": True,
        "application_id": application_id,
        "user_id": participant_id,
        "screening_or_later": screening_or_later,
        "is_participant": is_participant,
        "can_message": screening_or_later and is_participant,
    }
