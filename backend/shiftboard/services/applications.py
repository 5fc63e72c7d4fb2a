"""
Application intake and candidate/business read models.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import unit_of_work
from ..models.application import Application
from ..models.application_status_history import ApplicationStatusHistory
from ..models.pre_hire_confirmation import PreHireConfirmation
from ..models.status import ApplicationStatus, JobStatus
from ..schemas.application import ApplicationOut, PagedApplications, StatusHistoryOut
from ..utils.error_handlers import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    get_error_message,
)
from ..utils.validation import normalize_organization_id
from . import audit, records
from .transitions import is_valid_transition

logger = logging.getLogger(__name__)


def _confirmed_ids(db: Session, application_ids: list[int]) -> set[int]:
    """Application ids (out of ``application_ids``) with a positive right-to-work confirmation."""
    if not application_ids:
        return set()
    rows = (
        db.query(PreHireConfirmation.application_id)
        .filter(
            PreHireConfirmation.application_id.in_(application_ids),
            PreHireConfirmation.right_to_work_confirmed.is_(True),
        )
        .distinct()
        .all()
    )
    return {int(r[0]) for r in rows}


def _to_page(db: Session, query, *, page: int, page_size: int) -> PagedApplications:
    total = query.count()
    apps = (
        query.order_by(Application.applied_at.desc(), Application.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    confirmed = _confirmed_ids(db, [a.id for a in apps])
    return PagedApplications(
        items=[ApplicationOut.from_model(a, pre_hire_check_confirmed=a.id in confirmed) for a in apps],
        page=page,
        page_size=page_size,
        total=total,
    )


def _ensure_scope(
    db: Session,
    application: Application,
    *,
    organization_id: str | None,
    candidate_id: str | None,
) -> None:
    if organization_id is not None:
        records.ensure_application_in_organization(db, application, organization_id)
    if candidate_id is not None and str(application.candidate_id) != str(candidate_id):
        raise ForbiddenError(get_error_message("application_forbidden"))


def apply_to_job(
    db: Session,
    *,
    job_id: int,
    candidate_id: str,
    cover_letter: str | None = None,
    cv_url: str | None = None,
) -> ApplicationOut:
    job = records.load_job(db, job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"), details={"job_id": int(job_id)})

    if job.status != JobStatus.PUBLISHED:
        raise InvalidStateError(
            get_error_message("job_closed"),
            details={"job_id": job.id, "job_status": JobStatus(job.status).value},
        )

    existing = (
        db.query(Application.id)
        .filter(Application.job_id == job.id, Application.candidate_id == str(candidate_id))
        .first()
    )
    if existing is not None:
        raise InvalidStateError(get_error_message("already_applied"), details={"application_id": existing[0]})

    now = records.utcnow()
    application = Application(
        job_id=job.id,
        candidate_id=str(candidate_id),
        organization_id=normalize_organization_id(job.organization_id),
        status=ApplicationStatus.APPLIED,
        cover_letter=cover_letter,
        cv_url=cv_url,
        applied_at=now,
        updated_at=now,
    )
    try:
        db.add(application)
        db.flush()
        db.add(
            ApplicationStatusHistory(
                application_id=application.id,
                from_status=None,
                to_status=ApplicationStatus.APPLIED,
                changed_by_user_id=str(candidate_id),
                changed_at=now,
            )
        )
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent apply by the same candidate.
        db.rollback()
        raise InvalidStateError(get_error_message("already_applied"), details={"job_id": job.id})
    except Exception:
        db.rollback()
        raise
    db.refresh(application)

    audit.log_event(
        db,
        event_type="ApplicationCreated",
        entity_type="Application",
        entity_id=application.id,
        payload={"application_id": application.id, "job_id": job.id, "candidate_id": str(candidate_id)},
        actor_id=candidate_id,
        organization_id=job.organization_id,
    )

    logger.info("Candidate %s applied to job %s", candidate_id, job.id)
    return ApplicationOut.from_model(application)


def get_application_by_id(
    db: Session,
    *,
    application_id: int,
    organization_id: str | None = None,
    candidate_id: str | None = None,
) -> ApplicationOut:
    application = records.load_application(db, application_id)
    _ensure_scope(db, application, organization_id=organization_id, candidate_id=candidate_id)
    return ApplicationOut.from_model(
        application,
        pre_hire_check_confirmed=records.has_right_to_work_confirmation(db, application.id),
    )


def get_applications_for_job(
    db: Session,
    *,
    job_id: int,
    organization_id: str,
    page: int = 1,
    page_size: int = 20,
) -> PagedApplications:
    job = records.ensure_job_in_organization(records.load_job(db, job_id), organization_id)
    query = db.query(Application).filter(Application.job_id == job.id)
    return _to_page(db, query, page=page, page_size=page_size)


def get_candidate_applications(
    db: Session,
    *,
    candidate_id: str,
    page: int = 1,
    page_size: int = 20,
) -> PagedApplications:
    query = db.query(Application).filter(Application.candidate_id == str(candidate_id))
    return _to_page(db, query, page=page, page_size=page_size)


def withdraw_application(db: Session, *, application_id: int, candidate_id: str) -> ApplicationOut:
    with unit_of_work(db):
        application = records.load_application(db, application_id, for_update=True)
        if str(application.candidate_id) != str(candidate_id):
            raise ForbiddenError("Only the candidate can withdraw their application")

        current = ApplicationStatus(application.status)
        if current == ApplicationStatus.HIRED:
            raise InvalidStateError(get_error_message("withdraw_hired"), details={"current_status": current.value})
        if current == ApplicationStatus.WITHDRAWN:
            raise InvalidStateError(get_error_message("already_withdrawn"), details={"current_status": current.value})
        # Only Applied has a Withdrawn edge; after that the employer closes the application.
        if not is_valid_transition(current, ApplicationStatus.WITHDRAWN):
            raise InvalidStateError(get_error_message("withdraw_too_late"), details={"current_status": current.value})

        from_status, _ = records.apply_status_change(
            db,
            application,
            ApplicationStatus.WITHDRAWN,
            actor_id=candidate_id,
            when=records.utcnow(),
        )
        records.commit_or_conflict(db, application_id=application.id)
    db.refresh(application)

    audit.log_event(
        db,
        event_type="ApplicationWithdrawn",
        entity_type="Application",
        entity_id=application.id,
        payload={"application_id": application.id, "job_id": application.job_id, "from_status": from_status.value},
        actor_id=candidate_id,
        organization_id=application.organization_id,
    )

    logger.info("Candidate %s withdrew application %s", candidate_id, application.id)
    return ApplicationOut.from_model(
        application,
        pre_hire_check_confirmed=records.has_right_to_work_confirmation(db, application.id),
    )


def get_application_history(
    db: Session,
    *,
    application_id: int,
    organization_id: str | None = None,
    candidate_id: str | None = None,
) -> list[StatusHistoryOut]:
    application = records.load_application(db, application_id)
    _ensure_scope(db, application, organization_id=organization_id, candidate_id=candidate_id)
    rows = (
        db.query(ApplicationStatusHistory)
        .filter(ApplicationStatusHistory.application_id == application.id)
        .order_by(ApplicationStatusHistory.changed_at.asc(), ApplicationStatusHistory.id.asc())
        .all()
    )
    return [StatusHistoryOut.from_model(r) for r in rows]
