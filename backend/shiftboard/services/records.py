"""
Shared persistence steps for pipeline mutations: tenant-checked lookups,
history appends and the commit that turns a lost race into ConflictError.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..models.application import Application
from ..models.application_status_history import ApplicationStatusHistory
from ..models.job import Job
from ..models.pre_hire_confirmation import PreHireConfirmation
from ..models.status import ApplicationStatus
from ..utils.error_handlers import ConflictError, ForbiddenError, NotFoundError, get_error_message
from ..utils.validation import normalize_organization_id
from .transitions import stamp_stage

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def load_application(db: Session, application_id: int, *, for_update: bool = False) -> Application:
    query = db.query(Application).filter(Application.id == int(application_id))
    if for_update:
        # Re-read even if the row is already in the identity map; FOR UPDATE where supported.
        query = query.with_for_update().populate_existing()
    application = query.first()
    if application is None:
        raise NotFoundError(
            get_error_message("application_not_found"),
            details={"application_id": int(application_id)},
        )
    return application


def load_job(db: Session, job_id: int) -> Job | None:
    return db.query(Job).filter(Job.id == int(job_id)).first()


def ensure_job_in_organization(job: Job | None, organization_id: str, *, what: str = "job") -> Job:
    """Missing and foreign jobs look the same to the caller."""
    if job is None or normalize_organization_id(job.organization_id) != normalize_organization_id(organization_id):
        raise ForbiddenError(f"User does not have access to this {what}")
    return job


def ensure_application_in_organization(db: Session, application: Application, organization_id: str) -> Job:
    job = application.job or load_job(db, application.job_id)
    return ensure_job_in_organization(job, organization_id, what="application")


def has_right_to_work_confirmation(db: Session, application_id: int) -> bool:
    row = (
        db.query(PreHireConfirmation.id)
        .filter(
            PreHireConfirmation.application_id == int(application_id),
            PreHireConfirmation.right_to_work_confirmed.is_(True),
        )
        .first()
    )
    return row is not None


def apply_status_change(
    db: Session,
    application: Application,
    to_status: ApplicationStatus,
    *,
    actor_id: str,
    when: datetime,
    notes: str | None = None,
    pre_hire_confirmed: bool | None = None,
    pre_hire_confirmation_text: str | None = None,
    auto_advanced: bool = False,
) -> tuple[ApplicationStatus, ApplicationStatusHistory]:
    """Mutate the application and stage its history row. Nothing is flushed here."""
    from_status = ApplicationStatus(application.status)
    application.status = to_status
    application.updated_at = when
    stamp_stage(application, to_status, when)

    entry = ApplicationStatusHistory(
        application_id=application.id,
        from_status=from_status,
        to_status=to_status,
        changed_by_user_id=str(actor_id),
        changed_at=when,
        notes=notes,
        pre_hire_check_confirmation=pre_hire_confirmed if to_status == ApplicationStatus.HIRED else None,
        pre_hire_check_confirmation_text=(
            pre_hire_confirmation_text if to_status == ApplicationStatus.HIRED else None
        ),
        auto_advanced=auto_advanced,
    )
    db.add(entry)
    return from_status, entry


def commit_or_conflict(db: Session, *, application_id: int | None = None) -> None:
    """Commit the unit of work; roll everything back on failure."""
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent update detected for application %s: %s", application_id, e)
        raise ConflictError(
            get_error_message("concurrent_update"),
            details={"application_id": application_id},
        )
    except Exception:
        db.rollback()
        raise
