"""
Read-only eligibility checks used by messaging.

Applications are always joined to their job so the organization filter comes
from the job posting. Stage comparisons use the status code, so "Screening or
later" means any code >= Screening (Rejected and Withdrawn included).
Database errors are logged and answered with the deny value.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.application import Application
from ..models.job import Job
from ..models.status import ApplicationStatus
from ..utils.validation import normalize_organization_id

logger = logging.getLogger(__name__)

_SCREENING_OR_LATER = [s for s in ApplicationStatus if s.code >= ApplicationStatus.SCREENING.code]


def _blank(*values: str | None) -> bool:
    return any(not (v or "").strip() for v in values)


def _candidate_business_query(db: Session, organization_id: str, candidate_id: str, business_user_id: str):
    return (
        db.query(Application)
        .join(Job, Application.job_id == Job.id)
        .filter(
            func.lower(Job.organization_id) == normalize_organization_id(organization_id),
            Job.created_by_user_id == business_user_id,
            Application.candidate_id == candidate_id,
        )
    )


def can_message(db: Session, *, organization_id: str, candidate_id: str, business_user_id: str) -> bool:
    if _blank(organization_id, candidate_id, business_user_id):
        return False
    try:
        eligible = (
            _candidate_business_query(db, organization_id, candidate_id, business_user_id)
            .filter(Application.status.in_(_SCREENING_OR_LATER))
            .first()
            is not None
        )
    except SQLAlchemyError as e:
        logger.error(
            "Error checking messaging eligibility. candidate=%s business=%s org=%s: %s",
            candidate_id, business_user_id, organization_id, e,
        )
        return False

    if eligible:
        logger.info(
            "Messaging eligibility check passed. candidate=%s business=%s org=%s",
            candidate_id, business_user_id, organization_id,
        )
    else:
        logger.warning(
            "Messaging eligibility check failed. candidate=%s business=%s org=%s",
            candidate_id, business_user_id, organization_id,
        )
    return eligible


def get_highest_status(
    db: Session, *, organization_id: str, candidate_id: str, business_user_id: str
) -> ApplicationStatus | None:
    """Furthest stage (by code) among the candidate's applications to the business user's jobs."""
    if _blank(organization_id, candidate_id, business_user_id):
        return None
    try:
        rows = _candidate_business_query(db, organization_id, candidate_id, business_user_id).all()
    except SQLAlchemyError as e:
        logger.error(
            "Error getting application status. candidate=%s business=%s org=%s: %s",
            candidate_id, business_user_id, organization_id, e,
        )
        return None
    if not rows:
        return None
    return max((ApplicationStatus(a.status) for a in rows), key=lambda s: s.code)


def is_in_screening_or_later(db: Session, *, application_id: int, organization_id: str) -> bool:
    if _blank(organization_id):
        return False
    try:
        return (
            db.query(Application.id)
            .join(Job, Application.job_id == Job.id)
            .filter(
                Application.id == int(application_id),
                func.lower(Job.organization_id) == normalize_organization_id(organization_id),
                Application.status.in_(_SCREENING_OR_LATER),
            )
            .first()
            is not None
        )
    except SQLAlchemyError as e:
        logger.error(
            "Error checking screening status. application=%s org=%s: %s",
            application_id, organization_id, e,
        )
        return False


def is_user_in_application(db: Session, *, application_id: int, organization_id: str, user_id: str) -> bool:
    """True when ``user_id`` is the applicant or the creator of the job."""
    if _blank(organization_id, user_id):
        return False
    try:
        return (
            db.query(Application.id)
            .join(Job, Application.job_id == Job.id)
            .filter(
                Application.id == int(application_id),
                func.lower(Job.organization_id) == normalize_organization_id(organization_id),
                (Application.candidate_id == user_id) | (Job.created_by_user_id == user_id),
            )
            .first()
            is not None
        )
    except SQLAlchemyError as e:
        logger.error(
            "Error checking user involvement. application=%s org=%s user=%s: %s",
            application_id, organization_id, user_id, e,
        )
        return False
