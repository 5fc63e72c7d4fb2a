"""
Pipeline state machine: stage moves, the Kanban projection and the
pre-hire right-to-work gate.

Every public operation checks the caller's organization against the job the
application belongs to before it validates or writes anything.
"""
import logging

from sqlalchemy.orm import Session

from ..database import unit_of_work
from ..models.application import Application
from ..models.application_status_history import ApplicationStatusHistory
from ..models.pre_hire_confirmation import PreHireConfirmation
from ..models.status import ApplicationStatus
from ..schemas.application import ApplicationOut, HistoryReport
from ..schemas.pipeline import ApplicationCard, PipelineView
from ..utils.error_handlers import PreconditionFailedError, ValidationError, get_error_message
from . import audit, records
from .transitions import (
    AUTO_ADVANCE_SOURCES,
    ensure_hire_preconditions,
    ensure_transition,
    is_valid_transition,
)

logger = logging.getLogger(__name__)

AUTO_ADVANCE_NOTE = "Auto-advanced on pre-hire confirmation"


def move_application(
    db: Session,
    *,
    application_id: int,
    to_status: ApplicationStatus,
    actor_id: str,
    organization_id: str,
    notes: str | None = None,
    pre_hire_confirmed: bool | None = None,
    pre_hire_confirmation_text: str | None = None,
) -> ApplicationOut:
    try:
        to_status = ApplicationStatus.parse(to_status)
    except ValueError as e:
        raise ValidationError(str(e), details={"to_status": str(to_status)})

    with unit_of_work(db):
        application = records.load_application(db, application_id, for_update=True)
        job = records.ensure_application_in_organization(db, application, organization_id)

        current = ApplicationStatus(application.status)
        ensure_transition(current, to_status)

        if to_status == ApplicationStatus.HIRED:
            ensure_hire_preconditions(current, pre_hire_confirmed, pre_hire_confirmation_text)
            if not records.has_right_to_work_confirmation(db, application.id):
                raise PreconditionFailedError(
                    get_error_message("prehire_no_right_to_work"),
                    details={"application_id": application.id},
                )

        if to_status == ApplicationStatus.REJECTED:
            if not (notes or "").strip():
                logger.warning("Rejection without notes for application %s", application.id)
            else:
                application.rejection_reason = notes

        from_status, _ = records.apply_status_change(
            db,
            application,
            to_status,
            actor_id=actor_id,
            when=records.utcnow(),
            notes=notes,
            pre_hire_confirmed=pre_hire_confirmed,
            pre_hire_confirmation_text=pre_hire_confirmation_text,
        )
        records.commit_or_conflict(db, application_id=application.id)
    db.refresh(application)

    hired = to_status == ApplicationStatus.HIRED
    audit.log_event(
        db,
        event_type="ApplicationStatusChanged",
        entity_type="Application",
        entity_id=application.id,
        payload={
            "application_id": application.id,
            "job_id": application.job_id,
            "from_status": from_status.value,
            "to_status": to_status.value,
            "notes": notes,
            "pre_hire_confirmation": pre_hire_confirmed if hired else None,
        },
        actor_id=actor_id,
        organization_id=job.organization_id,
    )

    logger.info(
        "Application %s moved from %s to %s by user %s",
        application.id, from_status.value, to_status.value, actor_id,
    )
    return ApplicationOut.from_model(
        application,
        pre_hire_check_confirmed=records.has_right_to_work_confirmation(db, application.id),
    )


def get_pipeline_view(db: Session, *, job_id: int, organization_id: str) -> PipelineView:
    job = records.ensure_job_in_organization(records.load_job(db, job_id), organization_id)

    applications = (
        db.query(Application)
        .filter(Application.job_id == job.id)
        .order_by(Application.applied_at.desc(), Application.id.desc())
        .all()
    )

    stages: dict[str, list[ApplicationCard]] = {status.value: [] for status in ApplicationStatus}
    for application in applications:
        stages[ApplicationStatus(application.status).value].append(ApplicationCard.from_model(application))

    return PipelineView(
        job_id=job.id,
        job_title=job.title,
        total_applications=len(applications),
        stages=stages,
        stage_counts={name: len(cards) for name, cards in stages.items()},
    )


def confirm_pre_hire_checks(
    db: Session,
    *,
    application_id: int,
    right_to_work_confirmed: bool,
    confirmation_text: str | None,
    confirmed_by_user_id: str,
    organization_id: str | None = None,
) -> ApplicationOut:
    """
    Record a right-to-work confirmation.

    Side effect: an application still before PreHireChecks is advanced there
    directly, bypassing the transition table. Hired and terminal applications
    keep their status.
    """
    with unit_of_work(db):
        application = records.load_application(db, application_id, for_update=True)
        if organization_id is not None:
            job = records.ensure_application_in_organization(db, application, organization_id)
        else:
            job = application.job or records.load_job(db, application.job_id)

        now = records.utcnow()
        confirmation = PreHireConfirmation(
            application_id=application.id,
            organization_id=application.organization_id,
            confirmed_by_user_id=str(confirmed_by_user_id),
            right_to_work_confirmed=bool(right_to_work_confirmed),
            confirmation_text=confirmation_text,
            confirmed_at=now,
        )
        db.add(confirmation)

        current = ApplicationStatus(application.status)
        advanced = current in AUTO_ADVANCE_SOURCES
        if advanced:
            records.apply_status_change(
                db,
                application,
                ApplicationStatus.PRE_HIRE_CHECKS,
                actor_id=confirmed_by_user_id,
                when=now,
                notes=AUTO_ADVANCE_NOTE,
                auto_advanced=True,
            )
        records.commit_or_conflict(db, application_id=application.id)
    db.refresh(application)

    audit.log_event(
        db,
        event_type="PreHireCheckConfirmed",
        entity_type="PreHireConfirmation",
        entity_id=confirmation.id,
        payload={
            "application_id": application.id,
            "confirmed_by_user_id": str(confirmed_by_user_id),
            "right_to_work_confirmed": bool(right_to_work_confirmed),
            "auto_advanced_from": current.value if advanced else None,
        },
        actor_id=confirmed_by_user_id,
        organization_id=job.organization_id if job is not None else application.organization_id,
    )

    logger.info("Pre-hire checks confirmed for application %s", application.id)
    return ApplicationOut.from_model(application, pre_hire_check_confirmed=True)


def can_hire(db: Session, *, application_id: int, organization_id: str | None = None) -> bool:
    """True iff a positive right-to-work confirmation exists. Read-only."""
    if organization_id is not None:
        application = records.load_application(db, application_id)
        records.ensure_application_in_organization(db, application, organization_id)
    return records.has_right_to_work_confirmation(db, application_id)


def verify_history(db: Session, *, application_id: int, organization_id: str | None = None) -> HistoryReport:
    """
    Check that the history ledger replays to the current status.

    Problems are reported and logged, never repaired: a mismatch needs manual
    reconciliation.
    """
    application = records.load_application(db, application_id)
    if organization_id is not None:
        records.ensure_application_in_organization(db, application, organization_id)

    rows = (
        db.query(ApplicationStatusHistory)
        .filter(ApplicationStatusHistory.application_id == application.id)
        .order_by(ApplicationStatusHistory.changed_at.asc(), ApplicationStatusHistory.id.asc())
        .all()
    )
    current = ApplicationStatus(application.status)
    problems: list[str] = []

    if not rows:
        problems.append("no history rows")
    else:
        first = rows[0]
        if first.from_status is not None or ApplicationStatus(first.to_status) != ApplicationStatus.APPLIED:
            problems.append("first row is not the Applied seed")

        for prev, row in zip(rows, rows[1:]):
            prev_to = ApplicationStatus(prev.to_status)
            row_from = ApplicationStatus(row.from_status) if row.from_status is not None else None
            row_to = ApplicationStatus(row.to_status)
            if row_from != prev_to:
                problems.append(f"row {row.id}: from {row_from.value if row_from else None} does not follow {prev_to.value}")
                continue
            sanctioned = (
                row.auto_advanced
                and row_to == ApplicationStatus.PRE_HIRE_CHECKS
                and row_from in AUTO_ADVANCE_SOURCES
            )
            if not sanctioned and not is_valid_transition(row_from, row_to):
                problems.append(f"row {row.id}: {row_from.value}->{row_to.value} is not a valid transition")

        last_to = ApplicationStatus(rows[-1].to_status)
        if last_to != current:
            problems.append(f"last row ends at {last_to.value} but application is {current.value}")

    if problems:
        logger.error(
            "History integrity mismatch for application %s: %s",
            application.id, "; ".join(problems),
        )

    return HistoryReport(
        application_id=application.id,
        ok=not problems,
        current_status_name=current.value,
        entries=len(rows),
        problems=problems,
    )
