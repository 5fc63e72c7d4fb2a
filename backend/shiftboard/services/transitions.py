"""
Transition table for the hiring pipeline.

Every status has an entry, terminal ones map to an empty set. The only way to
change an application's status without going through ``ensure_transition`` is
the PreHireChecks auto-advance in ``pipeline.confirm_pre_hire_checks``.
"""
from datetime import datetime

from ..models.application import Application
from ..models.status import ApplicationStatus, TERMINAL_STATUSES
from ..utils.error_handlers import InvalidStateError, PreconditionFailedError, get_error_message

S = ApplicationStatus

VALID_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    S.APPLIED: frozenset({S.SCREENING, S.REJECTED, S.WITHDRAWN}),
    S.SCREENING: frozenset({S.INTERVIEW, S.REJECTED}),
    S.INTERVIEW: frozenset({S.PRE_HIRE_CHECKS, S.REJECTED}),
    # Failed checks may bounce back to screening.
    S.PRE_HIRE_CHECKS: frozenset({S.HIRED, S.REJECTED, S.SCREENING}),
    # Post-hire termination.
    S.HIRED: frozenset({S.REJECTED}),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

# Application column stamped the first time a stage is entered.
STAGE_TIMESTAMP_FIELDS: dict[ApplicationStatus, str] = {
    S.APPLIED: "applied_at",
    S.SCREENING: "screened_at",
    S.INTERVIEW: "interviewed_at",
    S.PRE_HIRE_CHECKS: "pre_hire_checks_started_at",
    S.HIRED: "hired_at",
    S.REJECTED: "rejected_at",
    S.WITHDRAWN: "withdrawn_at",
}

# Stages the pre-hire confirmation may auto-advance from.
AUTO_ADVANCE_SOURCES = frozenset(
    s for s in ApplicationStatus
    if s not in TERMINAL_STATUSES and s not in {S.PRE_HIRE_CHECKS, S.HIRED}
)


def is_valid_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    return to_status in VALID_TRANSITIONS[from_status]


def allowed_targets(from_status: ApplicationStatus) -> list[ApplicationStatus]:
    """Targets in Kanban order, for clients that render move buttons."""
    targets = VALID_TRANSITIONS[from_status]
    return [s for s in ApplicationStatus if s in targets]


def is_terminal(status: ApplicationStatus) -> bool:
    return not VALID_TRANSITIONS[status]


def ensure_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> None:
    if not is_valid_transition(from_status, to_status):
        raise InvalidStateError(
            f"Invalid transition: {from_status.value}->{to_status.value}",
            details={"from_status": from_status.value, "to_status": to_status.value},
        )


def ensure_hire_preconditions(
    current_status: ApplicationStatus,
    pre_hire_confirmed: bool | None,
    pre_hire_confirmation_text: str | None,
) -> None:
    """Hired needs PreHireChecks as the current stage plus an explicit confirmation on the move."""
    if current_status != S.PRE_HIRE_CHECKS:
        raise PreconditionFailedError(
            get_error_message("prehire_wrong_stage"),
            details={"current_status": current_status.value},
        )
    if pre_hire_confirmed is not True:
        raise PreconditionFailedError(get_error_message("prehire_not_confirmed"))
    if not (pre_hire_confirmation_text or "").strip():
        raise PreconditionFailedError(get_error_message("prehire_text_missing"))


def stamp_stage(application: Application, status: ApplicationStatus, when: datetime) -> None:
    field = STAGE_TIMESTAMP_FIELDS.get(status)
    if field and getattr(application, field, None) is None:
        setattr(application, field, when)
