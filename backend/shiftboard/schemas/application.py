from datetime import datetime

from pydantic import BaseModel, Field

from ..models.application import Application
from ..models.application_status_history import ApplicationStatusHistory
from ..models.status import ApplicationStatus


class ApplicationOut(BaseModel):
    id: int
    job_id: int
    candidate_id: str
    organization_id: str
    status: int
    status_name: str
    cover_letter: str | None = None
    cv_url: str | None = None
    rejection_reason: str | None = None
    applied_at: datetime
    screened_at: datetime | None = None
    interviewed_at: datetime | None = None
    pre_hire_checks_started_at: datetime | None = None
    hired_at: datetime | None = None
    rejected_at: datetime | None = None
    withdrawn_at: datetime | None = None
    updated_at: datetime | None = None
    pre_hire_check_confirmed: bool = False
    job_title: str | None = None

    @classmethod
    def from_model(cls, application: Application, *, pre_hire_check_confirmed: bool = False) -> "ApplicationOut":
        status = ApplicationStatus(application.status)
        job = application.job
        return cls(
            id=application.id,
            job_id=application.job_id,
            candidate_id=application.candidate_id,
            organization_id=application.organization_id,
            status=status.code,
            status_name=status.value,
            cover_letter=application.cover_letter,
            cv_url=application.cv_url,
            rejection_reason=application.rejection_reason,
            applied_at=application.applied_at,
            screened_at=application.screened_at,
            interviewed_at=application.interviewed_at,
            pre_hire_checks_started_at=application.pre_hire_checks_started_at,
            hired_at=application.hired_at,
            rejected_at=application.rejected_at,
            withdrawn_at=application.withdrawn_at,
            updated_at=application.updated_at,
            pre_hire_check_confirmed=pre_hire_check_confirmed,
            job_title=job.title if job is not None else None,
        )


class StatusHistoryOut(BaseModel):
    id: int
    application_id: int
    from_status: int | None = None
    from_status_name: str | None = None
    to_status: int
    to_status_name: str
    changed_by_user_id: str
    changed_at: datetime
    notes: str | None = None
    pre_hire_check_confirmation: bool | None = None
    pre_hire_check_confirmation_text: str | None = None
    auto_advanced: bool = False

    @classmethod
    def from_model(cls, row: ApplicationStatusHistory) -> "StatusHistoryOut":
        from_status = ApplicationStatus(row.from_status) if row.from_status is not None else None
        to_status = ApplicationStatus(row.to_status)
        return cls(
            id=row.id,
            application_id=row.application_id,
            from_status=from_status.code if from_status else None,
            from_status_name=from_status.value if from_status else None,
            to_status=to_status.code,
            to_status_name=to_status.value,
            changed_by_user_id=row.changed_by_user_id,
            changed_at=row.changed_at,
            notes=row.notes,
            pre_hire_check_confirmation=row.pre_hire_check_confirmation,
            pre_hire_check_confirmation_text=row.pre_hire_check_confirmation_text,
            auto_advanced=bool(row.auto_advanced),
        )


class PagedApplications(BaseModel):
    items: list[ApplicationOut] = Field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0


class HistoryReport(BaseModel):
    application_id: int
    ok: bool
    current_status_name: str
    entries: int
    problems: list[str] = Field(default_factory=list)
