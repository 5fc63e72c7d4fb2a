from .application import Application
from .application_status_history import ApplicationStatusHistory
from .audit_log import AuditLog
from .job import Job
from .pre_hire_confirmation import PreHireConfirmation
from .status import ApplicationStatus, JobStatus

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplicationStatusHistory",
    "AuditLog",
    "Job",
    "JobStatus",
    "PreHireConfirmation",
]
