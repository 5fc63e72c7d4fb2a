from datetime import datetime

from pydantic import BaseModel, Field

from ..models.application import Application
from ..models.status import ApplicationStatus

COVER_LETTER_PREVIEW_CHARS = 100


def cover_letter_preview(text: str | None) -> str | None:
    if text is None:
        return None
    return text[:COVER_LETTER_PREVIEW_CHARS] + "..."


class ApplicationCard(BaseModel):
    id: int
    candidate_id: str
    status: int
    status_name: str
    applied_at: datetime
    cover_letter_preview: str | None = None

    @classmethod
    def from_model(cls, application: Application) -> "ApplicationCard":
        status = ApplicationStatus(application.status)
        return cls(
            id=application.id,
            candidate_id=application.candidate_id,
            status=status.code,
            status_name=status.value,
            applied_at=application.applied_at,
            cover_letter_preview=cover_letter_preview(application.cover_letter),
        )


class PipelineView(BaseModel):
    job_id: int
    job_title: str
    total_applications: int = 0
    # Keyed by status name, one entry per status in Kanban order (empty stages included).
    stages: dict[str, list[ApplicationCard]] = Field(default_factory=dict)
    stage_counts: dict[str, int] = Field(default_factory=dict)
