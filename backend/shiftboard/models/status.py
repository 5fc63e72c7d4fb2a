"""
Status values for jobs and applications.

Both enums inherit from ``(str, Enum)`` so members compare equal to the plain
strings stored in the database and serialize naturally to JSON.
"""

from enum import Enum

from sqlalchemy import Enum as SAEnum


class JobStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    CLOSED = "Closed"
    FILLED = "Filled"


class ApplicationStatus(str, Enum):
    """Hiring pipeline stages, in Kanban column order.

    ``code`` is the stable integer exposed to API clients next to the display
    name; it follows declaration order.
    """

    APPLIED = "Applied"
    SCREENING = "Screening"
    INTERVIEW = "Interview"
    PRE_HIRE_CHECKS = "PreHireChecks"
    HIRED = "Hired"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"

    @property
    def code(self) -> int:
        return list(type(self)).index(self)

    @classmethod
    def from_code(cls, code: int) -> "ApplicationStatus":
        members = list(cls)
        if not 0 <= int(code) < len(members):
            raise ValueError(f"Unknown application status code: {code}")
        return members[int(code)]

    @classmethod
    def parse(cls, raw) -> "ApplicationStatus":
        """Accept a member, its value ("PreHireChecks"), its name or its integer code."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, bool):
            raise ValueError(f"Unknown application status: {raw!r}")
        if isinstance(raw, int):
            return cls.from_code(raw)
        text = str(raw or "").strip()
        if text.isdigit():
            return cls.from_code(int(text))
        for member in cls:
            if text.lower() in {member.value.lower(), member.name.lower()}:
                return member
        raise ValueError(f"Unknown application status: {raw!r}")


TERMINAL_STATUSES = frozenset({ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN})


def status_column_type() -> SAEnum:
    return SAEnum(
        ApplicationStatus,
        native_enum=False,
        length=32,
        values_callable=lambda enum_cls: [m.value for m in enum_cls],
        validate_strings=True,
    )
