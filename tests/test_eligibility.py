import pytest

from conftest import BUSINESS_A, BUSINESS_B, CANDIDATE, ORG_A, ORG_B, make_job, walk_to


@pytest.fixture()
def applied(db_session):
    from backend.shiftboard.services import applications

    job = make_job(db_session)
    return applications.apply_to_job(db_session, job_id=job.id, candidate_id=CANDIDATE)


def test_cannot_message_while_applied(db_session, applied):
    from backend.shiftboard.services import eligibility

    assert eligibility.can_message(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ) is False
    assert eligibility.get_highest_status(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ).value == "Applied"


def test_can_message_from_screening(db_session, applied):
    from backend.shiftboard.models import ApplicationStatus as S
    from backend.shiftboard.services import eligibility

    walk_to(db_session, applied.id, [S.SCREENING])
    assert eligibility.can_message(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ) is True
    assert eligibility.is_in_screening_or_later(db_session, application_id=applied.id, organization_id=ORG_A)


def test_rejected_counts_as_screening_or_later(db_session, applied):
    from backend.shiftboard.models import ApplicationStatus as S
    from backend.shiftboard.services import eligibility

    walk_to(db_session, applied.id, [S.REJECTED])
    assert eligibility.is_in_screening_or_later(db_session, application_id=applied.id, organization_id=ORG_A)


def test_other_business_or_org_cannot_message(db_session, applied):
    from backend.shiftboard.models import ApplicationStatus as S
    from backend.shiftboard.services import eligibility

    walk_to(db_session, applied.id, [S.SCREENING])
    assert eligibility.can_message(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_B
    ) is False
    assert eligibility.can_message(
        db_session, organization_id=ORG_B, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ) is False
    assert eligibility.is_in_screening_or_later(db_session, application_id=applied.id, organization_id=ORG_B) is False


@pytest.mark.parametrize("field", ["organization_id", "candidate_id", "business_user_id"])
def test_blank_inputs_are_denied(db_session, field):
    from backend.shiftboard.services import eligibility

    kwargs = {"organization_id": ORG_A, "candidate_id": CANDIDATE, "business_user_id": BUSINESS_A}
    kwargs[field] = "  "
    assert eligibility.can_message(db_session, **kwargs) is False
    assert eligibility.get_highest_status(db_session, **kwargs) is None


def test_highest_status_across_jobs(db_session):
    from backend.shiftboard.models import ApplicationStatus as S
    from backend.shiftboard.services import applications, eligibility

    first = make_job(db_session, title="Waiter")
    second = make_job(db_session, title="Host")
    a1 = applications.apply_to_job(db_session, job_id=first.id, candidate_id=CANDIDATE)
    applications.apply_to_job(db_session, job_id=second.id, candidate_id=CANDIDATE)
    walk_to(db_session, a1.id, [S.SCREENING, S.INTERVIEW])

    assert eligibility.get_highest_status(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ) == S.INTERVIEW


def test_user_in_application(db_session, applied):
    from backend.shiftboard.services import eligibility

    assert eligibility.is_user_in_application(
        db_session, application_id=applied.id, organization_id=ORG_A, user_id=CANDIDATE
    )
    assert eligibility.is_user_in_application(
        db_session, application_id=applied.id, organization_id=ORG_A, user_id=BUSINESS_A
    )
    assert not eligibility.is_user_in_application(
        db_session, application_id=applied.id, organization_id=ORG_A, user_id="stranger"
    )
    assert not eligibility.is_user_in_application(
        db_session, application_id=applied.id, organization_id=ORG_B, user_id=CANDIDATE
    )


def test_database_errors_deny(db_session, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from backend.shiftboard.services import eligibility

    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("db down"))

    monkeypatch.setattr(db_session, "query", broken)
    assert eligibility.can_message(
        db_session, organization_id=ORG_A, candidate_id=CANDIDATE, business_user_id=BUSINESS_A
    ) is False
    assert eligibility.is_in_screening_or_later(db_session, application_id=1, organization_id=ORG_A) is False
