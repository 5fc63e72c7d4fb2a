import json
import logging
from datetime import datetime, timedelta, timezone

from conftest import BUSINESS_A, ORG_A, ORG_B


def _log(db, **overrides):
    from backend.shiftboard.services import audit

    kwargs = {
        "event_type": "ApplicationStatusChanged",
        "entity_type": "Application",
        "entity_id": 1,
        "payload": {"from_status": "Applied", "to_status": "Screening"},
        "actor_id": BUSINESS_A,
        "organization_id": ORG_A,
    }
    kwargs.update(overrides)
    return audit.log_event(db, **kwargs)


def test_log_event_persists_row(db_session):
    from backend.shiftboard.models import AuditLog
    from backend.shiftboard.services import audit

    row = _log(db_session)
    assert row is not None and row.id is not None

    stored = db_session.query(AuditLog).one()
    assert stored.action == "ApplicationStatusChanged"
    assert stored.entity_id == "1"
    assert json.loads(stored.details)["to_status"] == "Screening"

    view = audit.public_view(stored)
    assert view["details"] == {"from_status": "Applied", "to_status": "Screening"}
    assert view["organization_id"] == ORG_A


def test_log_event_disabled(db_session, monkeypatch):
    from backend.shiftboard import config
    from backend.shiftboard.models import AuditLog

    monkeypatch.setattr(config, "AUDIT_ENABLED", False)
    assert _log(db_session) is None
    assert db_session.query(AuditLog).count() == 0


def test_log_event_failure_is_swallowed_and_logged(db_session, monkeypatch, caplog):
    from backend.shiftboard.models import AuditLog

    def boom():
        raise RuntimeError("disk full")

    caplog.set_level(logging.ERROR, logger="backend.shiftboard.services.audit")
    monkeypatch.setattr(db_session, "commit", boom)
    assert _log(db_session) is None
    assert any("Audit write failed" in r.getMessage() for r in caplog.records)

    monkeypatch.undo()
    assert db_session.query(AuditLog).count() == 0


def test_get_logs_filters_newest_first(db_session):
    from backend.shiftboard.services import audit

    _log(db_session, entity_id=1)
    _log(db_session, entity_id=2, event_type="ApplicationWithdrawn")
    _log(db_session, entity_id=3, organization_id=ORG_B)

    rows = audit.get_logs(db_session, organization_id=ORG_A)
    assert [r.entity_id for r in rows] == ["2", "1"]

    only_two = audit.get_logs(db_session, organization_id=ORG_A, entity_type="Application", entity_id="2")
    assert [r.action for r in only_two] == ["ApplicationWithdrawn"]

    assert len(audit.get_logs(db_session, limit=1)) == 1

    future = datetime.now(timezone.utc) + timedelta(days=1)
    assert audit.get_logs(db_session, start=future) == []
