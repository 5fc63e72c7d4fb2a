import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.shiftboard...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep a developer .env from leaking into collection-time imports.
os.environ.setdefault("DISABLE_DOTENV", "1")

ORG_A = "11111111-1111-1111-1111-111111111111"
ORG_B = "22222222-2222-2222-2222-222222222222"
BUSINESS_A = "biz-a"
BUSINESS_B = "biz-b"
CANDIDATE = "cand-1"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    The shared `main.app` is not used so its startup hook never touches the dev database.
    """
    # Must be set before importing shiftboard.database so the engine points at the test DB.
    os.environ["DISABLE_DOTENV"] = "1"
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"
    os.environ.setdefault("SECRET_KEY", "test-secret")

    from backend.shiftboard import database as db

    engine = create_engine(
        os.environ["DATABASE_URL"],
        connect_args={"check_same_thread": False},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.shiftboard import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.shiftboard.api import applications as applications_api
    from backend.shiftboard.api import audit as audit_api
    from backend.shiftboard.api import pipeline as pipeline_api
    from backend.shiftboard.main import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(applications_api.router)
    fastapi_app.include_router(pipeline_api.router)
    fastapi_app.include_router(audit_api.router)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.shiftboard import database

    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def auth_headers(sub: str, role: str, org_id: str | None = None) -> dict:
    from backend.shiftboard.utils.jwt import create_access_token

    claims = {"sub": sub, "role": role}
    if org_id is not None:
        claims["org_id"] = org_id
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


def make_job(db, *, organization_id: str = ORG_A, created_by: str = BUSINESS_A, title: str = "Barista", status=None):
    from backend.shiftboard.models import Job, JobStatus

    job = Job(
        organization_id=organization_id,
        created_by_user_id=created_by,
        title=title,
        status=status or JobStatus.PUBLISHED,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def walk_to(db, application_id: int, path, *, organization_id: str = ORG_A, actor_id: str = BUSINESS_A):
    """
    Move an application through ``path`` with valid transitions only.

    Hiring records a positive right-to-work confirmation first when none exists.
    """
    from backend.shiftboard.models import ApplicationStatus
    from backend.shiftboard.services import pipeline

    result = None
    for status in path:
        kwargs = {}
        if status == ApplicationStatus.HIRED:
            kwargs = {"pre_hire_confirmed": True, "pre_hire_confirmation_text": "Passport checked"}
            if not pipeline.can_hire(db, application_id=application_id):
                pipeline.confirm_pre_hire_checks(
                    db,
                    application_id=application_id,
                    right_to_work_confirmed=True,
                    confirmation_text="Passport checked",
                    confirmed_by_user_id=actor_id,
                    organization_id=organization_id,
                )
        result = pipeline.move_application(
            db,
            application_id=application_id,
            to_status=status,
            actor_id=actor_id,
            organization_id=organization_id,
            **kwargs,
        )
    return result
