import os
from pathlib import Path

# Must be set before anything imports backend.app.config.
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from backend.app import models  # noqa: F401
from backend.app.database import Base, get_db, make_engine
from backend.app.main import create_app
from backend.app.services.blob_stager import BlobStager
from backend.app.utils.dependencies import get_blob_stager


@pytest.fixture()
def engine(tmp_path: Path):
    """A file-backed SQLite DB per test, so threads can share it."""
    test_engine = make_engine(f"sqlite:///{tmp_path / 'test.sqlite3'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture()
def blobs(upload_dir: Path) -> BlobStager:
    return BlobStager(upload_dir)


@pytest.fixture()
def app(session_factory, upload_dir: Path) -> FastAPI:
    """
    The API wired to the per-test SQLite DB and upload directory.
    """
    fastapi_app = create_app(init_database=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_blob_stager] = lambda: BlobStager(upload_dir)
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(session_factory):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def stored_blobs(upload_dir: Path):
    """Callable listing every file currently under the resume namespace."""
    def _list() -> list[Path]:
        directory = upload_dir / "resumes"
        return sorted(directory.iterdir()) if directory.exists() else []
    return _list
