import os
from pathlib import Path

# Must be set before anything imports backend.app.config.
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from sqlalchemy.orm import sessionmaker

from backend.app.database import Base, init_db, make_engine


@pytest.fixture()
def engine(tmp_path: Path):
    test_engine = make_engine(f"sqlite:///{tmp_path / 'models.sqlite3'}")
    init_db(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def db_session(engine):
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()
