import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload.
#
# For automated tests (SQLite), we need to prevent backend/.env from overriding the
# test DATABASE_URL. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB for dev so the backend can start out-of-the-box.
# Use an absolute path so it works regardless of current working directory.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "jobboard.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# development | production. Error payloads only carry internal details outside production.
ENVIRONMENT = (os.getenv("ENVIRONMENT", "development") or "development").strip().lower()
LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()

# File uploads
# Absolute path; override with UPLOAD_DIR in env (useful for tests).
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (Path(__file__).resolve().parent.parent / "uploads").as_posix()
MAX_RESUME_BYTES = int(os.getenv("MAX_RESUME_BYTES", str(5 * 1024 * 1024)) or str(5 * 1024 * 1024))

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60") or "60")

# Password policy. 0 disables the minimum length rule (bcrypt's 72 byte cap always applies).
PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6") or "6")
# bcrypt cost factor (4..31). Tests lower it to keep signups fast.
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12") or "12")

# replace: PUT /api/jobs/{id} overwrites every field (omitted optionals are cleared).
# merge: omitted fields keep their stored value.
JOB_UPDATE_MODE = (os.getenv("JOB_UPDATE_MODE", "replace") or "replace").strip().lower()

# Orphan blob sweep (backend/reclaim_blobs.py)
ORPHAN_BLOB_MIN_AGE_S = int(os.getenv("ORPHAN_BLOB_MIN_AGE_S", "3600") or "3600")
