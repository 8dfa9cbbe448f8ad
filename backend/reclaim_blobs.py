#!/usr/bin/env python3
"""
Delete resume blobs that no application references.

A crash between staging a resume and committing (or discarding) it leaves a
file with no row pointing at it. Run this periodically; blobs younger than
--min-age seconds are left alone since their submission may still be running.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from app import config
from app.database import SessionLocal, init_db
from app.logging_config import configure_logging
from app.services.application_ledger import ApplicationLedger
from app.services.application_workflow import reclaim_orphan_blobs
from app.services.blob_stager import BlobStager

logger = logging.getLogger("reclaim_blobs")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--min-age", type=int, default=config.ORPHAN_BLOB_MIN_AGE_S, help="seconds")
    args = parser.parse_args(argv)

    configure_logging()
    init_db()

    db = SessionLocal()
    try:
        blobs = BlobStager(config.UPLOAD_DIR, max_bytes=config.MAX_RESUME_BYTES)
        removed = reclaim_orphan_blobs(ApplicationLedger(db), blobs, min_age_s=args.min_age)
    finally:
        db.close()

    for handle in removed:
        print(f"removed {handle}")
    logger.info("Reclaimed %d orphan blob(s) under %s", len(removed), config.UPLOAD_DIR)
    return 0


if __name__ == "__main__":
    sys.exit(main())
