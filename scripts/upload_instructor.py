"""Create an instructor from a JSON document.

Usage::

    python -m scripts.upload_instructor data/instructor.json

The document follows ``InstructorCreate``: ``name``, ``bio``, ``image_url``,
``subscription_price``, ``disciplines`` and optionally
``stripe_connected_account_id``. The new id is printed on success.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when executed as a module or script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from pydantic import ValidationError  # noqa: E402

from app.db.session import SessionLocal  # noqa: E402
from app.services.ingestion_service import load_instructor  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an instructor from a JSON document.")
    parser.add_argument("path", type=Path, help="Path to the instructor JSON document.")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        instructor = load_instructor(db, args.path)
    except ValidationError as exc:
        logger.error("Invalid instructor document %s:\n%s", args.path, exc)
        return 1
    finally:
        db.close()

    print(instructor.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
