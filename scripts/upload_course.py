"""Create a course (or a breakdown) from a JSON document.

Usage::

    python -m scripts.upload_course data/course.json
    python -m scripts.upload_course --breakdown data/breakdown.json

Videos must already be on the video platform: each section only references
its ``playback_id``. The referenced instructor has to exist (see
``scripts.upload_instructor``). The new id is printed on success.
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

from app.core.errors import NotFoundError  # noqa: E402
from app.db.session import SessionLocal  # noqa: E402
from app.services.ingestion_service import load_breakdown, load_course  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a course from a JSON document.")
    parser.add_argument("path", type=Path, help="Path to the JSON document.")
    parser.add_argument(
        "--breakdown",
        action="store_true",
        help="The document describes a single breakdown video instead of a course.",
    )
    args = parser.parse_args(argv)

    loader = load_breakdown if args.breakdown else load_course
    db = SessionLocal()
    try:
        created = loader(db, args.path)
    except ValidationError as exc:
        logger.error("Invalid document %s:\n%s", args.path, exc)
        return 1
    except NotFoundError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        db.close()

    print(created.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
