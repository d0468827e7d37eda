"""Mark uploads stuck in PROCESSING as FAILED.

Run from cron (or by hand after a worker crash):

    python scripts/reconcile_uploads.py --older-than 30
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce.workforce.container import build_container


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        import_config=dict(getattr(settings, "IMPORT_CONFIG", {})),
    )

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--older-than",
        type=int,
        default=container.import_config.stale_upload_minutes,
        help="minutes an upload may stay PROCESSING before it is failed",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"))
    failed = container.history_service.reconcile_stale(older_than_minutes=args.older_than)
    print(f"OK: marked {failed} stale upload(s) as FAILED (older than {args.older_than} min)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
