"""Example: import an attendance file through the service layer (no Flask).

    python examples/example_usage.py exports/feb14.srp --date 2026-02-14
"""

import argparse
import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.workforce.workforce.container import build_container


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("path", type=Path)
    parser.add_argument("--date", dest="upload_date", default=None)
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, import_config=getattr(settings, "IMPORT_CONFIG", {}))

    result = container.import_service.import_file(
        filename=args.path.name,
        content=args.path.read_bytes(),
        upload_date=args.upload_date,
    )
    print(result.message)
    print(json.dumps(result.to_dict(error_limit=10), indent=2))


if __name__ == "__main__":
    main()
