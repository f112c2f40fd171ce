"""
CLI helper to load store records from a JSON file into the database.

The file must hold a JSON array of objects with ``id``, ``name``,
``addr`` and optionally ``review``. Existing ids are overwritten.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from postboard.config import get_settings
from postboard.db import SqlDbClient
from shared.types import Store


def main() -> int:
    parser = argparse.ArgumentParser(description="Import stores from JSON")
    parser.add_argument("path", type=Path, help="JSON file with a list of stores")
    args = parser.parse_args()

    settings = get_settings()
    if not settings.database_url:
        print("DATABASE_URL is not set.")
        return 2

    with args.path.open(encoding="utf-8") as f:
        items = json.load(f)

    db = SqlDbClient(settings.database_url)
    imported = 0
    for item in items:
        try:
            store = Store.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            print(f"Skipping malformed entry {item!r}: {e}")
            continue
        db.save_store(store)
        imported += 1
    print(f"Imported {imported} store(s).")
    return 0 if imported else 1


if __name__ == "__main__":
    sys.exit(main())
