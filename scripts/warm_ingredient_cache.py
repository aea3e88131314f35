#!/usr/bin/env python3
"""
Pre-populate the ingredient cache from a list of ingredient names.

Names already cached are skipped; the rest go to PubChem at the configured
request pace.

Usage:
    python scripts/warm_ingredient_cache.py --input data/common_ingredients.txt --db data/epiq.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from epiq.database import init_database, get_session
from epiq.env import Settings, load_env
from epiq.logger import get_logger
from epiq.lookup import IngredientLookup
from epiq.normalize import lookup_key, parse_ingredients
from epiq import storage


def read_names(path: Path) -> list:
    """One ingredient per line, or comma separated; blank lines and # comments ignored."""
    lines = [
        line for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    names = []
    seen = set()
    for name in parse_ingredients("\n".join(lines)):
        key = lookup_key(name)
        if key not in seen:
            seen.add(key)
            names.append(key)
    return names


def warm(input_path: Path, db_path: Path, delay: float, dry_run: bool = False) -> bool:
    names = read_names(input_path)
    print(f"Found {len(names)} distinct ingredients in {input_path}")

    init_database(db_path)
    session = get_session(db_path)
    try:
        missing = [n for n in names if storage.get_cached_ingredient(session, n) is None]
        print(f"{len(names) - len(missing)} already cached, {len(missing)} to fetch")

        if dry_run:
            print("\n[DRY RUN] Would fetch:")
            for n in missing[:10]:
                print(f"  - {n}")
            if len(missing) > 10:
                print(f"  ... and {len(missing) - 10} more")
            return True

        records = IngredientLookup(session, delay_seconds=delay).lookup(missing)
    finally:
        session.close()
    get_logger().log_metrics_summary()

    found = sum(1 for r in records if r.found)
    failed = sum(1 for r in records if r.source == "error")
    print("\nCache warm-up complete")
    print(f"   Cached:    {found}")
    print(f"   Not found: {len(records) - found - failed}")
    print(f"   Errors:    {failed}")
    return failed == 0


def main():
    load_env()
    settings = Settings.from_env()

    parser = argparse.ArgumentParser(description="Pre-populate the PubChem ingredient cache")
    parser.add_argument("--input", type=Path, required=True,
                        help="Text file of ingredient names")
    parser.add_argument("--db", type=Path, default=settings.db_path,
                        help="Path to SQLite database file")
    parser.add_argument("--delay", type=float, default=settings.pubchem_delay_seconds,
                        help="Seconds between PubChem requests")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be fetched without calling PubChem")

    args = parser.parse_args()

    if not args.input.exists():
        print(f"Input file not found: {args.input}")
        sys.exit(1)

    ok = warm(args.input, args.db, args.delay, dry_run=args.dry_run)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
