#!/usr/bin/env python3
"""
Import score matrices written by `rorlink match` into a SQLite database.

Usage:
    python scripts/import_results_to_db.py --results out/ --db data/results.db
"""

import argparse
from pathlib import Path
import sys

from rorlink.database import save_matrices
from rorlink.storage import load_results


def _valid_matrix(data) -> bool:
    """entityID -> {org id -> positive int} mapping."""
    if not isinstance(data, dict):
        return False
    for orgs in data.values():
        if not isinstance(orgs, dict):
            return False
        if not all(isinstance(w, int) and w > 0 for w in orgs.values()):
            return False
    return True


def import_results(results_dir: Path, db_path: Path, dry_run: bool = False) -> bool:
    """
    Import result matrices into the database.

    Args:
        results_dir: Directory holding results-*.json files
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
    """
    print(f"Loading results from {results_dir}...")
    matrices = load_results(results_dir)
    if not matrices:
        print(f"❌ No results-*.json files in {results_dir}")
        return False

    valid = {}
    for name, data in matrices.items():
        if not _valid_matrix(data):
            print(f"⚠️  Skipping {name}: not an entityID -> org -> weight mapping")
            continue
        edges = sum(len(orgs) for orgs in data.values())
        print(f"  {name}: {len(data)} IdPs, {edges} edges")
        valid[name] = data

    if dry_run:
        print("\n[DRY RUN] Nothing written.")
        return True

    print(f"\nWriting to {db_path}...")
    try:
        written = save_matrices(valid, db_path)
    except Exception as e:
        print(f"❌ Failed to write database: {e}")
        return False

    print(f"\n✅ Import complete! {written} edges stored.")
    return True


def main():
    parser = argparse.ArgumentParser(description="Import matching results into a SQLite database")
    parser.add_argument("--results", type=Path, default=Path("out"),
                        help="Directory with results-*.json files")
    parser.add_argument("--db", type=Path, default=Path("data/results.db"),
                        help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be imported without writing")

    args = parser.parse_args()

    if not args.results.exists():
        print(f"❌ Results directory not found: {args.results}")
        sys.exit(1)

    if not import_results(args.results, args.db, dry_run=args.dry_run):
        sys.exit(1)


if __name__ == "__main__":
    main()
