#!/usr/bin/env python3
"""
Import a legacy activity database into the work clock ledger.

The file may contain an 'activity_log' table, an 'ActiveChanges' table, or
both. The import runs in one transaction: if any resulting entry would break
the clock in/out alternation, nothing is imported.

Usage:
    python scripts/import_legacy.py --file old_tracker.db [--dry-run]
"""
import argparse
import os
import sys

# Add parent directory to path to import the package without installing it
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from workclock import open_ledger
from workclock.config import load_config, setup_logging
from workclock.services import import_legacy_file, read_legacy_file
from workclock.utils import WorkClockError


def print_summary(result):
    print(f"Tables found:      {', '.join(result.tables)}")
    print(f"Clock in entries:  {len(result.clock_in_timestamps)}")
    print(f"Clock out entries: {len(result.clock_out_timestamps)}")
    if result.skipped_rows:
        print(f"Skipped rows:      {result.skipped_rows}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Import a legacy activity database into the work clock ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --file tracker.db
  %(prog)s --file tracker.db --dry-run
        """
    )
    parser.add_argument(
        '--file', '-f',
        required=True,
        help='Legacy SQLite database (.db)'
    )
    parser.add_argument(
        '--dry-run', '-n',
        action='store_true',
        help='Only show what would be imported'
    )
    args = parser.parse_args(argv)

    config = load_config()
    setup_logging(config)

    if os.path.splitext(args.file)[1] != '.db':
        print(f"ERROR: Only .db files are allowed, got '{args.file}'")
        return 1

    if args.dry_run:
        try:
            result = read_legacy_file(args.file)
        except WorkClockError as e:
            print(f"ERROR: {e}")
            return 1
        print_summary(result)
        print("\nDry run, nothing imported.")
        return 0

    controller = open_ledger(config)
    try:
        result = import_legacy_file(controller, args.file)
    except WorkClockError as e:
        print(f"\n✗ Import failed, no entries were added: {e}")
        return 1
    finally:
        controller.store.close()

    print_summary(result)
    print(f"\n✓ Imported {result.total} entries.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
