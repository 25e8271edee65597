#!/usr/bin/env python3
"""
Work clock command line tool.

Usage:
    python scripts/work_clock.py in
    python scripts/work_clock.py out
    python scripts/work_clock.py toggle
    python scripts/work_clock.py at --in --time "2024-01-15 08:00"
    python scripts/work_clock.py add-pair --in-time "2024-01-15 08:00" --out-time "2024-01-15 12:00"
    python scripts/work_clock.py delete-pair --id abcdefghijklmno
    python scripts/work_clock.py modify --id abcdefghijklmno --time "2024-01-15 08:15"
    python scripts/work_clock.py list [--from 2024-01-01] [--until 2024-02-01]
    python scripts/work_clock.py report [--csv]

The database location and encryption key are taken from the WORKCLOCK_*
environment variables.
"""
import argparse
import os
import sys

# Add parent directory to path to import the package without installing it
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from workclock import open_ledger
from workclock.config import load_config, setup_logging
from workclock.services import ClockService, WorkingTimeReport, project
from workclock.utils import ParseError, parse_timestamp


def format_timestamp(dt):
    """Format datetime for display in local time"""
    return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_result(result):
    if not result.success:
        print(f"❌ {result.action} failed: {result.message}")
        return 1

    events = result.event if isinstance(result.event, list) else [result.event]
    print(f"✅ {result.action} succeeded")
    for event in events:
        kind = "IN " if event.clock_in else "OUT"
        print(f"   {kind} {format_timestamp(event.timestamp)}  (ID: {event.id})")
    return 0


def list_entries(controller, from_=None, until=None):
    """List all clock entries, newest first"""
    entries = controller.list_events(from_=from_, until=until, descending=True)
    if not entries:
        print("\nNo clock entries found.")
        return

    print(f"\n{'='*60}")
    print(f"Total entries: {len(entries)}")
    print(f"{'='*60}")
    print(f"{'ID':<17} {'Date/Time':<20} {'Action':<8}")
    print(f"{'-'*60}")
    for entry in entries:
        action = "IN" if entry.clock_in else "OUT"
        print(f"{entry.id:<17} {format_timestamp(entry.timestamp):<20} {action:<8}")
    print(f"{'='*60}\n")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Record and inspect work clock entries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Timestamps accept RFC 3339 ("2024-01-15T14:30:00Z") or local time
("2024-01-15 14:30", "15.01.2024 14:30:00").
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('in', help='Clock in now')
    subparsers.add_parser('out', help='Clock out now')
    subparsers.add_parser('toggle', help='Clock in or out, whichever applies')

    at_parser = subparsers.add_parser('at', help='Clock in or out at a given time')
    direction = at_parser.add_mutually_exclusive_group(required=True)
    direction.add_argument('--in', dest='clock_in', action='store_true', help='Clock in')
    direction.add_argument('--out', dest='clock_out', action='store_true', help='Clock out')
    at_parser.add_argument('--time', '-T', required=True, help='Timestamp of the entry')

    pair_parser = subparsers.add_parser('add-pair', help='Add a clock in/out pair')
    pair_parser.add_argument('--in-time', required=True, help='Clock in timestamp')
    pair_parser.add_argument('--out-time', required=True, help='Clock out timestamp')

    delete_parser = subparsers.add_parser('delete-pair', help='Delete a clock in and its clock out')
    delete_parser.add_argument('--id', '-i', required=True, help='Clock in entry ID')

    modify_parser = subparsers.add_parser('modify', help='Move an entry to a new timestamp')
    modify_parser.add_argument('--id', '-i', required=True, help='Entry ID')
    modify_parser.add_argument('--time', '-T', required=True, help='New timestamp')

    list_parser = subparsers.add_parser('list', help='List entries')
    list_parser.add_argument('--from', dest='from_', help='Inclusive start timestamp')
    list_parser.add_argument('--until', help='Exclusive end timestamp')

    report_parser = subparsers.add_parser('report', help='Print the working time report')
    report_parser.add_argument('--from', dest='from_', help='Inclusive start timestamp')
    report_parser.add_argument('--until', help='Exclusive end timestamp')
    report_parser.add_argument('--csv', action='store_true', help='Also export the report as CSV')

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logging(config)

    try:
        controller = open_ledger(config)
    except Exception as e:
        print(f"ERROR: Failed to open database: {e}")
        return 1

    service = ClockService(controller)
    try:
        if args.command == 'in':
            return _print_result(service.clock_in())
        if args.command == 'out':
            return _print_result(service.clock_out())
        if args.command == 'toggle':
            return _print_result(service.toggle())
        if args.command == 'at':
            return _print_result(service.clock_in_out_at(args.clock_in, parse_timestamp(args.time)))
        if args.command == 'add-pair':
            return _print_result(service.add_pair(parse_timestamp(args.in_time),
                                                  parse_timestamp(args.out_time)))
        if args.command == 'delete-pair':
            return _print_result(service.delete_pair(args.id))
        if args.command == 'modify':
            return _print_result(service.modify_timestamp(args.id, parse_timestamp(args.time)))

        from_ = parse_timestamp(args.from_) if args.from_ else None
        until = parse_timestamp(args.until) if args.until else None
        if args.command == 'list':
            list_entries(controller, from_, until)
            return 0

        # report
        records = project(controller.list_events(from_=from_, until=until))
        report = WorkingTimeReport(records)
        print(report.to_text())
        if args.csv:
            path = report.to_csv(export_root=config.export_path)
            print(f"\n✓ CSV written to {path}")
        return 0
    except ParseError as e:
        print(f"❌ Invalid timestamp: {e}")
        return 1
    finally:
        controller.store.close()


if __name__ == '__main__':
    sys.exit(main())
