"""Admin commands for invalid STRM records.

Usage:
    python -m strm_triage.scripts.invalid_strm_admin stats [--date-start YYYY-MM-DD] [--date-end YYYY-MM-DD]
    python -m strm_triage.scripts.invalid_strm_admin resolve --ids 1 2 3 --action ignored --actor NAME [--reason TEXT]
    python -m strm_triage.scripts.invalid_strm_admin delete --ids 1 2 3
"""

from __future__ import annotations

import argparse
import sys

from strm_triage.db.session import SessionLocal
from strm_triage.services.errors import InvalidStrmError
from strm_triage.services.invalid_strm_records import delete_records
from strm_triage.services.invalid_strm_stats import get_statistics
from strm_triage.services.invalid_strm_transition import batch_transition


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage invalid STRM records")
    sub = parser.add_subparsers(dest="command", required=True)

    stats = sub.add_parser("stats", help="Print counts by status and reason")
    stats.add_argument("--date-start", default=None, help="First detection day (YYYY-MM-DD)")
    stats.add_argument("--date-end", default=None, help="Last detection day (YYYY-MM-DD)")

    resolve = sub.add_parser("resolve", help="Confirm or ignore records")
    resolve.add_argument("--ids", type=int, nargs="+", required=True, help="Record IDs")
    resolve.add_argument("--action", choices=["confirmed", "ignored"], required=True)
    resolve.add_argument("--actor", required=True, help="Operator name stamped on the records")
    resolve.add_argument("--reason", default=None, help="Free-text processing note")

    delete = sub.add_parser("delete", help="Delete records by ID")
    delete.add_argument("--ids", type=int, nargs="+", required=True, help="Record IDs")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    db = SessionLocal()
    try:
        if args.command == "stats":
            stats = get_statistics(db, args.date_start, args.date_end)
            print(f"Total: {stats.total}")
            for status, count in stats.status_counts.model_dump().items():
                print(f"  {status}: {count}")
            for entry in stats.reason_counts:
                print(f"  {entry.reason} ({entry.description}): {entry.count}")
        elif args.command == "resolve":
            result = batch_transition(db, args.ids, args.action, args.actor, args.reason)
            print(
                f"Updated {len(result.updated)}, skipped {len(result.skipped)} "
                f"already resolved, {len(result.missing)} not found."
            )
        elif args.command == "delete":
            deleted = delete_records(db, args.ids)
            print(f"Deleted {deleted} invalid STRM record(s).")
    except InvalidStrmError as exc:
        print(f"Error: {exc}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
