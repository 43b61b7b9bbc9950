#!/usr/bin/env python
"""
Auto-Confirm Job

Confirms every pending transaction whose auto-confirm date has been reached.
Meant to be run once a day from cron or another scheduler. Only one instance
should run at a time.

Usage:
    python scripts/auto_confirm_job.py [--date YYYY-MM-DD]

Options:
    --date: Confirm transactions due on or before this date (default: today)
"""
import sys
from pathlib import Path
from datetime import date, datetime
from argparse import ArgumentParser

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from financeflow.db.core import get_db
from financeflow.logging_config import setup_logging
from financeflow.services.pending import auto_confirm


def run_auto_confirm(as_of: date) -> int:
    """
    Run the sweep once. Returns the number of transactions that failed.
    """
    print("=" * 60)
    print(f"Running Auto-Confirm Job - {as_of}")
    print("=" * 60)

    db = next(get_db())

    try:
        result = auto_confirm(db, as_of=as_of)

        print("\n" + "=" * 60)
        print("Job Complete!")
        print(f"  Transactions confirmed: {result.confirmed_count}")
        if result.confirmed_ids:
            print(f"  Confirmed IDs: {', '.join(str(i) for i in result.confirmed_ids)}")
        print(f"  Errors: {len(result.failed_ids)}")
        if result.failed_ids:
            print(f"  Failed IDs: {', '.join(str(i) for i in result.failed_ids)}")
        print("=" * 60)

        return len(result.failed_ids)

    except Exception as e:
        print(f"FATAL ERROR: {str(e)}")
        raise
    finally:
        db.close()


def main():
    parser = ArgumentParser(description="Confirm pending transactions whose auto-confirm date has passed")

    parser.add_argument(
        '--date',
        type=str,
        help='Confirm transactions due on or before this date (YYYY-MM-DD), defaults to today'
    )

    args = parser.parse_args()

    if args.date:
        try:
            as_of = datetime.strptime(args.date, '%Y-%m-%d').date()
        except ValueError:
            print(f"Invalid date format: {args.date}. Use YYYY-MM-DD")
            sys.exit(1)
    else:
        as_of = date.today()

    setup_logging()

    try:
        failures = run_auto_confirm(as_of)
    except Exception:
        sys.exit(1)

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
