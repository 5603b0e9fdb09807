#!/usr/bin/env python
"""Record today's portfolio snapshot for every active user.

Intended to be run once a day by cron or another scheduler, after the
market close.

Usage:
    cd backend
    python -m scripts.record_daily_snapshots [--user USER_ID]
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from database import get_session_local, init_db
from logging_config import setup_logging
from services.market_data_service import get_market_data_service


def record_snapshots(user_id: str | None = None) -> int:
    """Record snapshots and return a process exit code."""
    service = get_market_data_service()
    SessionLocal = get_session_local()
    db = SessionLocal()

    try:
        if user_id:
            snapshot = service.snapshots.record_daily_snapshot(db, user_id)
            if snapshot is None:
                print(f"User {user_id} has no holdings; nothing recorded")
            else:
                print(
                    f"Recorded {snapshot.date}: value ${snapshot.total_value:,.2f}, "
                    f"day gain ${snapshot.day_gain:,.2f}"
                )
            return 0

        summary = service.snapshots.record_all_user_snapshots(db)
        print("\nSummary:")
        print(f"  Users processed:    {summary.users_processed}")
        print(f"  Snapshots recorded: {summary.snapshots_recorded}")
        print(f"  Errors:             {len(summary.errors)}")
        for error in summary.errors:
            print(f"    - {error}")
        return 1 if summary.errors else 0

    finally:
        db.close()
        service.close()


def main():
    parser = argparse.ArgumentParser(description="Record daily portfolio snapshots")
    parser.add_argument(
        "--user",
        dest="user_id",
        help="Only record the snapshot for this user ID",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL for this run")
    args = parser.parse_args()

    setup_logging(args.log_level)
    init_db()
    sys.exit(record_snapshots(args.user_id))


if __name__ == "__main__":
    main()
