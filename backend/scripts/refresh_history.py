#!/usr/bin/env python
"""Force a refetch of daily history from the market data providers.

Either refreshes the given symbols, or every symbol a user holds (and then
rebuilds that user's snapshot series).

Usage:
    cd backend
    python -m scripts.refresh_history AAPL MSFT [--days 90]
    python -m scripts.refresh_history --user USER_ID
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from database import get_session_local, init_db
from logging_config import setup_logging
from services.exceptions import HistoryPersistenceError
from services.market_data_service import get_market_data_service


def refresh_symbols(symbols: list[str], days: int | None = None) -> int:
    """Refetch history for each symbol; returns a process exit code."""
    service = get_market_data_service()
    SessionLocal = get_session_local()
    db = SessionLocal()
    failed = 0

    try:
        for symbol in symbols:
            try:
                bars = service.history.get_historical_data(
                    db, symbol, days=days, force_refresh=True
                )
            except HistoryPersistenceError as e:
                failed += 1
                print(f"✗ {symbol.upper()}: {e}")
                continue

            if bars:
                print(f"✓ {symbol.upper()}: {len(bars)} bars ({bars[0].date} to {bars[-1].date})")
            else:
                failed += 1
                print(f"✗ {symbol.upper()}: no data from any provider")
    finally:
        db.close()
        service.close()

    return 1 if failed else 0


def refresh_user(user_id: str) -> int:
    """Refresh every held symbol for a user and rebuild their snapshots."""
    service = get_market_data_service()
    SessionLocal = get_session_local()
    db = SessionLocal()

    try:
        result = service.performance.refresh_history(db, user_id)
    finally:
        db.close()
        service.close()

    print("\nSummary:")
    print(f"  Refreshed:         {', '.join(result.symbols_refreshed) or '-'}")
    print(f"  No data:           {', '.join(result.symbols_without_data) or '-'}")
    print(f"  Snapshots written: {result.snapshots_written}")
    for error in result.errors:
        print(f"  Error: {error}")
    return 1 if result.errors else 0


def main():
    parser = argparse.ArgumentParser(description="Refresh stored daily history")
    parser.add_argument("symbols", nargs="*", help="Ticker symbols to refresh")
    parser.add_argument("--user", dest="user_id", help="Refresh every symbol this user holds")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Days of history to report back (default: DEFAULT_HISTORY_DAYS)",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL for this run")
    args = parser.parse_args()

    if not args.symbols and not args.user_id:
        parser.error("give at least one symbol or --user")

    setup_logging(args.log_level)
    init_db()

    if args.user_id:
        sys.exit(refresh_user(args.user_id))
    sys.exit(refresh_symbols(args.symbols, args.days))


if __name__ == "__main__":
    main()
