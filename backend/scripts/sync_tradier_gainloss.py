#!/usr/bin/env python
"""
Sync Tradier Gain/Loss Script

Pulls closed positions from every connected Tradier account and stores them
as trades with the broker's realized P&L. Safe to re-run: positions already
stored with a P&L are skipped.

Usage:
    python backend/scripts/sync_tradier_gainloss.py --dry-run
    python backend/scripts/sync_tradier_gainloss.py --user-id 42
    python backend/scripts/sync_tradier_gainloss.py --fix-missing
"""

import sys
import logging
import argparse
from pathlib import Path
from dotenv import load_dotenv

# Add the backend directory to the Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Load environment variables before settings are read
load_dotenv()

from meridian.core.config import settings  # noqa: E402
from meridian.db.base import Base  # noqa: E402
from meridian.db.session import SessionLocal, engine  # noqa: E402
from meridian.monitoring.logger import setup_logging  # noqa: E402
from meridian.services.trade_sync import TradeSyncService  # noqa: E402

logger = logging.getLogger("sync_tradier_gainloss")


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Sync closed positions from Tradier gain/loss")

    parser.add_argument("--dry-run", action="store_true",
                        help="Report what would change without writing")
    parser.add_argument("--user-id", type=int,
                        help="Only sync this user's accounts")
    parser.add_argument("--fix-missing", action="store_true",
                        help="Fill in P&L on stored trades that are missing it")

    return parser.parse_args(argv)


def print_summary(results, dry_run):
    """Print a per-account summary and the totals"""
    print("\n" + "=" * 60)
    print("SYNC SUMMARY" + (" (DRY RUN)" if dry_run else ""))
    print("=" * 60)

    total_synced = total_updated = total_skipped = total_errors = 0
    total_pnl = 0.0
    for stats in results:
        print(f"\n{stats.username} (user {stats.user_id}):")
        print(f"  Synced:  {stats.synced}")
        print(f"  Updated: {stats.updated}")
        print(f"  Skipped: {stats.skipped}")
        print(f"  Errors:  {stats.errors}")
        print(f"  P&L:     ${stats.total_pnl:,.2f}")

        total_synced += stats.synced
        total_updated += stats.updated
        total_skipped += stats.skipped
        total_errors += stats.errors
        total_pnl += stats.total_pnl

    print("\n" + "-" * 60)
    print(f"Accounts: {len(results)}")
    print(f"Synced: {total_synced}  Updated: {total_updated}  "
          f"Skipped: {total_skipped}  Errors: {total_errors}")
    print(f"Total P&L: ${total_pnl:,.2f}")
    print("=" * 60)

    return total_errors


def main(argv=None):
    """Main function"""
    args = parse_args(argv)
    setup_logging(settings)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        service = TradeSyncService(db)

        if args.fix_missing:
            logger.info("Fixing trades with missing P&L")
            fixed, calculated = service.fix_missing_pnl(user_id=args.user_id, dry_run=args.dry_run)
            print(f"\nFixed from Tradier: {fixed}")
            print(f"Calculated from prices: {calculated}")
            return 0

        logger.info("Starting Tradier gain/loss sync" + (" (dry run)" if args.dry_run else ""))
        results = service.sync_all(user_id=args.user_id, dry_run=args.dry_run)
        if not results:
            logger.warning("No active Tradier accounts with credentials found")
            return 0

        errors = print_summary(results, args.dry_run)
        return 1 if errors else 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
