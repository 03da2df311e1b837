"""
Reset broken streaks once. This is what the daily cron job runs.

Usage:
    cd backend
    SUPABASE_URL=... SUPABASE_SERVICE_KEY=... python scripts/sweep_streaks.py [--strict] [--dry-run]

Or with a .env file in the working directory.

--strict   reset each record with its own conditional update (no lost completions)
--dry-run  only report how many streaks are broken
"""
import logging
import os
import sys

from dotenv import load_dotenv

# Add project root to path so the package imports without an install
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from swallowsafe.db import get_store
from swallowsafe.errors import StreakError
from swallowsafe.sweeper import sweep_broken_streaks


def run(strict: bool = False, dry_run: bool = False) -> int:
    print(f"\n🔍 Sweeping broken streaks{' (strict)' if strict else ''}...\n")
    try:
        result = sweep_broken_streaks(get_store(), strict=strict, dry_run=dry_run)
    except StreakError as e:
        print(f"❌ {e.message} {e.details or ''}")
        return 1

    print(f"  Active streaks scanned: {result.scanned}")
    print(f"  Broken:                 {result.attempted}")
    if dry_run:
        print("\n  DRY RUN — no changes written.")
        return 0
    print(f"  Reset:                  {result.reset}")
    if result.skipped:
        print(f"  Skipped (changed):      {result.skipped}")
    print("\n✅ Sweep complete.\n")
    return 0


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(run(strict="--strict" in sys.argv, dry_run="--dry-run" in sys.argv))
