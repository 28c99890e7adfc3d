#!/usr/bin/env python3
"""Cron entry point for the weekly batch submission.

Crontab (UTC), Saturday 18:00, when Friday has ended in every timezone:
    0 18 * * 6  /usr/bin/env python3 scripts/submit_weekly.py

Optional arguments: WEEK YEAR, to submit a specific week.

Exit codes:
- 0: Submitted, skipped, or already handled for this week
- 1: Submission failed or server unavailable
"""

import json
import os
import sys

# Add scripts directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from reflector_client import ReflectorError, ReflectorUnavailable, submit_weekly


def main():
    args = sys.argv[1:]
    week = int(args[0]) if len(args) > 0 else None
    year = int(args[1]) if len(args) > 1 else None

    try:
        result = submit_weekly(week=week, year=year)
    except (ReflectorError, ReflectorUnavailable) as e:
        print(f"[reflector] ERROR: Weekly submission failed - {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
