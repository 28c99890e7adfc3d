#!/usr/bin/env python3
"""Cron entry point for the recurring batch check.

Crontab (UTC), Saturday and Sunday every three hours except 18:00:
    0 0,3,9,12,15,21 * * 6,0  /usr/bin/env python3 scripts/check_batches.py

The server ignores invocations outside the polling window, so firing on a
tighter cadence is harmless.

Exit codes:
- 0: Success (including a skipped check)
- 1: Check failed or server unavailable
"""

import json
import os
import sys
from datetime import datetime, timezone

# Add scripts directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from reflector_client import ReflectorError, ReflectorUnavailable, check_batches


def main():
    force = "--force" in sys.argv[1:]
    scheduled_time = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0).isoformat()

    try:
        result = check_batches(scheduled_time=scheduled_time, force=force)
    except (ReflectorError, ReflectorUnavailable) as e:
        print(f"[reflector] ERROR: Batch check failed - {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
