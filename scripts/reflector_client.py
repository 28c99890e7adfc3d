#!/usr/bin/env python3
"""Shared HTTP client for the reflector server's internal trigger API.

Used by the cron entry points to start a weekly submission or a batch check.
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from typing import Any

# Configuration
# Internal API is unauthenticated and only answers requests from localhost
REFLECTOR_BASE_URL = os.environ.get("REFLECTOR_URL", "http://localhost:8788")
# Matches the hosting platform's 300s execution ceiling
REFLECTOR_TIMEOUT = int(os.environ.get("REFLECTOR_TIMEOUT", "300"))


class ReflectorError(Exception):
    """Raised when the reflector server reports a failure."""
    pass


class ReflectorUnavailable(Exception):
    """Raised when the reflector server is not reachable."""
    pass


def _call_internal_api(endpoint: str, data: dict[str, Any]) -> dict:
    """Call internal API endpoint via HTTP POST.

    Args:
        endpoint: API endpoint path (e.g., "/internal/batches/check")
        data: Request body as a dict

    Returns:
        Response as a dict

    Raises:
        ReflectorUnavailable: If server is not reachable
        ReflectorError: If server returns an error
    """
    url = f"{REFLECTOR_BASE_URL}{endpoint}"
    payload = json.dumps(data).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }

    req = urllib.request.Request(url, data=payload, headers=headers, method="POST")

    try:
        with urllib.request.urlopen(req, timeout=REFLECTOR_TIMEOUT) as response:
            return json.loads(response.read().decode("utf-8"))

    except urllib.error.HTTPError as e:
        if e.code == 403:
            raise ReflectorError("Forbidden: Internal API is localhost only")
        try:
            detail = json.loads(e.read().decode("utf-8")).get("error", str(e))
        except (json.JSONDecodeError, UnicodeDecodeError):
            detail = str(e)
        raise ReflectorError(f"Reflector server error: {detail}")
    except urllib.error.URLError as e:
        raise ReflectorUnavailable(f"Cannot connect to reflector server at {REFLECTOR_BASE_URL}: {e}")
    except json.JSONDecodeError as e:
        raise ReflectorError(f"Invalid JSON response from server: {e}")


def submit_weekly(week: int | None = None, year: int | None = None) -> dict:
    """Submit the weekly reflection batch.

    Args:
        week: Sequential week number, or None for the last finished week
        year: Year of the week, or None for the last finished week's year

    Returns:
        Dict with submission status and details
    """
    data: dict[str, Any] = {}
    if week is not None:
        data["week"] = week
    if year is not None:
        data["year"] = year
    return _call_internal_api("/internal/batches/submit", data)


def check_batches(scheduled_time: str | None = None, force: bool = False) -> dict:
    """Run one batch polling cycle.

    Args:
        scheduled_time: Trigger time to report in notifications
        force: Ignore the polling window guard

    Returns:
        Dict summarizing checked, completed, failed and still processing jobs
    """
    data: dict[str, Any] = {"force": force}
    if scheduled_time is not None:
        data["scheduled_time"] = scheduled_time
    return _call_internal_api("/internal/batches/check", data)
