from __future__ import annotations

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

SECONDS_PER_DAY = 86400

DEFAULT_TIMEZONE = "Europe/Madrid"


def reference_timezone(name: str | None = None) -> ZoneInfo:
    """Zone in which service dates and times of day are evaluated.

    Env vars:
      - TRANSIT_TIMEZONE: IANA zone name (default Europe/Madrid)
    """

    value = name or os.getenv("TRANSIT_TIMEZONE") or DEFAULT_TIMEZONE
    return ZoneInfo(value.strip())


def parse_gtfs_time(raw: str) -> int:
    # GTFS time can be HH:MM:SS with HH possibly > 24.
    raw = (raw or "").strip()
    if not raw:
        return 0
    parts = raw.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid GTFS time: {raw!r}")
    hh, mm = int(parts[0]), int(parts[1])
    ss = int(parts[2]) if len(parts) == 3 else 0
    return hh * 3600 + mm * 60 + ss


def format_gtfs_time(seconds: int) -> str:
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError(f"Negative time of day: {seconds}")
    hh, rest = divmod(seconds, 3600)
    mm, ss = divmod(rest, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def _localize(now: datetime, tz: ZoneInfo) -> datetime:
    if now.tzinfo is None:
        # Naive datetimes are taken as UTC.
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def seconds_since_midnight(now: datetime, tz: ZoneInfo) -> int:
    local = _localize(now, tz)
    value = local.hour * 3600 + local.minute * 60 + local.second
    return value % SECONDS_PER_DAY


def service_date(now: datetime, tz: ZoneInfo) -> date:
    return _localize(now, tz).date()
