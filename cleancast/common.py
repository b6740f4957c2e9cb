"""Shared helpers: durations, identifiers, YouTube dates, thumbnails and episode validation."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from typing import Any, Optional

log = logging.getLogger(__name__)

YOUTUBE_DATE_FORMAT = "2006-01-02T15:04:05Z07:00"

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})\Z"
)

_UNAVAILABLE_STATUSES = frozenset({"private", "unlisted", "privacyStatusUnspecified"})

_THUMBNAIL_PRIORITY = ("maxres", "standard", "high", "default")


def parse_go_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"400s"`` or ``"-1.5h"``.

    Accepts the units ns, us, µs, ms, s, m and h. Precision below a
    microsecond is truncated. Raises ValueError on malformed input.
    """
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        whole, frac, unit = match.group(1), match.group(2), match.group(3)
        if not whole and not frac:
            raise ValueError(f"invalid duration {text!r}")
        if not unit:
            raise ValueError(f"missing unit in duration {text!r}")
        if unit not in _UNIT_NANOS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _UNIT_NANOS[unit]
        pos = match.end()

    delta = timedelta(microseconds=int(total) // 1_000)
    return -delta if negative else delta


def parse_iso_duration(duration_str: str) -> timedelta:
    """Parse a YouTube content duration such as ``"PT1H2M3S"``."""
    text = duration_str.replace("PT", "", 1)
    text = text.replace("H", "h", 1).replace("M", "m", 1).replace("S", "s", 1)
    return parse_go_duration(text)


def is_playlist_item_available(privacy_status: Optional[str]) -> bool:
    """Return True when a playlist item with this privacy status can be used."""
    if privacy_status is None:
        return False
    return privacy_status not in _UNAVAILABLE_STATUSES


def _is_letter(char: str) -> bool:
    return char.isalpha()


def _is_number(char: str) -> bool:
    return unicodedata.category(char).startswith("N")


def is_valid_filename(filename: str) -> bool:
    """Letters, digits, '.', '_' and '-' only."""
    return all(
        _is_letter(c) or _is_number(c) or c in "._-" for c in filename
    )


def is_valid_param(param: str) -> bool:
    """Reject anything that could walk out of a directory."""
    return not ("/" in param or "\\" in param or ".." in param)


def is_valid_id(identifier: str) -> bool:
    """Letters, digits, '_' and '-' only."""
    return all(_is_letter(c) or _is_number(c) or c in "_-" for c in identifier)


def _parse_rfc3339(date_str: str) -> datetime:
    match = _RFC3339.match(date_str)
    if match is None:
        raise ValueError(f"cannot parse {date_str!r} as {YOUTUBE_DATE_FORMAT!r}")
    year, month, day, hour, minute, second = (int(match.group(i)) for i in range(1, 7))
    frac = match.group(7)
    micro = int((frac + "000000")[:6]) if frac else 0
    zone = match.group(8)
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"time zone offset out of range in {date_str!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def parse_youtube_date(date_str: str) -> Optional[datetime]:
    """Parse a YouTube date; None when empty or unparseable."""
    if not date_str:
        return None
    try:
        return _parse_rfc3339(date_str)
    except ValueError as exc:
        log.error("Failed to parse YouTube date %r: %s", date_str, exc)
        return None


def parse_youtube_date_or_default(date_str: str, default: datetime) -> datetime:
    """Parse a YouTube date, falling back to ``default``."""
    if not date_str:
        return default
    try:
        return _parse_rfc3339(date_str)
    except ValueError as exc:
        log.warning("Failed to parse YouTube date %r, using default: %s", date_str, exc)
        return default


def parse_youtube_date_strict(date_str: str) -> Optional[datetime]:
    """Parse a YouTube date; None when empty, ValueError when malformed."""
    if not date_str:
        return None
    return _parse_rfc3339(date_str)


def select_best_thumbnail(thumbnails: Optional[Mapping[str, Any]]) -> str:
    """Pick the URL of the best thumbnail: maxres, standard, high, then default."""
    if not thumbnails:
        return ""
    for key in _THUMBNAIL_PRIORITY:
        entry = thumbnails.get(key)
        if entry and entry.get("url"):
            return entry["url"]
    return ""


def get_min_duration(min_duration: str) -> timedelta:
    """Parse the configured minimum episode duration."""
    try:
        return parse_go_duration(min_duration)
    except ValueError as exc:
        log.error(
            "Invalid MIN_DURATION format '%s'. Use formats like '5m', '1h', '400s'. Error: %s",
            min_duration,
            exc,
        )
        raise


def validate_episode_duration(duration: timedelta, min_duration: str) -> bool:
    """True when ``duration`` exceeds the minimum; True if the minimum is unusable."""
    try:
        minimum = get_min_duration(min_duration)
    except ValueError:
        log.error("Failed to get minimum duration, skipping validation")
        return True
    return duration > minimum


def is_episode_valid(video_id: str, duration: timedelta, min_duration: str) -> bool:
    """An episode needs an id and a duration above the minimum."""
    if not video_id:
        return False
    if not validate_episode_duration(duration, min_duration):
        log.debug("Episode %s duration %s below minimum threshold", video_id, duration)
        return False
    return True


def validate_video_duration(duration: timedelta, min_duration: str) -> tuple[bool, float]:
    """Return whether the duration passes, and the duration in seconds."""
    seconds = duration.total_seconds()
    try:
        minimum = get_min_duration(min_duration)
    except ValueError:
        return True, seconds
    return duration > minimum, seconds