"""SponsorBlock segment lookup and skipped-time accounting."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

log = logging.getLogger(__name__)

SPONSORBLOCK_API_URL = "https://sponsor.ajay.app/api/skipSegments?videoID="
REQUEST_TIMEOUT = 30.0

Fetch = Callable[[str], "tuple[int, bytes]"]


@dataclass
class Segment:
    """One skip segment reported by SponsorBlock."""

    start: float
    end: float
    uuid: str = ""
    category: str = ""
    video_duration: float = 0.0
    action_type: str = ""
    locked: int = 0
    votes: int = 0
    description: str = ""


def parse_segments(data: Union[str, bytes]) -> list[Segment]:
    """Decode a skipSegments JSON response. Raises ValueError when malformed."""
    try:
        decoded = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValueError(f"invalid SponsorBlock response: {exc}") from exc
    if decoded is None:
        return []
    if not isinstance(decoded, list):
        raise ValueError("SponsorBlock response is not a list")

    segments = []
    for entry in decoded:
        if not isinstance(entry, dict):
            raise ValueError("SponsorBlock segment is not an object")
        bounds = entry.get("segment")
        if not isinstance(bounds, list) or len(bounds) < 2:
            raise ValueError("SponsorBlock segment lacks start and end times")
        try:
            segments.append(
                Segment(
                    start=float(bounds[0]),
                    end=float(bounds[1]),
                    uuid=entry.get("UUID") or "",
                    category=entry.get("category") or "",
                    video_duration=float(entry.get("videoDuration") or 0),
                    action_type=entry.get("actionType") or "",
                    locked=int(entry.get("locked") or 0),
                    votes=int(entry.get("votes") or 0),
                    description=entry.get("description") or "",
                )
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid SponsorBlock segment: {exc}") from exc
    return segments


def calculate_skipped_time(segments: Iterable[Segment]) -> float:
    """Total seconds covered by the segments, counting overlaps once."""
    skipped = 0.0
    prev_stop = 0.0
    for segment in segments:
        if segment.start > prev_stop:
            skipped += segment.end - segment.start
        elif segment.end > prev_stop:
            skipped += segment.end - prev_stop
        if segment.end > prev_stop:
            prev_stop = segment.end
    return skipped


def split_categories(categories: str) -> list[str]:
    """Split the comma-separated category setting; empty gives no categories."""
    if not categories:
        return []
    return categories.split(",")


def build_segments_url(video_id: str, categories: Iterable[str]) -> str:
    """URL of the skipSegments query for a video and categories."""
    url = SPONSORBLOCK_API_URL + video_id
    for category in categories:
        url += "&category=" + category.strip()
    return url


def _http_get(url: str) -> tuple[int, bytes]:
    try:
        with urllib.request.urlopen(url, timeout=REQUEST_TIMEOUT) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()


def total_sponsor_time_skipped(
    video_id: str, categories: str = "", fetch: Optional[Fetch] = None
) -> float:
    """Seconds SponsorBlock would cut from a video; 0 when the lookup fails."""
    log.debug("[SponsorBlock] Looking up podcast in SponsorBlock API...")
    url = build_segments_url(video_id, split_categories(categories))
    fetch = fetch or _http_get
    try:
        status, body = fetch(url)
    except OSError as exc:
        log.error("SponsorBlock request failed: %s", exc)
        return 0.0
    if status == 404:
        log.warning("Video not found on SponsorBlock API: %s", video_id)
        return 0.0
    try:
        segments = parse_segments(body)
    except ValueError as exc:
        log.error("Could not decode SponsorBlock response: %s", exc)
        return 0.0
    return calculate_skipped_time(segments)


def needs_redownload(
    previous_skipped: Optional[float], updated_skipped: float, threshold: float
) -> bool:
    """Whether an episode must be fetched again given old and new skipped time."""
    if previous_skipped is None:
        return True
    if abs(previous_skipped - updated_skipped) > threshold:
        log.debug("[SponsorBlock] Updating downloaded episode with new sponsor skips...")
        return True
    return False