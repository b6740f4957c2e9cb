"""Episode filtering by keyword, regular expression, video id and duration."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from cleancast.models import Episode

log = logging.getLogger(__name__)

_VALID_TYPES = frozenset({"keyword", "regex", "video_id", "duration"})
_VALID_ACTIONS = frozenset({"block", "allow"})


@dataclass
class Filter:
    """A rule that blocks or allows episodes."""

    name: str = ""
    filter_type: str = "keyword"
    pattern: str = ""
    action: str = "block"
    enabled: bool = True
    feed_id: Optional[str] = None
    case_sensitive: bool = False
    apply_to_title: bool = True
    apply_to_description: bool = False
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None


@dataclass
class FeedPreferences:
    """Per-feed duration bounds, in seconds."""

    feed_id: str = ""
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None


class FilterError(ValueError):
    """A filter definition is invalid."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        text = f"{message}: {cause}" if cause is not None else message
        super().__init__(text)
        self.message = message
        self.cause = cause


def _match_keyword(episode: Episode, flt: Filter) -> bool:
    def fold(text: str) -> str:
        return text if flt.case_sensitive else text.lower()

    pattern = fold(flt.pattern)
    if flt.apply_to_title and pattern in fold(episode.episode_name):
        return True
    if flt.apply_to_description and pattern in fold(episode.episode_description):
        return True
    return False


def _match_regex(episode: Episode, flt: Filter) -> bool:
    flags = 0 if flt.case_sensitive else re.IGNORECASE
    try:
        regex = re.compile(flt.pattern, flags)
    except re.error as exc:
        log.error("Invalid regex pattern %r: %s", flt.pattern, exc)
        return False
    if flt.apply_to_title and regex.search(episode.episode_name):
        return True
    if flt.apply_to_description and regex.search(episode.episode_description):
        return True
    return False


def _match_video_id(episode: Episode, flt: Filter) -> bool:
    return episode.youtube_video_id == flt.pattern


def _match_duration(episode: Episode, flt: Filter) -> bool:
    seconds = int(episode.duration.total_seconds())
    if flt.min_duration is not None and seconds < flt.min_duration:
        return True
    if flt.max_duration is not None and seconds > flt.max_duration:
        return True
    return False


_MATCHERS = {
    "keyword": _match_keyword,
    "regex": _match_regex,
    "video_id": _match_video_id,
    "duration": _match_duration,
}


class FilterService:
    """Decides which episodes pass a set of filters."""

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        self.filters = list(filters)

    def allows(self, episode: Episode) -> bool:
        """True unless a block filter matches and no allow filter does."""
        if not self.filters:
            return True

        allowed = False
        blocked = False
        for flt in self.filters:
            if not flt.enabled:
                continue
            if flt.feed_id is not None and flt.feed_id != episode.podcast_id:
                continue
            matcher = _MATCHERS.get(flt.filter_type)
            if matcher is None or not matcher(episode, flt):
                continue
            if flt.action == "allow":
                allowed = True
            elif flt.action == "block":
                blocked = True
                log.debug(
                    "Episode %s blocked by filter %s", episode.youtube_video_id, flt.name
                )

        if allowed:
            return True
        return not blocked

    def filter_episodes(self, episodes: Iterable[Episode]) -> list[Episode]:
        """Episodes that pass, in their original order."""
        return [episode for episode in episodes if self.allows(episode)]


def apply_feed_preferences(
    episodes: Iterable[Episode], prefs: Optional[FeedPreferences]
) -> list[Episode]:
    """Drop episodes outside the feed's duration bounds."""
    episodes = list(episodes)
    if prefs is None:
        return episodes
    kept = []
    for episode in episodes:
        seconds = episode.duration.total_seconds()
        if prefs.min_duration is not None and seconds < prefs.min_duration:
            continue
        if prefs.max_duration is not None and seconds > prefs.max_duration:
            continue
        kept.append(episode)
    return kept


def validate_filter(flt: Filter) -> None:
    """Raise FilterError when the filter definition cannot be used."""
    if flt.filter_type not in _VALID_TYPES:
        raise FilterError("Invalid filter type")
    if flt.action not in _VALID_ACTIONS:
        raise FilterError("Invalid action")
    if flt.filter_type == "regex":
        try:
            re.compile(flt.pattern)
        except re.error as exc:
            raise FilterError("Invalid regex pattern", exc) from exc
    if flt.filter_type != "duration" and not flt.pattern:
        raise FilterError("Pattern cannot be empty")
    if flt.filter_type == "duration" and flt.min_duration is None and flt.max_duration is None:
        raise FilterError("Duration filter must specify min_duration or max_duration")