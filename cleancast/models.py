"""Podcast and episode records shared by the feed, filter and playlist code."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional


@dataclass
class Episode:
    """One video published as a podcast episode."""

    youtube_video_id: str = ""
    episode_name: str = ""
    episode_description: str = ""
    podcast_id: str = ""
    type: str = ""
    duration: timedelta = field(default_factory=timedelta)
    published_date: Optional[datetime] = None


@dataclass
class Podcast:
    """A channel or playlist served as a podcast."""

    id: str = ""
    podcast_name: str = ""
    description: str = ""
    image_url: str = ""
    category: str = ""
    artist_name: str = ""
    explicit: str = ""
    posted_date: str = ""
    last_build_date: str = ""
    episodes: list[Episode] = field(default_factory=list)

    def with_episodes(self, episodes: Iterable[Episode]) -> "Podcast":
        """Return a copy of this podcast holding ``episodes``."""
        return dataclasses.replace(self, episodes=list(episodes))