"""Smart playlists: rule-based selections of episodes served as their own feed."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Union

from cleancast.feed import ItemError
from cleancast.feed import Podcast as Feed
from cleancast.feeditems import Enclosure, EnclosureType, Item
from cleancast.models import Episode

log = logging.getLogger(__name__)

DEFAULT_LOGIC = "AND"
SMART_PLAYLIST_CATEGORY = "Technology"
SMART_PLAYLIST_IMAGE = "https://via.placeholder.com/1000x1000.png?text=Smart+Playlist"
SMART_PLAYLIST_ARTIST = "CleanCast Smart Playlist"
RSS_DOCS = "http://www.rssboard.org/rss-specification"
PRIVATE_TITLE = "Private video"
PRIVATE_DESCRIPTION = "This video is private."

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass
class Rule:
    """One condition on an episode field, such as ``duration greater_than 600``."""

    field: str
    operator: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}

    @classmethod
    def from_dict(cls, data: Any) -> "Rule":
        if not isinstance(data, dict):
            raise ValueError("smart playlist rule is not an object")
        return cls(
            field=str(data.get("field") or ""),
            operator=str(data.get("operator") or ""),
            value=data.get("value"),
        )


@dataclass
class SmartPlaylist:
    """A named set of rules combined with AND or OR logic."""

    id: str
    name: str
    description: str = ""
    rules: list[Rule] = field(default_factory=list)
    logic: str = DEFAULT_LOGIC
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def generate_playlist_id(name: str, now: Optional[datetime] = None) -> str:
    """Build an id of the form ``smart-<unix time>-<cleaned name>``."""
    when = now or datetime.now(timezone.utc)
    timestamp = int(when.timestamp())
    lowered = name.lower().replace(" ", "-")
    clean = "".join(c for c in lowered if "a" <= c <= "z" or "0" <= c <= "9" or c == "-")
    return f"smart-{timestamp}-{clean}"


def encode_rules(rules: Iterable[Rule]) -> str:
    """Serialise rules as the stored JSON document ``{"rules": [...]}``."""
    return json.dumps({"rules": [rule.to_dict() for rule in rules]})


def decode_rules(text: Union[str, bytes]) -> list[Rule]:
    """Read rules from their stored JSON form. Raises ValueError when malformed."""
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.error("Failed to parse smart playlist rules: %s", exc)
        raise ValueError(f"failed to parse rules: {exc}") from exc
    if decoded is None:
        return []
    if not isinstance(decoded, dict):
        raise ValueError("failed to parse rules: not an object")
    rules = decoded.get("rules")
    if rules is None:
        return []
    if not isinstance(rules, list):
        raise ValueError("failed to parse rules: 'rules' is not a list")
    return [Rule.from_dict(entry) for entry in rules]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _match_duration(episode: Episode, operator: str, value: Any) -> bool:
    if not _is_number(value):
        return False
    seconds = episode.duration.total_seconds()
    target = float(value)
    if operator == "equals":
        return seconds == target
    if operator == "greater_than":
        return seconds > target
    if operator == "less_than":
        return seconds < target
    return False


def _aware(when: Optional[datetime]) -> datetime:
    if when is None:
        return _ZERO_TIME
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when


def _match_publish_date(episode: Episode, operator: str, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        target_day = date.fromisoformat(value)
        if len(value) != 10:
            raise ValueError("expected YYYY-MM-DD")
    except ValueError as exc:
        log.error("Failed to parse target date %r: %s", value, exc)
        return False
    target = datetime(target_day.year, target_day.month, target_day.day, tzinfo=timezone.utc)
    published = _aware(episode.published_date)
    if operator == "equals":
        return published.date() == target_day
    if operator == "before":
        return published < target
    if operator == "after":
        return published > target
    return False


def _match_keyword(text: str, operator: str, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    lowered_text = text.lower()
    keyword = value.lower()
    if operator == "equals":
        return lowered_text == keyword
    if operator == "contains":
        return keyword in lowered_text
    return False


def _match_channel_id(channel_id: str, operator: str, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if operator == "equals":
        return channel_id == value
    if operator == "contains":
        return value in channel_id
    return False


def matches_rule(episode: Episode, rule: Rule) -> bool:
    """Whether an episode satisfies one rule; unknown fields never match."""
    if rule.field == "duration":
        return _match_duration(episode, rule.operator, rule.value)
    if rule.field == "publish_date":
        return _match_publish_date(episode, rule.operator, rule.value)
    if rule.field in ("keyword", "title"):
        return _match_keyword(episode.episode_name, rule.operator, rule.value)
    if rule.field == "description":
        return _match_keyword(episode.episode_description, rule.operator, rule.value)
    if rule.field == "channel_id":
        return _match_channel_id(episode.podcast_id, rule.operator, rule.value)
    log.warning("Unknown rule field %r", rule.field)
    return False


def matches_rules(episode: Episode, rules: Iterable[Rule], logic: str) -> bool:
    """Combine rules with "AND" or "OR"; no rules match everything.

    Any other logic value matches nothing when rules are present.
    """
    rules = list(rules)
    if not rules:
        return True
    match_count = 0
    for rule in rules:
        if matches_rule(episode, rule):
            match_count += 1
            if logic == "OR":
                return True
        elif logic == "AND":
            return False
    return logic == "AND" and match_count == len(rules)


def select_episodes(episodes: Iterable[Episode], rules: Iterable[Rule], logic: str) -> list[Episode]:
    """Episodes matching the rules, in their original order."""
    rules = list(rules)
    return [episode for episode in episodes if matches_rules(episode, rules, logic)]


def create_smart_playlist(
    name: str, description: str = "", rules: Iterable[Rule] = (), logic: str = ""
) -> SmartPlaylist:
    """Make a new smart playlist with a generated id; logic defaults to AND."""
    now = datetime.now(timezone.utc)
    return SmartPlaylist(
        id=generate_playlist_id(name, now),
        name=name,
        description=description,
        rules=list(rules),
        logic=logic or DEFAULT_LOGIC,
        created_at=now,
        updated_at=now,
    )


def generate_smart_playlist_rss(
    playlist: SmartPlaylist, episodes: Iterable[Episode], host: str
) -> bytes:
    """Render a smart playlist and its episodes as an RSS document."""
    log.info("[SMART PLAYLIST] Generating RSS Feed...")
    link = f"{host}/rss/smart/{playlist.id}"
    feed = Feed(playlist.name, link, playlist.description, datetime.now().astimezone())
    feed.add_image(SMART_PLAYLIST_IMAGE)
    feed.add_category(SMART_PLAYLIST_CATEGORY, [""])
    feed.docs = RSS_DOCS
    feed.i_author = SMART_PLAYLIST_ARTIST

    for episode in episodes:
        if episode.episode_name == PRIVATE_TITLE or episode.episode_description == PRIVATE_DESCRIPTION:
            continue
        item = Item(
            title=episode.episode_name,
            description=episode.episode_description,
            guid=episode.youtube_video_id,
            guid_is_permalink=False,
            enclosure=Enclosure(
                url=f"{host}/media/{episode.youtube_video_id}.m4a",
                length=0,
                type=EnclosureType.M4A,
            ),
            pub_date=episode.published_date,
        )
        try:
            feed.add_item(item)
        except ItemError as exc:
            log.debug("[SMART PLAYLIST] Skipping episode %s: %s", episode.youtube_video_id, exc)

    return feed.to_bytes()