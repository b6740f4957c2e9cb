import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

import pytest

from cleancast.models import Episode
from cleancast.smartplaylist import (
    Rule,
    SmartPlaylist,
    create_smart_playlist,
    decode_rules,
    encode_rules,
    generate_playlist_id,
    generate_smart_playlist_rss,
    matches_rule,
    matches_rules,
    select_episodes,
)


def _episode(**kwargs):
    base = dict(
        youtube_video_id="vid1",
        episode_name="Weekly Tech News",
        episode_description="All about gadgets",
        podcast_id="UCabc123",
        type="CHANNEL",
        duration=timedelta(minutes=10),
        published_date=datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
    )
    base.update(kwargs)
    return Episode(**base)


def test_generate_playlist_id_cleans_name():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    result = generate_playlist_id("My Cool Playlist!", now)
    assert result == f"smart-{int(now.timestamp())}-my-cool-playlist"


def test_generate_playlist_id_prefix_and_charset():
    result = generate_playlist_id("Ünïcode & Stuff 42")
    assert result.startswith("smart-")
    assert all(c.isdigit() or "a" <= c <= "z" or c == "-" for c in result)
    assert result.endswith("42")


def test_rules_round_trip():
    rules = [Rule("duration", "greater_than", 600), Rule("title", "contains", "news")]
    assert decode_rules(encode_rules(rules)) == rules


def test_decode_rules_null_and_missing():
    assert decode_rules('{"rules": null}') == []
    assert decode_rules("{}") == []


def test_decode_rules_malformed():
    with pytest.raises(ValueError):
        decode_rules("not json")
    with pytest.raises(ValueError):
        decode_rules('{"rules": 5}')


@pytest.mark.parametrize(
    "operator,value,expected",
    [
        ("greater_than", 300, True),
        ("less_than", 300, False),
        ("equals", 600, True),
        ("equals", 600.0, True),
        ("greater_than", "300", False),
        ("greater_than", True, False),
        ("between", 300, False),
    ],
)
def test_duration_rule(operator, value, expected):
    assert matches_rule(_episode(), Rule("duration", operator, value)) is expected


@pytest.mark.parametrize(
    "operator,value,expected",
    [
        ("equals", "2024-03-15", True),
        ("before", "2024-03-16", True),
        ("after", "2024-03-16", False),
        ("after", "2024-03-15", True),
        ("before", "not-a-date", False),
        ("equals", 20240315, False),
    ],
)
def test_publish_date_rule(operator, value, expected):
    assert matches_rule(_episode(), Rule("publish_date", operator, value)) is expected


def test_keyword_rules_are_case_insensitive():
    ep = _episode()
    assert matches_rule(ep, Rule("keyword", "contains", "TECH"))
    assert matches_rule(ep, Rule("title", "equals", "weekly tech news"))
    assert matches_rule(ep, Rule("description", "contains", "Gadgets"))
    assert not matches_rule(ep, Rule("description", "equals", "gadgets"))


def test_channel_id_rule_is_case_sensitive():
    ep = _episode()
    assert matches_rule(ep, Rule("channel_id", "equals", "UCabc123"))
    assert matches_rule(ep, Rule("channel_id", "contains", "abc"))
    assert not matches_rule(ep, Rule("channel_id", "contains", "ABC"))


def test_unknown_field_never_matches():
    assert not matches_rule(_episode(), Rule("views", "equals", 1))


def test_matches_rules_logic():
    ep = _episode()
    yes = Rule("title", "contains", "tech")
    no = Rule("title", "contains", "cooking")
    assert matches_rules(ep, [], "AND")
    assert matches_rules(ep, [yes, yes], "AND")
    assert not matches_rules(ep, [yes, no], "AND")
    assert matches_rules(ep, [no, yes], "OR")
    assert not matches_rules(ep, [no, no], "OR")
    assert not matches_rules(ep, [yes], "XOR")


def test_select_episodes_keeps_order():
    eps = [
        _episode(youtube_video_id="a", duration=timedelta(minutes=1)),
        _episode(youtube_video_id="b", duration=timedelta(minutes=30)),
        _episode(youtube_video_id="c", duration=timedelta(minutes=20)),
    ]
    picked = select_episodes(eps, [Rule("duration", "greater_than", 300)], "AND")
    assert [e.youtube_video_id for e in picked] == ["b", "c"]


def test_create_smart_playlist_defaults_logic():
    rules = [Rule("title", "contains", "news")]
    playlist = create_smart_playlist("Daily Picks", "desc", rules)
    assert playlist.logic == "AND"
    assert playlist.rules == rules
    assert playlist.id.startswith("smart-")
    assert playlist.id.endswith("-daily-picks")
    assert create_smart_playlist("x", "", [], "OR").logic == "OR"


def test_generate_smart_playlist_rss():
    playlist = SmartPlaylist(id="smart-1-picks", name="Picks", description="Best of")
    eps = [
        _episode(youtube_video_id="good1"),
        _episode(youtube_video_id="priv", episode_name="Private video"),
        _episode(youtube_video_id="priv2", episode_description="This video is private."),
        _episode(youtube_video_id="good2", episode_name="Other"),
    ]
    host = "http://localhost:8080"
    root = ET.fromstring(generate_smart_playlist_rss(playlist, eps, host))
    channel = root.find("channel")
    assert channel.findtext("title") == "Picks"
    assert channel.findtext("link") == f"{host}/rss/smart/smart-1-picks"
    items = channel.findall("item")
    assert [i.findtext("guid") for i in items] == ["good1", "good2"]
    enclosure = items[0].find("enclosure")
    assert enclosure.get("url") == f"{host}/media/good1.m4a"
    assert enclosure.get("type") == "audio/mp4"
    assert channel.findtext("category") == "Technology"


def test_generate_smart_playlist_rss_skips_untitled_episodes():
    playlist = SmartPlaylist(id="p", name="P", description="D")
    eps = [_episode(youtube_video_id="x", episode_name="")]
    root = ET.fromstring(generate_smart_playlist_rss(playlist, eps, "http://h"))
    assert root.find("channel").findall("item") == []