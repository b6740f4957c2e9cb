import json

import pytest

from cleancast.sponsorblock import (
    SPONSORBLOCK_API_URL,
    Segment,
    build_segments_url,
    calculate_skipped_time,
    needs_redownload,
    parse_segments,
    split_categories,
    total_sponsor_time_skipped,
)

SAMPLE = [
    {
        "segment": [1.5, 3.0],
        "UUID": "uuid-one",
        "category": "sponsor",
        "videoDuration": 600.0,
        "actionType": "skip",
        "locked": 1,
        "votes": 4,
        "description": "",
    },
    {"segment": [10.0, 20.0], "UUID": "uuid-two", "category": "sponsor"},
]


def test_parse_segments_fields():
    segments = parse_segments(json.dumps(SAMPLE).encode())
    assert len(segments) == 2
    first = segments[0]
    assert (first.start, first.end) == (1.5, 3.0)
    assert first.uuid == "uuid-one"
    assert first.category == "sponsor"
    assert first.video_duration == 600.0
    assert first.action_type == "skip"
    assert (first.locked, first.votes) == (1, 4)
    assert segments[1].uuid == "uuid-two"


def test_parse_null_is_empty():
    assert parse_segments("null") == []


@pytest.mark.parametrize("body", ["not json", "{}", '[{"segment": [1]}]', "[3]"])
def test_parse_invalid(body):
    with pytest.raises(ValueError):
        parse_segments(body)


def test_skipped_time_empty():
    assert calculate_skipped_time([]) == 0.0


def test_single_segment_is_its_length():
    assert calculate_skipped_time([Segment(2.0, 7.5)]) == 7.5 - 2.0


def test_overlap_counted_once():
    overlapping = [Segment(0.0, 10.0), Segment(5.0, 15.0)]
    assert calculate_skipped_time(overlapping) == calculate_skipped_time([Segment(0.0, 15.0)])


def test_contained_segment_adds_nothing():
    nested = [Segment(0.0, 10.0), Segment(2.0, 5.0)]
    assert calculate_skipped_time(nested) == calculate_skipped_time([Segment(0.0, 10.0)])


def test_disjoint_segments_add_up():
    a, b = Segment(1.0, 2.0), Segment(3.0, 5.0)
    assert calculate_skipped_time([a, b]) == calculate_skipped_time([a]) + calculate_skipped_time([b])


def test_split_categories():
    assert split_categories("") == []
    assert split_categories("sponsor, intro") == ["sponsor", " intro"]


def test_build_url():
    url = build_segments_url("abc", ["sponsor", " intro"])
    assert url == SPONSORBLOCK_API_URL + "abc&category=sponsor&category=intro"


def test_total_skipped_with_fake_fetch():
    body = json.dumps(SAMPLE).encode()
    seen = []

    def fetch(url):
        seen.append(url)
        return 200, body

    result = total_sponsor_time_skipped("vid", "sponsor", fetch)
    assert result == calculate_skipped_time(parse_segments(body))
    assert seen == [SPONSORBLOCK_API_URL + "vid&category=sponsor"]


def test_total_skipped_not_found():
    assert total_sponsor_time_skipped("vid", "", lambda url: (404, b"Not Found")) == 0.0


def test_total_skipped_bad_body():
    assert total_sponsor_time_skipped("vid", "", lambda url: (200, b"<html>")) == 0.0


def test_total_skipped_network_error():
    def fetch(url):
        raise OSError("unreachable")

    assert total_sponsor_time_skipped("vid", "", fetch) == 0.0


def test_needs_redownload():
    assert needs_redownload(None, 5.0, 1.0) is True
    assert needs_redownload(10.0, 10.5, 1.0) is False
    assert needs_redownload(10.0, 20.0, 1.0) is True