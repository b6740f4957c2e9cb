# cleancast

Building blocks for serving YouTube videos as podcast episodes: an RSS 2.0
feed encoder with iTunes tags, episode filters, rule-based smart playlists,
and SponsorBlock skip-time accounting.

## Modules

- `cleancast.models`: the `Episode` and `Podcast` records the other modules
  work on. `Podcast.with_episodes` returns a copy holding a new episode list.
- `cleancast.common`: helpers for durations (`parse_go_duration` for values
  like `"1h30m"`, `parse_iso_duration` for YouTube's `"PT1H2M3S"`), identifier
  checks (`is_valid_id`, `is_valid_filename`, `is_valid_param`), YouTube date
  parsing (`parse_youtube_date`, `parse_youtube_date_or_default`,
  `parse_youtube_date_strict`), `select_best_thumbnail`,
  `is_playlist_item_available`, and minimum-duration checks
  (`get_min_duration`, `validate_episode_duration`, `is_episode_valid`,
  `validate_video_duration`).
- `cleancast.retry`: `retry_with_backoff` calls a function until it succeeds,
  waiting longer after each failure. It raises `RetryError` when every attempt
  fails, and `RetryCancelled` when the optional `threading.Event` is set during
  a wait. The delays come from `RetryConfig`, `default_retry_config`,
  `download_retry_config` and `api_retry_config`, and are computed by
  `calculate_delay`.
- `cleancast.sponsorblock`: `parse_segments` decodes a skipSegments response
  and `calculate_skipped_time` adds up the skipped seconds, counting overlapping
  segments once. `total_sponsor_time_skipped` queries the SponsorBlock API over
  HTTP and returns 0 when the lookup fails; you can pass your own `fetch`
  callable instead. `needs_redownload` compares an old skipped time with a new
  one against a threshold.
- `cleancast.filter`: `FilterService` blocks or allows episodes using
  `keyword`, `regex`, `video_id` and `duration` filters. A matching allow filter
  wins over a block filter. `validate_filter` raises `FilterError` for an
  unusable definition, and `apply_feed_preferences` drops episodes outside a
  feed's duration bounds.
- `cleancast.feeditems` and `cleancast.feed`: an RSS 2.0 document with iTunes
  tags. `feed.Podcast` has `add_item`, which validates an item and raises
  `ItemError` if it is missing a required field, along with `add_author`,
  `add_category`, `add_image`, `add_subtitle`, `add_summary`, `add_pub_date`,
  `add_last_build_date`, `encode` and `to_bytes`.
- `cleancast.smartplaylist`: a `SmartPlaylist` holds `Rule`s on duration,
  publish date, title or keyword, description or channel id, combined with
  `AND` or `OR`. It provides `create_smart_playlist`, `encode_rules` and
  `decode_rules` (JSON), `matches_rule`, `matches_rules`, `select_episodes`, and
  `generate_smart_playlist_rss`.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
from cleancast.sponsorblock import Segment, calculate_skipped_time

segments = [Segment(start=0.0, end=10.0), Segment(start=5.0, end=20.0)]
print(calculate_skipped_time(segments))  # 20.0
```

```python
from cleancast.feed import Podcast
from cleancast.feeditems import Enclosure, EnclosureType, Item

feed = Podcast("My show", "https://example.com/show", "A show")
feed.add_item(
    Item(
        title="Episode 1",
        description="First episode",
        guid="abc123",
        enclosure=Enclosure(url="https://example.com/media/abc123.m4a", type=EnclosureType.M4A),
    )
)
print(feed.to_bytes().decode("utf-8"))
```

## What it does not do

This is a library, not a service. It has no command, no HTTP server and no
storage. It does not call the YouTube Data API and does not download or convert
audio. Podcast and episode records, filters and smart playlists are built and
kept by the calling code. Apart from the SponsorBlock lookup, nothing here goes
over the network.