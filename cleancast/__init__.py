"""Podcast RSS feeds, episode filters, smart playlists and SponsorBlock skip-time accounting."""

__version__ = "0.1.0"