"""Building blocks of a podcast RSS feed: enclosures, images, categories and items."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

ENCLOSURE_DEFAULT = "application/octet-stream"
SUMMARY_LIMIT = 4000

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class EnclosureType(enum.Enum):
    """Kind of downloadable media attached to an item."""

    M4A = 0
    M4V = 1
    MP4 = 2
    MP3 = 3
    MOV = 4
    PDF = 5
    EPUB = 6

    def mime_type(self) -> str:
        """MIME type announced for this enclosure type."""
        return _MIME_TYPES.get(self, ENCLOSURE_DEFAULT)


_MIME_TYPES = {
    EnclosureType.M4A: "audio/mp4",
    EnclosureType.M4V: "video/x-m4v",
    EnclosureType.MP4: "video/mp4",
    EnclosureType.MP3: "audio/mpeg",
    EnclosureType.MOV: "video/quicktime",
    EnclosureType.PDF: "application/pdf",
    EnclosureType.EPUB: "document/x-epub",
}


def _is_zero(when: datetime) -> bool:
    return when.replace(tzinfo=None) == datetime.min


def format_rfc1123z(when: Optional[datetime] = None) -> str:
    """Format a time as ``Mon, 02 Jan 2006 15:04:05 -0700``.

    A missing or zero time means the current time in UTC; a naive time is
    taken as UTC.
    """
    if when is None or _is_zero(when):
        when = datetime.now(timezone.utc)
    offset = when.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    minutes = abs(minutes)
    return (
        f"{_DAYS[when.weekday()]}, {when.day:02d} {_MONTHS[when.month - 1]} "
        f"{when.year:04d} {when.hour:02d}:{when.minute:02d}:{when.second:02d} "
        f"{sign}{minutes // 60:02d}{minutes % 60:02d}"
    )


def format_author(name: str, email: str) -> str:
    """Render an author as ``email (name)``, or the bare e-mail without a name."""
    if name:
        return f"{email} ({name})"
    return email


@dataclass
class Enclosure:
    """A downloadable media file attached to an item."""

    url: str
    length: int = 0
    type: EnclosureType = EnclosureType.M4A
    length_formatted: str = ""
    type_formatted: str = ""


@dataclass
class Image:
    """Channel artwork."""

    url: str
    title: str = ""
    link: str = ""
    description: str = ""
    width: int = 0
    height: int = 0


@dataclass
class Author:
    """Feed owner for the iTunes owner tag."""

    name: str = ""
    email: str = ""


@dataclass
class ICategory:
    """A two-tier iTunes category."""

    text: str
    categories: list["ICategory"] = field(default_factory=list)


@dataclass
class TextInput:
    """An RSS text input box."""

    title: str = ""
    description: str = ""
    name: str = ""
    link: str = ""


@dataclass
class Item:
    """A single entry of a podcast feed."""

    title: str = ""
    description: str = ""
    link: str = ""
    guid: str = ""
    guid_is_permalink: bool = False
    author: str = ""
    author_formatted: str = ""
    category: str = ""
    comments: str = ""
    source: str = ""
    pub_date: Optional[datetime] = None
    pub_date_formatted: str = ""
    enclosure: Optional[Enclosure] = None
    i_author: str = ""
    i_subtitle: str = ""
    i_summary: Optional[str] = None
    i_duration: str = ""
    i_explicit: str = ""
    i_is_closed_captioned: str = ""
    i_order: str = ""

    def add_enclosure(self, url: str, enclosure_type: EnclosureType, length: int) -> None:
        """Attach the downloadable media file."""
        self.enclosure = Enclosure(url=url, type=enclosure_type, length=length)

    def add_pub_date(self, when: Optional[datetime]) -> None:
        """Set the publication date and its formatted form."""
        self.pub_date = when
        self.pub_date_formatted = format_rfc1123z(when)

    def add_summary(self, summary: str) -> None:
        """Set the iTunes summary, cut to 4000 characters."""
        self.i_summary = summary[:SUMMARY_LIMIT]