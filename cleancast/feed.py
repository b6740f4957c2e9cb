"""A podcast channel and its RSS 2.0 encoding with iTunes tags."""

from __future__ import annotations

import dataclasses
import io
from dataclasses import InitVar, dataclass, field
from datetime import datetime
from typing import BinaryIO, Optional

from cleancast.feeditems import (
    ENCLOSURE_DEFAULT,
    SUMMARY_LIMIT,
    Author,
    EnclosureType,
    ICategory,
    Image,
    Item,
    TextInput,
    format_author,
    format_rfc1123z,
)

VERSION = "1.3.1"
GENERATOR = f"cleancast feed generator v{VERSION}"
XML_HEADER = "<?xml version='1.0' encoding=\"UTF-8\"?>\n"
RSS_VERSION = "2.0"
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ATOM_NS = "http://www.w3.org/2005/Atom"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
SUBTITLE_LIMIT = 64
INDENT = "  "

_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


def _is_xml_char(char: str) -> bool:
    code = ord(char)
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _escape(text: str) -> str:
    return "".join(
        _ESCAPES.get(c) or (c if _is_xml_char(c) else "\ufffd") for c in text
    )


def _cdata(text: str) -> str:
    if not text:
        return ""
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


class ItemError(ValueError):
    """An item lacks a field the feed requires."""

    def __init__(self, message: str, count: int) -> None:
        super().__init__(message)
        self.count = count


@dataclass
class _Node:
    tag: str
    text: str = ""
    attrs: tuple = ()
    children: list = field(default_factory=list)
    cdata: bool = False

    def render(self, depth: int, lines: list[str]) -> None:
        pad = INDENT * depth
        attrs = "".join(f' {name}="{_escape(value)}"' for name, value in self.attrs)
        if self.children:
            lines.append(f"{pad}<{self.tag}{attrs}>")
            for child in self.children:
                child.render(depth + 1, lines)
            lines.append(f"{pad}</{self.tag}>")
            return
        body = _cdata(self.text) if self.cdata else _escape(self.text)
        lines.append(f"{pad}<{self.tag}{attrs}>{body}</{self.tag}>")


def _add_optional(nodes: list[_Node], tag: str, value: str) -> None:
    if value:
        nodes.append(_Node(tag, value))


def _category_node(category: ICategory) -> _Node:
    return _Node(
        "itunes:category",
        attrs=(("text", category.text),),
        children=[_category_node(sub) for sub in category.categories],
    )


def _summary_node(summary: str) -> _Node:
    return _Node("itunes:summary", summary, cdata=True)


def _item_node(item: Item) -> _Node:
    nodes = [
        _Node(
            "guid",
            item.guid,
            attrs=(("isPermaLink", "true" if item.guid_is_permalink else "false"),),
        ),
        _Node("title", item.title),
    ]
    _add_optional(nodes, "link", item.link)
    nodes.append(_Node("description", item.description))
    for tag, value in (
        ("author", item.author),
        ("authorFormatted", item.author_formatted),
        ("category", item.category),
        ("comments", item.comments),
        ("source", item.source),
        ("pubDate", item.pub_date_formatted),
    ):
        _add_optional(nodes, tag, value)
    if item.enclosure is not None:
        enclosure = item.enclosure
        nodes.append(
            _Node(
                "enclosure",
                attrs=(
                    ("url", enclosure.url),
                    ("length", enclosure.length_formatted),
                    ("type", enclosure.type_formatted),
                ),
            )
        )
    _add_optional(nodes, "itunes:author", item.i_author)
    _add_optional(nodes, "itunes:subtitle", item.i_subtitle)
    if item.i_summary is not None:
        nodes.append(_summary_node(item.i_summary))
    for tag, value in (
        ("itunes:duration", item.i_duration),
        ("itunes:explicit", item.i_explicit),
        ("itunes:isClosedCaptioned", item.i_is_closed_captioned),
        ("itunes:order", item.i_order),
    ):
        _add_optional(nodes, tag, value)
    return _Node("item", children=nodes)


def _image_node(image: Image) -> _Node:
    nodes = [_Node("url", image.url), _Node("title", image.title), _Node("link", image.link)]
    _add_optional(nodes, "description", image.description)
    if image.width:
        nodes.append(_Node("width", str(image.width)))
    if image.height:
        nodes.append(_Node("height", str(image.height)))
    return _Node("image", children=nodes)


def _text_input_node(text_input: TextInput) -> _Node:
    return _Node(
        "textInput",
        children=[
            _Node("title", text_input.title),
            _Node("description", text_input.description),
            _Node("name", text_input.name),
            _Node("link", text_input.link),
        ],
    )


@dataclass
class Podcast:
    """A podcast channel that renders itself as an RSS 2.0 document."""

    title: str
    link: str
    description: str
    build_time: InitVar[Optional[datetime]] = None
    category: str = ""
    cloud: str = ""
    copyright: str = ""
    docs: str = ""
    generator: str = GENERATOR
    language: str = ""
    last_build_date: str = ""
    managing_editor: str = ""
    pub_date: str = ""
    rating: str = ""
    skip_hours: str = ""
    skip_days: str = ""
    ttl: int = 0
    web_master: str = ""
    image: Optional[Image] = None
    text_input: Optional[TextInput] = None
    i_author: str = ""
    i_subtitle: str = ""
    i_summary: Optional[str] = None
    i_block: str = ""
    i_duration: str = ""
    i_explicit: str = ""
    i_complete: str = ""
    i_new_feed_url: str = ""
    i_owner: Optional[Author] = None
    i_categories: list[ICategory] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)

    def __post_init__(self, build_time: Optional[datetime]) -> None:
        if not self.last_build_date:
            self.last_build_date = format_rfc1123z(build_time)

    def add_author(self, name: str, email: str) -> None:
        """Set the managing editor and iTunes author; ignored without an e-mail."""
        if not email:
            return
        self.managing_editor = format_author(name, email)
        self.i_author = self.managing_editor

    def add_category(self, category: str, sub_categories: list[str]) -> None:
        """Append a category and its non-empty sub-categories."""
        if not category:
            return
        self.category = f"{self.category},{category}" if self.category else category
        self.i_categories.append(
            ICategory(text=category, categories=[ICategory(text=s) for s in sub_categories if s])
        )

    def add_image(self, url: str) -> None:
        """Set the channel artwork; ignored for an empty URL."""
        if not url:
            return
        self.image = Image(url=url, title=self.title, link=self.link)

    def add_item(self, item: Item) -> int:
        """Validate and append an item, returning the number of items.

        Raises ItemError when a required field is missing.
        """
        count = len(self.items)
        if not item.title or not item.description:
            raise ItemError("Title and Description are required", count)
        if item.enclosure is not None:
            if not item.enclosure.url:
                raise ItemError(f"{item.title}: Enclosure.URL is required", count)
            enclosure_type = item.enclosure.type
            if (
                not isinstance(enclosure_type, EnclosureType)
                or enclosure_type.mime_type() == ENCLOSURE_DEFAULT
            ):
                raise ItemError(f"{item.title}: Enclosure.Type is required", count)
        elif not item.link:
            raise ItemError(f"{item.title}: Link is required when not using Enclosure", count)

        entry = dataclasses.replace(item)
        entry.pub_date_formatted = format_rfc1123z(entry.pub_date)
        if entry.enclosure is not None:
            enclosure = dataclasses.replace(entry.enclosure)
            enclosure.length = max(enclosure.length, 0)
            enclosure.length_formatted = str(enclosure.length)
            enclosure.type_formatted = enclosure.type.mime_type()
            entry.enclosure = enclosure
        if not entry.i_author and entry.author:
            entry.i_author = entry.author

        self.items.append(entry)
        return len(self.items)

    def add_pub_date(self, when: Optional[datetime]) -> None:
        """Set the channel publication date."""
        self.pub_date = format_rfc1123z(when)

    def add_last_build_date(self, when: Optional[datetime]) -> None:
        """Set the channel's last build date."""
        self.last_build_date = format_rfc1123z(when)

    def add_subtitle(self, subtitle: str) -> None:
        """Set the iTunes subtitle, shortened to 64 characters with '...'."""
        if not subtitle:
            return
        if len(subtitle) > SUBTITLE_LIMIT:
            subtitle = subtitle[: SUBTITLE_LIMIT - 3] + "..."
        self.i_subtitle = subtitle

    def add_summary(self, summary: str) -> None:
        """Set the iTunes summary, cut to 4000 characters."""
        if not summary:
            return
        self.i_summary = summary[:SUMMARY_LIMIT]

    def _channel_node(self) -> _Node:
        nodes = [
            _Node("title", self.title),
            _Node("link", self.link),
            _Node("description", self.description),
        ]
        for tag, value in (
            ("category", self.category),
            ("cloud", self.cloud),
            ("copyright", self.copyright),
            ("docs", self.docs),
            ("generator", self.generator),
            ("language", self.language),
            ("lastBuildDate", self.last_build_date),
            ("managingEditor", self.managing_editor),
            ("pubDate", self.pub_date),
            ("rating", self.rating),
            ("skipHours", self.skip_hours),
            ("skipDays", self.skip_days),
        ):
            _add_optional(nodes, tag, value)
        if self.ttl:
            nodes.append(_Node("ttl", str(self.ttl)))
        _add_optional(nodes, "webMaster", self.web_master)
        if self.image is not None:
            nodes.append(_image_node(self.image))
        if self.text_input is not None:
            nodes.append(_text_input_node(self.text_input))
        _add_optional(nodes, "itunes:author", self.i_author)
        _add_optional(nodes, "itunes:subtitle", self.i_subtitle)
        if self.i_summary is not None:
            nodes.append(_summary_node(self.i_summary))
        for tag, value in (
            ("itunes:block", self.i_block),
            ("itunes:duration", self.i_duration),
            ("itunes:explicit", self.i_explicit),
            ("itunes:complete", self.i_complete),
            ("itunes:new-feed-url", self.i_new_feed_url),
        ):
            _add_optional(nodes, tag, value)
        if self.i_owner is not None:
            nodes.append(
                _Node(
                    "itunes:owner",
                    children=[
                        _Node("itunes:name", self.i_owner.name),
                        _Node("itunes:email", self.i_owner.email),
                    ],
                )
            )
        nodes.extend(_category_node(c) for c in self.i_categories)
        nodes.extend(_item_node(i) for i in self.items)
        return _Node("channel", children=nodes)

    def _document(self) -> str:
        root = _Node(
            "rss",
            attrs=(
                ("version", RSS_VERSION),
                ("xmlns:atom", ATOM_NS),
                ("xmlns:itunes", ITUNES_NS),
                ("xmlns:content", CONTENT_NS),
            ),
            children=[self._channel_node()],
        )
        lines: list[str] = []
        root.render(0, lines)
        return XML_HEADER + "\n".join(lines)

    def encode(self, stream: BinaryIO) -> None:
        """Write the RSS document as UTF-8 to a binary stream."""
        stream.write(self._document().encode("utf-8"))

    def to_bytes(self) -> bytes:
        """The RSS document as UTF-8 bytes."""
        buffer = io.BytesIO()
        self.encode(buffer)
        return buffer.getvalue()

    def __str__(self) -> str:
        return self._document()