"""
RSSParser - turns raw RSS 2.0 bytes into NewsItem objects.

Responsibilities:
    - Drive an explicit item state machine from XML events
    - Normalise titles, summaries, links, dates and image URLs
    - No network I/O - receives raw response data from HttpDownloader
    - Never raises: malformed XML keeps whatever items completed before the
      error point
"""
import re
import xml.sax
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from xml.sax.handler import ContentHandler

from core.logging.logger import get_logger, is_verbose_logging
from sources.rss.dates import Clock, parse_rss_date
from sources.rss.models import FeedSource, NewsItem

logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)

# Applied in order; anything else stays encoded.
_ENTITY_REPLACEMENTS = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

_TEXT_FIELDS = ("title", "description", "link", "pubDate")

Event = Tuple[Any, ...]


def strip_html(html: str) -> str:
    """Best-effort tag removal plus a small fixed set of entity decodes."""
    text = _TAG_RE.sub("", html)
    for entity, replacement in _ENTITY_REPLACEMENTS:
        text = text.replace(entity, replacement)
    return text.strip()


def extract_image_url(html: str) -> Optional[str]:
    """First ``<img src="...">`` in an HTML fragment."""
    match = _IMG_SRC_RE.search(html)
    return match.group(1) if match else None


class ParserState(Enum):
    IDLE = "idle"
    IN_ITEM = "in_item"


class FeedStateMachine:
    """Accumulates one ``<item>`` at a time from start/characters/end events.

    The machine is independent of the XML library: ``_SaxEventAdapter``
    feeds it from ``xml.sax`` and tests can feed it synthetic events through
    ``feed()``.
    """

    def __init__(self, source: FeedSource, clock: Optional[Clock] = None):
        self.source = source
        self._clock = clock
        self.state = ParserState.IDLE
        self.items: List[NewsItem] = []
        self._open_elements: List[str] = []
        self._buffers = {name: [] for name in _TEXT_FIELDS}
        self._image_url = ""

    def _reset_item(self) -> None:
        for buffer in self._buffers.values():
            buffer.clear()
        self._image_url = ""

    def start_element(self, name: str, attrs: Mapping[str, str]) -> None:
        self._open_elements.append(name)

        if name == "item":
            # A nested <item> restarts accumulation; the outer one is lost.
            self.state = ParserState.IN_ITEM
            self._reset_item()
            return

        if self.state is not ParserState.IN_ITEM:
            return

        url = attrs.get("url")
        if name == "enclosure":
            if url and (attrs.get("type") or "").startswith("image"):
                self._image_url = url
        elif "media" in name and "content" in name:
            if url and not self._image_url:
                self._image_url = url

    def characters(self, text: str) -> None:
        if self.state is not ParserState.IN_ITEM or not self._open_elements:
            return
        buffer = self._buffers.get(self._open_elements[-1])
        if buffer is not None:
            buffer.append(text)

    def end_element(self, name: str) -> None:
        if self._open_elements:
            self._open_elements.pop()
        if name != "item" or self.state is not ParserState.IN_ITEM:
            return
        self.state = ParserState.IDLE
        item = self._finalize_item()
        if item is not None:
            self.items.append(item)

    def feed(self, events: Iterable[Event]) -> List[NewsItem]:
        """Replay ``("start", name, attrs)``, ``("text", data)`` and
        ``("end", name)`` tuples and return the items collected so far."""
        for event in events:
            kind = event[0]
            if kind == "start":
                self.start_element(event[1], event[2] if len(event) > 2 else {})
            elif kind == "text":
                self.characters(event[1])
            elif kind == "end":
                self.end_element(event[1])
            else:
                raise ValueError(f"Unknown parser event {kind!r}")
        return self.items

    def _finalize_item(self) -> Optional[NewsItem]:
        raw_description = "".join(self._buffers["description"])
        title = "".join(self._buffers["title"]).strip()
        link = "".join(self._buffers["link"]).strip()
        pub_date = "".join(self._buffers["pubDate"]).strip()

        image_url = self._image_url.strip()
        if not image_url:
            image_url = extract_image_url(raw_description) or ""

        if not title:
            if is_verbose_logging():
                logger.debug("[RSS_PARSER] Dropping untitled item from %s", self.source.identifier)
            return None

        return NewsItem(
            title=title,
            summary=strip_html(raw_description.strip()),
            image_url=image_url or None,
            link=link or None,
            published_at=parse_rss_date(pub_date, clock=self._clock),
            source_identifier=self.source.identifier,
            source_name=self.source.name,
        )


class _SaxEventAdapter(ContentHandler):
    """Forwards ``xml.sax`` callbacks to a FeedStateMachine.

    Namespace processing stays off, so element names arrive qualified
    (``media:content``) exactly as written in the feed.
    """

    def __init__(self, machine: FeedStateMachine):
        super().__init__()
        self._machine = machine

    def startElement(self, name, attrs):
        self._machine.start_element(name, attrs)

    def characters(self, content):
        self._machine.characters(content)

    def endElement(self, name):
        self._machine.end_element(name)


class RSSParser:
    """Stateless feed parser; each ``parse`` call builds a fresh state machine."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock

    def parse(self, raw: Union[bytes, str], source: FeedSource) -> List[NewsItem]:
        machine = FeedStateMachine(source, clock=self._clock)
        handler = _SaxEventAdapter(machine)
        try:
            xml.sax.parseString(raw, handler)
        except xml.sax.SAXException as e:
            logger.warning(
                "[RSS_PARSER] Malformed feed from %s, kept %d items: %s",
                source.identifier, len(machine.items), e,
            )
        except Exception as e:
            # Item construction failed mid-stream; completed items stand.
            logger.exception(
                "[RSS_PARSER] Feed from %s aborted after %d items: %s",
                source.identifier, len(machine.items), e,
            )
        logger.info("[RSS_PARSER] Feed '%s': %d items", source.name, len(machine.items))
        return machine.items
