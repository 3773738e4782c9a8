"""Data model shared by the feed parser, fetcher, store and coordinator."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FeedSource:
    """A configured RSS endpoint. Enabled state lives in settings."""
    identifier: str
    name: str
    url: str


class RefreshInterval(Enum):
    """Auto refresh cadence in seconds. ``MANUAL`` disables the timer."""
    MANUAL = 0
    ONE_MINUTE = 60
    FIVE_MINUTES = 300
    FIFTEEN_MINUTES = 900
    THIRTY_MINUTES = 1800
    ONE_HOUR = 3600

    @property
    def display_name(self) -> str:
        return _INTERVAL_NAMES[self]

    @classmethod
    def default(cls) -> "RefreshInterval":
        return cls.FIVE_MINUTES

    @classmethod
    def from_seconds(cls, value: Any) -> "RefreshInterval":
        """Map a stored value back to an interval, falling back to the default."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.default()


_INTERVAL_NAMES = {
    RefreshInterval.MANUAL: "Manual",
    RefreshInterval.ONE_MINUTE: "1 minute",
    RefreshInterval.FIVE_MINUTES: "5 minutes",
    RefreshInterval.FIFTEEN_MINUTES: "15 minutes",
    RefreshInterval.THIRTY_MINUTES: "30 minutes",
    RefreshInterval.ONE_HOUR: "1 hour",
}


def _new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class NewsItem:
    """One article. Identity (equality, hashing, upsert) is ``id`` only.

    ``id`` is the article link when the feed supplies one, otherwise a fresh
    random token, so the same link-less article parsed twice yields two items.
    """
    title: str
    summary: str
    published_at: datetime
    source_identifier: str
    source_name: str
    link: Optional[str] = None
    image_url: Optional[str] = None
    is_read: bool = False
    id: str = field(default="")

    def __post_init__(self):
        if not self.id:
            self.id = self.link if self.link else _new_item_id()

    def __eq__(self, other):
        if not isinstance(other, NewsItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    @property
    def has_summary(self) -> bool:
        return bool(self.summary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "image_url": self.image_url,
            "link": self.link,
            "published_at": self.published_at.isoformat(),
            "source_identifier": self.source_identifier,
            "source_name": self.source_name,
            "is_read": self.is_read,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsItem":
        published = datetime.fromisoformat(data["published_at"])
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            title=data["title"],
            summary=data.get("summary", ""),
            image_url=data.get("image_url"),
            link=data.get("link"),
            published_at=published,
            source_identifier=data["source_identifier"],
            source_name=data.get("source_name", ""),
            is_read=bool(data.get("is_read", False)),
        )
