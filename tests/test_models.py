"""
Tests for the news data model.
"""
from datetime import datetime, timedelta, timezone

import pytest

from sources.rss.models import FeedSource, NewsItem, RefreshInterval

WHEN = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_item(**kwargs):
    defaults = dict(
        title="Title",
        summary="Summary",
        published_at=WHEN,
        source_identifier="a",
        source_name="Source A",
    )
    defaults.update(kwargs)
    return NewsItem(**defaults)


class TestNewsItemIdentity:
    def test_id_is_link(self):
        assert make_item(link="https://a/1").id == "https://a/1"

    def test_linkless_items_get_distinct_ids(self):
        first, second = make_item(), make_item()
        assert first.id and second.id
        assert first.id != second.id
        assert first != second

    def test_equality_by_id_only(self):
        a = make_item(link="https://a/1", title="one")
        b = make_item(link="https://a/1", title="two", is_read=True)
        assert a == b
        assert len({a, b}) == 1

    def test_explicit_id_kept(self):
        assert make_item(id="fixed", link="https://a/1").id == "fixed"

    def test_flags(self):
        item = make_item(summary="", image_url="https://img/x.jpg")
        assert item.has_image
        assert not item.has_summary


class TestSerialization:
    def test_to_dict_from_dict(self):
        item = make_item(link="https://a/1", image_url="https://img/x.jpg", is_read=True)
        restored = NewsItem.from_dict(item.to_dict())
        assert restored.id == item.id
        assert restored.published_at == WHEN
        assert restored.is_read is True
        assert restored.image_url == item.image_url

    def test_offset_timestamp_preserved_as_instant(self):
        data = make_item(link="https://a/1").to_dict()
        data["published_at"] = "2024-03-01T12:30:00+03:00"
        assert NewsItem.from_dict(data).published_at == WHEN

    def test_naive_timestamp_is_utc(self):
        data = make_item(link="https://a/1").to_dict()
        data["published_at"] = "2024-03-01T09:30:00"
        assert NewsItem.from_dict(data).published_at == WHEN


class TestRefreshInterval:
    def test_default(self):
        assert RefreshInterval.default() is RefreshInterval.FIVE_MINUTES

    @pytest.mark.parametrize("raw,expected", [
        (0, RefreshInterval.MANUAL),
        ("900", RefreshInterval.FIFTEEN_MINUTES),
        (3600, RefreshInterval.ONE_HOUR),
        (None, RefreshInterval.FIVE_MINUTES),
        ("soon", RefreshInterval.FIVE_MINUTES),
        (7, RefreshInterval.FIVE_MINUTES),
    ])
    def test_from_seconds(self, raw, expected):
        assert RefreshInterval.from_seconds(raw) is expected

    def test_display_names(self):
        assert RefreshInterval.MANUAL.display_name == "Manual"
        assert RefreshInterval.ONE_HOUR.display_name == "1 hour"


class TestFeedSource:
    def test_frozen(self):
        source = FeedSource("a", "A", "https://a/rss")
        with pytest.raises(AttributeError):
            source.url = "https://b/rss"
