"""
Publication date normalisation for RSS feeds.

``parse_rss_date`` never fails: it tries a fixed list of formats in order
and falls back to "now" (from an injectable clock) when none matches. All
results are timezone-aware and normalised to UTC.

Each format is a regex gate; only text that passes a gate is handed to
``dateutil.parser``. Month and weekday names in the gates are English
literals, and dateutil's default parserinfo is English too, so parsing does
not depend on the process locale.
"""
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil import tz

from core.logging.logger import get_logger, is_verbose_logging

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# RFC-822 zone names plus the handful of abbreviations feeds actually send.
_ZONE_OFFSETS_HOURS = {
    "GMT": 0, "UT": 0, "UTC": 0, "Z": 0,
    "EST": -5, "EDT": -4,
    "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6,
    "PST": -8, "PDT": -7,
    "MSK": 3,
}

_WEEKDAY = r"(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun),\s*"
_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_DAY_MONTH_YEAR = r"\d{1,2}\s+" + _MONTH + r"\s+\d{4}\s+"
_TIME = r"\d{2}:\d{2}:\d{2}"
_NUMERIC_OFFSET = r"[+-]\d{2}:?\d{2}"
_ISO_DATE_TIME = r"\d{4}-\d{2}-\d{2}T" + _TIME
_ISO_OFFSET = r"(?:Z|[+-]\d{2}:?\d{2})"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _named_zone(name: str) -> tzinfo:
    hours = _ZONE_OFFSETS_HOURS.get(name.upper())
    if hours is not None:
        return timezone(timedelta(hours=hours))
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"unknown zone {name!r}")
    return zone


def _with_offset(text: str, match: "re.Match") -> datetime:
    return date_parser.parse(text)


def _with_zone_name(text: str, match: "re.Match") -> datetime:
    # dateutil splits "Europe/Moscow" into tokens, so the zone is resolved
    # separately and attached to the naive local time.
    local = date_parser.parse(text[:match.start("zone")], ignoretz=True)
    return local.replace(tzinfo=_named_zone(match.group("zone")))


_FORMATS: List[Tuple[str, "re.Pattern", Callable[[str, "re.Match"], datetime]]] = [
    (
        "EEE, dd MMM yyyy HH:mm:ss Z",
        re.compile(_WEEKDAY + _DAY_MONTH_YEAR + _TIME + r"\s+" + _NUMERIC_OFFSET, re.IGNORECASE),
        _with_offset,
    ),
    (
        "EEE, dd MMM yyyy HH:mm:ss zzz",
        re.compile(
            _WEEKDAY + _DAY_MONTH_YEAR + _TIME + r"\s+(?P<zone>[A-Za-z][A-Za-z0-9_/+\-]*)",
            re.IGNORECASE,
        ),
        _with_zone_name,
    ),
    (
        "yyyy-MM-ddTHH:mm:ssZ",
        re.compile(_ISO_DATE_TIME + _ISO_OFFSET),
        _with_offset,
    ),
    (
        "yyyy-MM-ddTHH:mm:ss.SSSZ",
        re.compile(_ISO_DATE_TIME + r"\.\d{1,9}" + _ISO_OFFSET),
        _with_offset,
    ),
    (
        "dd MMM yyyy HH:mm:ss Z",
        re.compile(_DAY_MONTH_YEAR + _TIME + r"\s+" + _NUMERIC_OFFSET, re.IGNORECASE),
        _with_offset,
    ),
]


def try_parse_rss_date(text: Optional[str]) -> Optional[datetime]:
    """Parse ``text`` with the first matching format, or return None."""
    if not text:
        return None
    candidate = text.strip()
    for pattern_name, regex, build in _FORMATS:
        match = regex.fullmatch(candidate)
        if match is None:
            continue
        try:
            return build(candidate, match).astimezone(timezone.utc)
        except (ValueError, OverflowError) as e:
            # Out-of-range fields, bad offsets, or instants outside datetime's range.
            if is_verbose_logging():
                logger.debug("[RSS_DATES] %r matched %s but was rejected: %s", candidate, pattern_name, e)
    return None


def parse_rss_date(text: Optional[str], clock: Optional[Clock] = None) -> datetime:
    """Parse an RSS publication date, falling back to ``clock()``.

    Args:
        text: Raw ``pubDate`` text (surrounding whitespace is ignored).
        clock: Returns the fallback time; defaults to the current UTC time.
    """
    parsed = try_parse_rss_date(text)
    if parsed is not None:
        return parsed
    if text and text.strip():
        logger.debug("[RSS_DATES] Unrecognised date %r, using current time", text)
    return (clock or _utc_now)()
