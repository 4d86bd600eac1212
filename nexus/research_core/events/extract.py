"""Heuristics for pulling event data out of scraped calendar pages.

Event pages share no schema across hosts, so each field is read by a small
ordered chain of independent rules. Every rule is a pure ``(text) -> value |
None`` function; the chains try them in order of specificity and the first
rule that produces a valid value wins. Nothing here raises on bad input.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Callable, NamedTuple
from urllib.parse import urljoin, urlparse

EVENT_HOSTS = ("lu.ma", "luma.com")

LINK_PATTERNS = (
    re.compile(r"https?://(?:www\.)?(?:lu\.ma|luma\.com)/[^\s\"')\]>]+", re.IGNORECASE),
    re.compile(r"(?:href|url)=[\"']([^\"']*(?:lu\.ma|luma\.com)[^\"']*)[\"']", re.IGNORECASE),
    re.compile(r"\]\((https?://(?:www\.)?(?:lu\.ma|luma\.com)[^)]+)\)", re.IGNORECASE),
)
TRAILING_JUNK_RE = re.compile(r"[)\]>'\"\s]+$")

ISO_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2})?(?:\.\d+)?Z?")
LONG_DATE_RE = re.compile(
    r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)([a-z]*)\s+(\d{1,2}),?\s+(\d{4})",
    re.IGNORECASE,
)
SHORT_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
DESCRIPTION_RE = re.compile(r"(?:description|about|details?)[:\s]*\n?([^\n]{20,500})", re.IGNORECASE)
HEADING_MARKER_RE = re.compile(r"^#+\s*")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
MONTH_NAMES = {
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "sept", "october", "november", "december",
}


class ParsedDate(NamedTuple):
    date: str | None
    start_at: str | None


NO_DATE = ParsedDate(None, None)


# --- URLs ---


def is_event_host(host: str) -> bool:
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return any(host == d or host.endswith(f".{d}") for d in EVENT_HOSTS)


def is_event_host_url(link: str) -> bool:
    """Any URL on an event host (calendar, profile or event page)."""
    try:
        parsed = urlparse(link)
    except ValueError:
        return False
    return bool(parsed.scheme in ("http", "https") and parsed.hostname and is_event_host(parsed.hostname))


def has_path_segment(link: str) -> bool:
    try:
        path = urlparse(link).path.rstrip("/")
    except ValueError:
        return False
    return len(path) > 1


def is_event_page_url(link: str) -> bool:
    """An event-host URL that points below the bare domain."""
    return is_event_host_url(link) and has_path_segment(link)


def extract_event_links(content: str, base_url: str) -> list[str]:
    """Sub-event links found in page text, normalized and de-duplicated.

    Runs three independent passes (bare URLs, ``href=``/``url=`` attributes,
    markdown link targets) and resolves each hit against ``base_url``.
    """
    try:
        base = urlparse(base_url)
    except ValueError:
        return []
    if not base.scheme or not base.netloc:
        return []

    found: dict[str, None] = {}
    for pattern in LINK_PATTERNS:
        for match in pattern.finditer(content):
            raw = match.group(1) if match.groups() else match.group(0)
            raw = TRAILING_JUNK_RE.sub("", raw)
            try:
                resolved = urljoin(base_url, raw)
            except ValueError:
                continue
            if not is_event_page_url(resolved):
                continue
            found.setdefault(resolved.rstrip("/").lower(), None)
    return list(found)


def slug_from_url(link: str) -> str | None:
    try:
        segments = [s for s in urlparse(link).path.split("/") if s]
    except ValueError:
        return None
    return segments[-1] if segments else None


# --- Dates ---


def to_iso_z(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def match_iso_timestamp(text: str) -> datetime | None:
    match = ISO_TIMESTAMP_RE.search(text)
    if not match:
        return None
    raw = match.group(0)
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


def match_long_date(text: str) -> datetime | None:
    match = LONG_DATE_RE.search(text)
    if not match:
        return None
    prefix, rest, day, year = match.groups()
    word = (prefix + rest).lower()
    if rest and word not in MONTH_NAMES:
        return None
    try:
        return datetime(int(year), MONTHS[prefix.lower()], int(day), tzinfo=timezone.utc)
    except ValueError:
        return None


def match_short_date(text: str) -> datetime | None:
    match = SHORT_DATE_RE.search(text)
    if not match:
        return None
    try:
        day = date.fromisoformat(match.group(0))
    except ValueError:
        return None
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


DATE_RULES: tuple[Callable[[str], datetime | None], ...] = (
    match_iso_timestamp,
    match_long_date,
    match_short_date,
)


def parse_event_moment(content: str, accept: Callable[[datetime], bool] | None = None) -> datetime | None:
    """First rule candidate that ``accept`` allows; a rejected candidate falls through."""
    for rule in DATE_RULES:
        moment = rule(content)
        if moment is not None and (accept is None or accept(moment)):
            return moment
    return None


def parse_event_date(content: str, accept: Callable[[datetime], bool] | None = None) -> ParsedDate:
    """``(YYYY-MM-DD, ISO startAt)`` for the first date rule that matches."""
    moment = parse_event_moment(content, accept)
    if moment is None:
        return NO_DATE
    return ParsedDate(moment.date().isoformat(), to_iso_z(moment))


def parse_iso(start_at: str) -> datetime | None:
    try:
        return _as_utc(datetime.fromisoformat(start_at.replace("Z", "+00:00")))
    except ValueError:
        return None


def one_year_before(moment: datetime) -> datetime:
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        # Feb 29
        return moment.replace(year=moment.year - 1, day=28)


def in_trailing_year(moment: datetime, now: datetime) -> bool:
    return one_year_before(now) <= moment <= now


def parse_recent_event_date(content: str, now: datetime) -> ParsedDate | None:
    """Date of the first rule candidate inside the trailing year.

    ``NO_DATE`` when the page has no date at all, ``None`` when every
    candidate lies outside the window.
    """
    parsed = parse_event_date(content, lambda moment: in_trailing_year(moment, now))
    if parsed.start_at is None and parse_event_moment(content) is not None:
        return None
    return parsed


# --- Text fields ---


def extract_title(content: str, fallback: str) -> str:
    for line in content.split("\n"):
        if not line.strip():
            continue
        cleaned = HEADING_MARKER_RE.sub("", line).strip()
        if 2 < len(cleaned) < 200:
            return cleaned
        break
    return fallback


def extract_description(content: str) -> str | None:
    match = DESCRIPTION_RE.search(content)
    return match.group(1).strip() if match else None


def slug_from_name(name: str) -> str:
    slug = re.sub(r"\s+", "", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def placeholder_title(url: str) -> str:
    """Readable title for a calendar URL we could not scrape."""
    segments = [s for s in url.rstrip("/").split("/") if s]
    segment = segments[-1] if segments else "Event"
    title = re.sub(r"^[a-z]+\.", "", segment).replace("-", " ")
    return title if len(title) > 2 else url
