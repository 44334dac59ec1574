"""
Dst (disturbance storm time) index text parser.

Canonical: [CS-002] Kyoto WDC for Geomagnetism: Dst index format

The Dst index is published hourly in several loosely related text layouts.
parse_dst_text() accepts all of them in one pass, line by line:

- ``timestamp,value`` CSV lines
- Kyoto ``DSTyymm*dd`` day records (base value, 24 hourly values, mean)
- ``YYYY MM DD`` followed by 24 hourly values
- ``YYYY MM DD HH V`` single-hour rows
- ``DD`` followed by 24 values, within the month named elsewhere in the text
- bare rows of 24 values, one per consecutive day
- ``YYYY MM`` headers that set the month for the two layouts above

For On-Call Engineers:
    Values with |v| >= 9999 are "no data" fillers and are dropped, as are
    timestamps in the future. An empty result means no layout matched;
    the DEBUG log line carries the first lines of the text.

For Developers:
    Kyoto records label hour slot h (0-based) as the hour ending at h+1
    UTC, so the 24th value of a day lands on 00:00 of the next day. The
    other layouts use the hour as written.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from src.lib.logging_utils import sanitize_for_log
from src.lib.timeseries.models import (
    NO_DATA_SENTINEL,
    Point,
    PointSeries,
    is_no_data,
    iso_from_ms,
    to_epoch_ms,
    to_finite_float,
)

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24

_MONTH_NAMES = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)

_YEAR_MONTH_PATTERN = re.compile(r"\b((?:19|20)\d{2})\s+([01]?\d)\b")
_YEAR_MONTH_NAME_PATTERN = re.compile(
    r"\b((?:19|20)\d{2})\b[\s\S]{0,40}?\b(" + "|".join(_MONTH_NAMES) + r")\b",
    re.IGNORECASE,
)
_KYOTO_HEADER_PATTERNS = (
    re.compile(
        r"^DST\s*(\d{2})(\d{2})\*(\d{2})\s*[A-Z]{3}\s*\d{3}\s+(.+)$", re.IGNORECASE
    ),
    re.compile(
        r"^DST\s*(\d{2})(\d{2})\*(\d{2})\s*[A-Z0-9\s]{2,10}\s+(.+)$", re.IGNORECASE
    ),
)
_HOURLY_ROW_PATTERN = re.compile(r"^\d{4}\s+\d{1,2}\s+\d{1,2}\s+\d{1,2}\b")
_GLUED_SIGN_PATTERN = re.compile(r"(?<=\d)([+-])")
_INTEGER_PATTERN = re.compile(r"-?\d+")
_NUMBER_TOKEN_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")
_TRAILING_JUNK_PATTERN = re.compile(r"[^0-9+\-\s].*$")
_SEPARATOR_PATTERN = re.compile(r"[;\t]+")
_SPACED_COMMA_PATTERN = re.compile(r"\s,\s")


@dataclass(frozen=True)
class KyotoHeader:
    """Date and value tail of one Kyoto ``DSTyymm*dd`` record."""

    year: int
    month: int
    day: int
    tail: str


def deglue_signs(text: str) -> str:
    """Split numbers glued by their sign, e.g. "-10-20" -> "-10 -20"."""
    return _GLUED_SIGN_PATTERN.sub(r" \1", text)


def infer_year_month(text: str, now: datetime | None = None) -> tuple[int, int]:
    """
    Guess the (year, month) a Dst listing covers.

    Looks for "YYYY MM", then for a year followed closely by a month name,
    and falls back to the current UTC month.
    """
    match = _YEAR_MONTH_PATTERN.search(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            return year, month

    match = _YEAR_MONTH_NAME_PATTERN.search(text)
    if match:
        return int(match.group(1)), _MONTH_NAMES.index(match.group(2).lower()) + 1

    now = now or datetime.now(UTC)
    return now.year, now.month


def parse_kyoto_header(line: str) -> KyotoHeader | None:
    """
    Parse a Kyoto day record header.

    Accepts both "DST 2511*05 RRX 020 ..." and the packed
    "DST2511*05RRX020 ..." forms. Two-digit years from 70 up are 19xx.
    """
    for pattern in _KYOTO_HEADER_PATTERNS:
        match = pattern.match(line)
        if match:
            break
    else:
        return None

    yy, month, day = (int(part) for part in match.groups()[:3])
    year = 1900 + yy if yy >= 70 else 2000 + yy
    return KyotoHeader(year=year, month=month, day=day, tail=match.group(4))


def _last_24_integers(text: str) -> list[float]:
    integers = [float(token) for token in _INTEGER_PATTERN.findall(deglue_signs(text))]
    return integers[-HOURS_PER_DAY:] if len(integers) >= HOURS_PER_DAY else []


def _kyoto_hourly_values(tail: str) -> list[float]:
    cleaned = _TRAILING_JUNK_PATTERN.sub("", deglue_signs(tail)).strip()
    tokens = [
        value
        for value in (to_finite_float(token) for token in cleaned.split())
        if value is not None
    ]

    if len(tokens) >= 26:
        # base value, 24 hours, daily mean
        return tokens[1:25]
    if len(tokens) >= HOURS_PER_DAY:
        return tokens[:HOURS_PER_DAY]
    return _last_24_integers(tail)


def _hour_ms(year: int, month: int, day: int, hour: int) -> int | None:
    """Epoch ms of a calendar hour; hour 24 rolls into the next day."""
    try:
        start_of_day = datetime(year, month, day, tzinfo=UTC)
    except ValueError:
        return None
    if not 0 <= hour <= HOURS_PER_DAY:
        return None
    return to_epoch_ms(start_of_day + timedelta(hours=hour))


def _is_valid_reading(value: float | None) -> bool:
    return value is not None and not is_no_data(value, NO_DATA_SENTINEL)


class _DstLineParser:
    """Stateful line walker; tracks the month context and the last day seen."""

    def __init__(self, text: str, now: datetime | None):
        self.year, self.month = infer_year_month(text, now)
        self.last_day = 0
        self.points: list[tuple[int, float]] = []

    def _emit(self, timestamp_ms: int | None, value: float | None) -> None:
        if timestamp_ms is not None and _is_valid_reading(value):
            self.points.append((timestamp_ms, value))

    def _emit_day(self, year: int, month: int, day: int, values: list[str]) -> None:
        for hour, raw in enumerate(values[:HOURS_PER_DAY]):
            self._emit(_hour_ms(year, month, day, hour), to_finite_float(raw))

    def feed(self, line: str) -> None:
        if "," in line and not _SPACED_COMMA_PATTERN.search(line):
            self._csv(line)
            return

        header = parse_kyoto_header(line)
        if header is not None:
            for hour, value in enumerate(_kyoto_hourly_values(header.tail)):
                self._emit(
                    _hour_ms(header.year, header.month, header.day, hour + 1), value
                )
            self.last_day = header.day
            return

        parts = deglue_signs(line).split()
        count = len(parts)

        if count >= 27 and all(p.isdigit() for p in parts[:3]) and len(parts[0]) == 4:
            year, month, day = (int(p) for p in parts[:3])
            if 1 <= month <= 12 and 1 <= day <= 31:
                self._emit_day(year, month, day, parts[3:])
                self.last_day = day
                return

        if _HOURLY_ROW_PATTERN.match(line) and self._hourly_row(parts):
            return

        if count >= 25 and re.fullmatch(r"\d{1,2}", parts[0]):
            day = int(parts[0])
            if 1 <= day <= 31:
                self._emit_day(self.year, self.month, day, parts[1:])
                self.last_day = day
                return

        numeric = all(_NUMBER_TOKEN_PATTERN.match(p) for p in parts)
        if count == HOURS_PER_DAY and numeric:
            day = self.last_day + 1 if self.last_day > 0 else 1
            self._emit_day(self.year, self.month, day, parts)
            self.last_day = day
            return

        if (
            count >= 2
            and re.fullmatch(r"\d{4}", parts[0])
            and re.fullmatch(r"\d{1,2}", parts[1])
        ):
            month = int(parts[1])
            if 1 <= month <= 12:
                self.year, self.month = int(parts[0]), month

    def _csv(self, line: str) -> None:
        raw_time, _, rest = line.partition(",")
        raw_value = rest.split(",", 1)[0]
        self._emit(to_epoch_ms(raw_time), to_finite_float(raw_value))

    def _hourly_row(self, parts: list[str]) -> bool:
        if len(parts) < 5:
            return False
        try:
            year, month, day, hour = (int(p) for p in parts[:4])
        except ValueError:
            return False
        value = to_finite_float(parts[4])
        if not (1 <= month <= 12 and 1 <= day <= 31 and 0 <= hour <= 23):
            return False
        if not _is_valid_reading(value):
            return False
        self._emit(_hour_ms(year, month, day, hour), value)
        return True


def _first_wins(pairs: Iterable[tuple[int, float]]) -> list[tuple[int, float]]:
    kept: dict[int, float] = {}
    for timestamp_ms, value in sorted(pairs, key=lambda pair: pair[0]):
        kept.setdefault(timestamp_ms, value)
    return list(kept.items())


def parse_dst_text(text: str, *, now_ms: int | None = None) -> PointSeries:
    """
    Parse any supported Dst text layout into an hourly series.

    Args:
        text: Raw listing (plain text, or the contents of an HTML <pre>)
        now_ms: "Now" for dropping future points and inferring the month
            (defaults to the current time)

    Returns:
        PointSeries: Sanitized hourly Dst values; empty when nothing matched
    """
    if now_ms is None:
        now = datetime.now(UTC)
    else:
        now = datetime.fromtimestamp(now_ms / 1000, tz=UTC)

    normalized = _SEPARATOR_PATTERN.sub(" ", text).replace("\u00a0", " ")
    lines = normalized.splitlines()

    parser = _DstLineParser(text, now)
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        parser.feed(line)

    deduplicated = _first_wins(parser.points)

    if not deduplicated:
        logger.debug(
            "Dst text matched no known layout",
            extra={"head": sanitize_for_log("\n".join(lines[:20]), max_length=500)},
        )

    return sanitize_dst_series(
        (Point(timestamp_ms=ts, value=value) for ts, value in deduplicated),
        now_ms=to_epoch_ms(now),
    )


def sanitize_dst_series(
    points: Iterable[Point], *, now_ms: int | None = None
) -> PointSeries:
    """
    Clean a Dst series before it is cached or served.

    Drops "no data" sentinels and future timestamps, keeps at most the
    latest 24 readings of each UTC day and removes duplicate timestamps
    (first occurrence wins).
    """
    if now_ms is None:
        now_ms = to_epoch_ms(datetime.now(UTC))

    kept = sorted(
        (
            point
            for point in points
            if not is_no_data(point.value) and point.timestamp_ms <= now_ms
        ),
        key=lambda point: point.timestamp_ms,
    )

    by_day: dict[str, list[Point]] = {}
    for point in kept:
        day = by_day.setdefault(iso_from_ms(point.timestamp_ms)[:10], [])
        day.append(point)
        if len(day) > HOURS_PER_DAY:
            day.pop(0)

    limited = [point for day in by_day.values() for point in day]
    deduplicated = _first_wins((p.timestamp_ms, p.value) for p in limited)

    dropped = len(kept) - len(deduplicated)
    if dropped:
        logger.debug("Trimmed Dst series", extra={"dropped": dropped})

    return PointSeries.from_pairs(deduplicated)
