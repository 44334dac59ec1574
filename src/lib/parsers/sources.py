"""
Raw feed shapes, decoded once into a PointSeries.

Remote feeds arrive in a handful of layouts: rows of [time, value] pairs,
lists of objects, or parallel timestamp/value columns. Each layout is a
distinct pydantic model tagged by ``kind``; callers state which one they
hold instead of letting a decoder guess from field names.

For Developers:
    >>> decode_feed({"kind": "pairs", "rows": [["2024-01-01T00:00:00Z", 3]]})
    PointSeries(points=(Point(timestamp_ms=1704067200000, value=3.0),))

    An envelope that matches none of the shapes raises pydantic's
    ValidationError. Individual rows with bad timestamps or values are
    dropped silently.
"""

from collections.abc import Iterator
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from src.lib.timeseries.models import (
    NO_DATA_SENTINEL,
    PointSeries,
    is_no_data,
    to_finite_float,
)


class PairRows(BaseModel):
    """[[time, value], ...] rows, e.g. the NOAA planetary K-index product."""

    kind: Literal["pairs"] = "pairs"
    rows: list[list[Any]] = Field(default_factory=list)
    skip_header: bool = Field(
        default=False, description="Drop the first row (column titles)"
    )

    def iter_pairs(self) -> Iterator[tuple[Any, Any]]:
        rows = self.rows[1:] if self.skip_header else self.rows
        for row in rows:
            if len(row) >= 2:
                yield row[0], row[1]


class RecordRows(BaseModel):
    """[{...}, ...] objects with named time and value fields."""

    kind: Literal["records"] = "records"
    time_field: str = "time"
    value_field: str = "value"
    rows: list[dict[str, Any]] = Field(default_factory=list)

    def iter_pairs(self) -> Iterator[tuple[Any, Any]]:
        for row in self.rows:
            yield row.get(self.time_field), row.get(self.value_field)


class ColumnarRows(BaseModel):
    """Parallel timestamp and value arrays, e.g. the GFZ Kp JSON export."""

    kind: Literal["columns"] = "columns"
    timestamps: list[Any] = Field(default_factory=list)
    values: list[Any] = Field(default_factory=list)

    def iter_pairs(self) -> Iterator[tuple[Any, Any]]:
        yield from zip(self.timestamps, self.values, strict=False)


RawFeed = Annotated[
    PairRows | RecordRows | ColumnarRows, Field(discriminator="kind")
]

_raw_feed_adapter: TypeAdapter[Any] = TypeAdapter(RawFeed)


def parse_raw_feed(payload: dict[str, Any]) -> PairRows | RecordRows | ColumnarRows:
    """Validate a tagged JSON envelope into its feed model."""
    return _raw_feed_adapter.validate_python(payload)


def decode_feed(
    feed: PairRows | RecordRows | ColumnarRows | dict[str, Any],
    *,
    drop_sentinels: bool = False,
    sentinel: float = NO_DATA_SENTINEL,
) -> PointSeries:
    """
    Decode any supported feed shape into a PointSeries.

    Args:
        feed: A feed model, or a tagged dict to validate first
        drop_sentinels: Discard |value| >= sentinel readings (Dst/Kp feeds)
        sentinel: The "no data" magnitude

    Returns:
        PointSeries: Sorted, de-duplicated (last wins), finite values only
    """
    if isinstance(feed, dict):
        feed = parse_raw_feed(feed)

    pairs = []
    for raw_time, raw_value in feed.iter_pairs():
        value = to_finite_float(raw_value)
        if value is None:
            continue
        if drop_sentinels and is_no_data(value, sentinel):
            continue
        pairs.append((raw_time, value))

    return PointSeries.from_pairs(pairs)
