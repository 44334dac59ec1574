"""
Planetary K-index (Kp) decoding and normalization.

Kp is a three-hourly index. Providers publish it on the 00, 03, ..., 21 UTC
marks, but some feeds also carry hourly or nowcast samples between the
marks. Those are discarded rather than averaged in.

Feeds:
- NOAA SWPC: ``[["time_tag", "kp_index"], ["2025-01-01 00:00:00", "3.33"], ...]``
- GFZ Potsdam: ``{"meta": {...}, "datetime": [...], "Kp": [...]}``
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.lib.parsers.sources import ColumnarRows, PairRows, decode_feed
from src.lib.timeseries.models import (
    HOUR_MS,
    Point,
    PointSeries,
    iso_from_ms,
    to_epoch_ms,
    to_finite_float,
)

logger = logging.getLogger(__name__)

KP_INTERVAL_MS = 3 * HOUR_MS

KP_GREEN_THRESHOLD = 4
KP_YELLOW_THRESHOLD = 6

KP_COLOR_QUIET = "#22c55e"
KP_COLOR_ACTIVE = "#facc15"
KP_COLOR_STORM = "#ef4444"
KP_COLOR_UNKNOWN = "#64748b"

KpStatus = Literal["def", "now"]


class KpSample(BaseModel):
    """One Kp reading with its definitive/nowcast status."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    value: float = Field(allow_inf_nan=False)
    status: KpStatus = "now"

    @property
    def iso(self) -> str:
        return iso_from_ms(self.timestamp_ms)


class KpDataset(BaseModel):
    """Bar-chart dataset: one bar per sample, coloured by storm level."""

    model_config = ConfigDict(populate_by_name=True)

    label: str = "Kp index"
    data: list[dict[str, Any]] = Field(default_factory=list)
    background_color: list[str] = Field(
        default_factory=list, alias="backgroundColor"
    )


class GfzKpResponse(BaseModel):
    """The parts of the GFZ JSON export that carry Kp values."""

    datetime: list[Any]
    kp: list[Any] = Field(alias="Kp")


def normalize_kp_to_3h(points: Iterable[Point]) -> PointSeries:
    """
    Keep only samples that sit exactly on a 3-hour UTC mark.

    Sub-second noise is tolerated and truncated. When several samples land
    on the same mark the last one wins.
    """
    kept = []
    for point in points:
        offset = point.timestamp_ms % KP_INTERVAL_MS
        if offset >= 1000:
            continue
        kept.append((point.timestamp_ms - offset, point.value))
    return PointSeries.from_pairs(kept)


def decode_noaa_kp(rows: list[list[Any]]) -> PointSeries:
    """Decode the NOAA planetary K-index product (first row is the header)."""
    series = normalize_kp_to_3h(
        decode_feed(PairRows(rows=rows, skip_header=True), drop_sentinels=True)
    )
    logger.debug(
        "Decoded NOAA Kp feed", extra={"rows": len(rows), "points": len(series)}
    )
    return series


def decode_gfz_kp(payload: Mapping[str, Any]) -> PointSeries:
    """
    Decode the GFZ Kp JSON export.

    Raises:
        pydantic.ValidationError: If ``datetime`` or ``Kp`` is missing or
            not a list
    """
    response = GfzKpResponse.model_validate(payload)
    series = normalize_kp_to_3h(
        decode_feed(
            ColumnarRows(timestamps=response.datetime, values=response.kp),
            drop_sentinels=True,
        )
    )
    logger.debug(
        "Decoded GFZ Kp feed",
        extra={"rows": len(response.datetime), "points": len(series)},
    )
    return series


def _normalize_status(raw: Any) -> KpStatus:
    return "def" if str(raw).lower().startswith("def") else "now"


def _first_present(item: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _sample_from(item: KpSample | Mapping[str, Any] | None) -> KpSample | None:
    if isinstance(item, KpSample):
        return item
    if not isinstance(item, Mapping):
        return None

    timestamp_ms = to_epoch_ms(_first_present(item, "time", "timestamp", "t"))
    value = to_finite_float(_first_present(item, "value", "v", "kp", "y"))
    if timestamp_ms is None or value is None:
        return None

    return KpSample(
        timestamp_ms=timestamp_ms,
        value=value,
        status=_normalize_status(_first_present(item, "status", "flag")),
    )


def normalize_kp_series(
    series: Iterable[KpSample | Mapping[str, Any]] | None,
) -> list[KpSample]:
    """
    Normalize loosely shaped Kp records.

    Records may use ``time``/``timestamp``/``t`` for the timestamp,
    ``value``/``v``/``kp``/``y`` for the value and ``status``/``flag`` for
    the status. Any status starting with "def" is definitive, everything
    else is a nowcast. Output is sorted; for repeated timestamps the last
    record wins.
    """
    if series is None or isinstance(series, str | bytes | Mapping):
        return []

    latest: dict[int, KpSample] = {}
    for item in series:
        sample = _sample_from(item)
        if sample is not None:
            latest[sample.timestamp_ms] = sample

    return [latest[ts] for ts in sorted(latest)]


def merge_kp_series(
    existing: Iterable[KpSample | Mapping[str, Any]] | None,
    incoming: Iterable[KpSample | Mapping[str, Any]] | None,
) -> list[KpSample]:
    """Merge two Kp series; incoming samples replace existing ones."""
    return normalize_kp_series([*(existing or []), *(incoming or [])])


def color_for_kp(value: Any) -> str:
    """Bar colour for a Kp value: quiet below 4, active below 6, storm above."""
    numeric = to_finite_float(value)
    if numeric is None:
        return KP_COLOR_UNKNOWN
    if numeric < KP_GREEN_THRESHOLD:
        return KP_COLOR_QUIET
    if numeric < KP_YELLOW_THRESHOLD:
        return KP_COLOR_ACTIVE
    return KP_COLOR_STORM


def build_kp_dataset(
    series: Iterable[KpSample | Mapping[str, Any]] | None,
) -> KpDataset:
    """Chart dataset with one bar per sample, coloured by storm level."""
    samples = normalize_kp_series(series)
    return KpDataset(
        data=[
            {"x": sample.iso, "y": sample.value, "status": sample.status}
            for sample in samples
        ],
        background_color=[color_for_kp(sample.value) for sample in samples],
    )
