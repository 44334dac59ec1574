"""
Point extraction for the supported sensor and index formats.

Each parser takes raw text or decoded JSON and returns a PointSeries.
Nothing here touches the file system or the network.
"""

from src.lib.parsers.dst import parse_dst_text, sanitize_dst_series
from src.lib.parsers.electric_field import parse_efm_filename, parse_efm_text
from src.lib.parsers.kp import (
    build_kp_dataset,
    color_for_kp,
    decode_gfz_kp,
    decode_noaa_kp,
    merge_kp_series,
    normalize_kp_series,
    normalize_kp_to_3h,
)
from src.lib.parsers.magnetometer import parse_datamin_filename, parse_datamin_text
from src.lib.parsers.sources import decode_feed, parse_raw_feed

__all__ = [
    "parse_datamin_filename",
    "parse_datamin_text",
    "parse_efm_filename",
    "parse_efm_text",
    "parse_dst_text",
    "sanitize_dst_series",
    "normalize_kp_to_3h",
    "decode_noaa_kp",
    "decode_gfz_kp",
    "normalize_kp_series",
    "merge_kp_series",
    "color_for_kp",
    "build_kp_dataset",
    "decode_feed",
    "parse_raw_feed",
]
