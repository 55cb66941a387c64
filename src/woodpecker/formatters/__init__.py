"""TOON question-set decoding and encoding."""

from .flat_table import parse_flat_table
from .splitters import detect_table_delimiter, split_delimited, split_quoted_csv
from .toon import (
    DEFAULT_TARGET_ROUNDS,
    DEFAULT_TITLE,
    Section,
    ToonParseError,
    normalize_pattern_tag,
    parse_section,
    parse_toon,
    split_sections,
    to_toon,
)

__all__ = [
    "DEFAULT_TARGET_ROUNDS",
    "DEFAULT_TITLE",
    "Section",
    "ToonParseError",
    "detect_table_delimiter",
    "normalize_pattern_tag",
    "parse_flat_table",
    "parse_section",
    "parse_toon",
    "split_delimited",
    "split_quoted_csv",
    "split_sections",
    "to_toon",
]
