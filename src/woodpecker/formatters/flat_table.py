"""Legacy flat-table decoding.

The table dialect predates sectioned TOON documents: one header row, then one
row per question, cells separated by ``|`` (or ``,`` when the header has no
pipe). The ``options`` column holds ``;``-separated choices. This is the
shape to_toon() writes, so it is the reader for exported files.
"""

import logging
import re
from typing import Any, Dict, List

from .splitters import detect_table_delimiter, split_delimited

logger = logging.getLogger(__name__)

ARRAY_COLUMNS = frozenset({"options"})
ARRAY_ITEM_SEPARATOR = ";"


def parse_flat_table(text: str) -> List[Dict[str, Any]]:
    """Decode a header-plus-rows table into flat records.

    Quotes and escaped pipes are not interpreted. Blank rows are skipped and
    missing trailing cells are absent from the record.

    Args:
        text: Table text, header first

    Returns:
        One dictionary per data row, in input order
    """
    lines = [line for line in re.split(r"\r?\n", text.strip()) if line.strip()]
    if not lines:
        return []

    delimiter = detect_table_delimiter(lines[0])
    headers = split_delimited(lines[0], delimiter)
    logger.debug(f"Flat table delimiter {delimiter!r} with columns {headers}")

    records: List[Dict[str, Any]] = []
    for line in lines[1:]:
        values = split_delimited(line.strip(), delimiter)
        record: Dict[str, Any] = {}
        for header, value in zip(headers, values):
            if header in ARRAY_COLUMNS and value:
                record[header] = [item.strip() for item in value.split(ARRAY_ITEM_SEPARATOR)]
            else:
                record[header] = value
        records.append(record)

    return records
