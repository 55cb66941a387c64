"""Field splitters for the two tabular dialects.

Two strategies are kept apart on purpose:

- split_quoted_csv(): comma-only, quote-aware. Used by the sectioned TOON
  decoder for quiz/options rows.
- split_delimited(): plain pipe-or-comma split with no quoting. Used by the
  legacy flat-table decoder.
"""

from typing import List

QUOTE_CHAR = '"'
CSV_DELIMITER = ","
PIPE_DELIMITER = "|"


def split_quoted_csv(line: str) -> List[str]:
    """Split one tabular row on commas, honouring double quotes.

    A ``"`` toggles the in-quotes state and is dropped from the output.
    Commas inside quotes are kept as content. Every field is trimmed.
    There is no escaped-quote form.

    Example:
        >>> split_quoted_csv('foo,"bar,baz",qux')
        ['foo', 'bar,baz', 'qux']
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == QUOTE_CHAR:
            in_quotes = not in_quotes
        elif char == CSV_DELIMITER and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def detect_table_delimiter(header_line: str) -> str:
    """Pick the legacy table delimiter from its header row: pipe wins over comma."""
    return PIPE_DELIMITER if PIPE_DELIMITER in header_line else CSV_DELIMITER


def split_delimited(line: str, delimiter: str) -> List[str]:
    """Split on every occurrence of ``delimiter`` and trim each value."""
    return [value.strip() for value in line.split(delimiter)]
