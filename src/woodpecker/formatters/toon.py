"""TOON (Token-Oriented Object Notation) decoding and encoding for question sets.

Decoding understands a small sectioned document:

    context:
      topic: Sample_Set

    quiz[1]{question,answer,explanation,tag}:
    What is 2+2?,4,Basic math,Arithmetic / Easy

    options:
    3,4,5,6

Text that starts with ``[`` or ``{`` skips the grammar and is parsed as JSON.

Encoding produces a pipe-delimited table for export:

    question | options | answer
    What is 2+2? | 3; 4; 5; 6 | 4

The two directions are not inverses. Encoded tables are read back with
parse_flat_table() or re-imported as JSON, never through parse_toon().
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from ..models.question import QuestionRecord, QuestionSetImport
from .splitters import split_quoted_csv

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Set"
DEFAULT_TARGET_ROUNDS = 7

SECTION_HEADER_PATTERN = re.compile(r"^([a-z]+)(\[\d+\])?(\{[^}]*\})?:$")

CONTEXT_SECTION = "context"
QUIZ_SECTION = "quiz"
OPTIONS_SECTION = "options"
TABULAR_SECTIONS = (QUIZ_SECTION, OPTIONS_SECTION)

CELL_SEPARATOR = " | "
ARRAY_SEPARATOR = "; "


class ToonParseError(ValueError):
    """Raised when input cannot be decoded at all."""

    pass


@dataclass
class Section:
    """A header line and the non-blank lines that follow it."""

    name: str
    fields: Optional[List[str]] = None
    lines: List[str] = field(default_factory=list)


SectionValue = Union[Dict[str, str], List[Dict[str, str]], List[List[str]], List[str]]


def _parse_header(line: str) -> Optional[Section]:
    """Return an empty Section if ``line`` is a section header, else None."""
    match = SECTION_HEADER_PATTERN.match(line)
    if match is None:
        return None

    name, _count, braces = match.groups()
    fields = None
    if braces:
        declared = [column.strip() for column in braces[1:-1].split(",")]
        declared = [column for column in declared if column]
        fields = declared or None

    return Section(name=name, fields=fields)


def split_sections(text: str) -> List[Section]:
    """Group document lines into sections.

    Blank lines are dropped. Lines before the first header belong to no
    section and are ignored.
    """
    sections: List[Section] = []
    current: Optional[Section] = None

    for raw_line in re.split(r"\r?\n", text):
        line = raw_line.rstrip()
        if not line.strip():
            continue

        # Headers start in column zero; indented "key:" lines stay in their section
        header = _parse_header(line)
        if header is not None:
            current = header
            sections.append(current)
        elif current is not None:
            current.lines.append(raw_line.rstrip("\r"))
        else:
            logger.debug(f"Ignoring line outside any section: {line.strip()[:40]!r}")

    return sections


def _parse_context(lines: List[str]) -> Dict[str, str]:
    context: Dict[str, str] = {}
    for line in lines:
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        context[key.strip()] = value.strip()
    return context


def _parse_tabular(section: Section) -> Union[List[Dict[str, str]], List[List[str]]]:
    rows = [split_quoted_csv(line.strip()) for line in section.lines]
    if section.fields is None:
        return rows
    return [dict(zip(section.fields, values)) for values in rows]


def parse_section(section: Section) -> SectionValue:
    """Interpret a section body according to its name."""
    if section.name == CONTEXT_SECTION:
        return _parse_context(section.lines)
    if section.name.startswith(TABULAR_SECTIONS):
        return _parse_tabular(section)
    # Unknown sections are kept raw
    return list(section.lines)


def normalize_pattern_tag(tag: str) -> str:
    """Keep only the category of a ``"Category / Difficulty"`` tag."""
    return tag.split("/", 1)[0].strip()


def _find_section(parsed: Dict[str, SectionValue], prefix: str) -> Optional[SectionValue]:
    for name, value in parsed.items():
        if name.startswith(prefix):
            return value
    return None


def _option_row(options: List[Any], index: int) -> List[str]:
    if index >= len(options):
        return []
    row = options[index]
    if isinstance(row, dict):
        return list(row.values())
    return list(row)


def _build_question(row: Any, options: List[str]) -> QuestionRecord:
    record: QuestionRecord = {}
    if isinstance(row, dict):
        for key, value in row.items():
            if key == "tag":
                record["patternTag"] = normalize_pattern_tag(value)
            else:
                record[key] = value
    record["options"] = options
    return record


def parse_toon(
    text: str,
    default_title: str = DEFAULT_TITLE,
    default_target_rounds: int = DEFAULT_TARGET_ROUNDS,
) -> Union[QuestionSetImport, Any]:
    """Decode TOON text (or passthrough JSON) into a question set.

    Missing sections, rows and columns fall back to empty defaults; a
    document with no quiz section yields an empty ``questions`` list.
    Rejecting thin results is the caller's job.

    Args:
        text: Raw request body
        default_title: Title used when the context has no ``topic``
        default_target_rounds: Value reported as ``targetRounds``

    Returns:
        The parsed JSON value for passthrough input, otherwise a
        QuestionSetImport dictionary

    Raises:
        ToonParseError: If passthrough JSON is malformed
    """
    stripped = text.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ToonParseError(
                f"Invalid JSON syntax: {e.msg} (line {e.lineno}, column {e.colno})"
            ) from e

    parsed: Dict[str, SectionValue] = {}
    for section in split_sections(text):
        # First section of a given name wins
        if section.name in parsed:
            logger.debug(f"Ignoring repeated section: {section.name}")
            continue
        parsed[section.name] = parse_section(section)

    logger.debug(f"Parsed TOON sections: {list(parsed)}")

    context = parsed.get(CONTEXT_SECTION)
    if not isinstance(context, dict):
        context = {}
    quiz_rows = _find_section(parsed, QUIZ_SECTION) or []
    option_rows = _find_section(parsed, OPTIONS_SECTION) or []

    questions = [
        _build_question(row, _option_row(option_rows, index))
        for index, row in enumerate(quiz_rows)
    ]

    if len(option_rows) < len(questions):
        logger.debug(f"Only {len(option_rows)} option rows for {len(questions)} quiz rows")

    topic = context.get("topic")
    title = topic.replace("_", " ") if topic else default_title

    return {
        "title": title,
        "targetRounds": default_target_rounds,
        "questions": questions,
    }


def _stringify(value: Any) -> str:
    """Render a scalar the way the exported tables have always rendered them."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def _format_cell(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ARRAY_SEPARATOR.join("" if item is None else _stringify(item) for item in value)
    return _stringify(value).replace("|", "\\|")


def to_toon(data: Any) -> str:
    """Encode flat records as a pipe-delimited table.

    Headers come from the first record's keys. List values are joined with
    ``"; "``; literal pipes in scalars are escaped as ``\\|``. An empty list
    encodes to ``""`` and a non-list value falls back to indented JSON.

    Raises:
        TypeError: If any list item is not a mapping

    Example:
        >>> print(to_toon([{"question": "Q", "options": ["A", "B"]}]))
        question | options
        Q | A; B
    """
    if not isinstance(data, list):
        return json.dumps(data, indent=2, ensure_ascii=False)

    if not data:
        return ""

    for index, record in enumerate(data):
        if not isinstance(record, Mapping):
            raise TypeError(f"Record {index} is {type(record).__name__}, expected a mapping")

    headers = list(data[0].keys())
    lines = [CELL_SEPARATOR.join(headers)]

    for record in data:
        cells = [
            _format_cell(record[key]) if key in record else "undefined"
            for key in headers
        ]
        lines.append(CELL_SEPARATOR.join(cells))

    logger.debug(f"Encoded {len(data)} records with {len(headers)} columns")
    return "\n".join(lines)
