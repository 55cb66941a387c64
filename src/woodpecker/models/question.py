"""
Question-set shapes exchanged by the TOON codec.

The decoder and encoder deliberately use different shapes:

    QuestionSetImport   what parse_toon() builds from a TOON document
    FlatExportRow       what to_toon() receives from the export projection

Nothing converts one into the other directly; the export service derives
rows from stored questions and the ingestion service validates imports.
"""

from typing import List, TypedDict


class QuestionRecord(TypedDict, total=False):
    """One multiple-choice question decoded from a quiz row.

    Keys are present only when the quiz header declared the matching column,
    except ``options`` which is always set (possibly empty).
    """
    question: str
    options: List[str]
    answer: str
    explanation: str
    patternTag: str


class QuestionSetImport(TypedDict):
    """Decoder output for a TOON document."""
    title: str
    targetRounds: int
    questions: List[QuestionRecord]


class FlatExportRow(TypedDict):
    """Per-question projection handed to the encoder on export."""
    question: str
    options: List[str]
    answer: str
    explanation: str
    pattern_tag: str
