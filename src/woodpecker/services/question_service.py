"""
Question Set Service - ingestion and export logic around the TOON codec.

The codec functions stay pure and lenient; this service owns the size guard,
schema validation and export packaging that request handlers need.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from ..config import CodecSettings, settings
from ..formatters.toon import parse_toon, to_toon
from ..models.question import FlatExportRow
from ..models.schemas import (
    MCQSetArray,
    MCQSetUpload,
    MinifiedQuestionInput,
    QuestionInput,
)
from ..utils.headers import sanitize_filename

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "toon")
TOON_MEDIA_TYPE = "text/plain"
JSON_MEDIA_TYPE = "application/json"


class QuestionInputError(ValueError):
    """Raised when pasted or uploaded question input cannot be used."""

    pass


class QuestionSetValidationError(ValueError):
    """Raised when a decoded body matches neither accepted set shape."""

    def __init__(self, message: str, details: List[Dict[str, Any]], array_errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.details = details
        self.array_errors = array_errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": str(self),
            "details": self.details,
            "arrayErrors": self.array_errors,
        }


def _is_json_text(text: str) -> bool:
    return text.startswith(("[", "{"))


def _normalize_input_item(item: Any) -> Dict[str, Any]:
    """Convert one JSON question (minified or standard keys) to standard keys."""
    if isinstance(item, dict) and item.get("q") and item.get("a"):
        try:
            minified = MinifiedQuestionInput.model_validate(item)
        except ValidationError:
            pass  # Not a complete short-key record; try the standard form
        else:
            return {
                "question": minified.q,
                "options": minified.o,
                "answer": minified.a,
                "explanation": minified.e or "",
                "patternTag": minified.t or "",
            }

    try:
        standard = QuestionInput.model_validate(item)
    except ValidationError as e:
        preview = json.dumps(item, ensure_ascii=False)[:50]
        raise QuestionInputError(f"Invalid question format: {preview}...") from e

    return standard.model_dump(exclude_none=True)


def _project_question(question: Union[Mapping[str, Any], BaseModel]) -> FlatExportRow:
    """Build the export projection of a stored question."""
    if isinstance(question, BaseModel):
        question = question.model_dump()

    pattern_tag = question.get("pattern_tag") or question.get("patternTag") or ""
    return {
        "question": question.get("question", ""),
        "options": list(question.get("options") or []),
        "answer": question.get("answer", ""),
        "explanation": question.get("explanation") or "",
        "pattern_tag": pattern_tag,
    }


class QuestionSetService:
    """
    Shared service for question-set import and export.

    Holds the codec settings so request handlers and the CLI apply the same
    defaults and limits.
    """

    def __init__(self, codec_settings: Optional[CodecSettings] = None):
        self.codec = codec_settings if codec_settings is not None else settings.codec

    def validate_input_size(self, body: Union[str, bytes]) -> None:
        """Reject request bodies over the configured byte limit.

        Raises:
            QuestionInputError: If the body exceeds ``max_input_bytes``
        """
        size = len(body) if isinstance(body, bytes) else len(body.encode("utf-8"))
        limit = self.codec.max_input_bytes
        if size > limit:
            raise QuestionInputError(f"Input size {size} bytes exceeds maximum {limit} bytes")

    def decode(self, text: str) -> Any:
        """Run the TOON decoder with this service's defaults."""
        return parse_toon(
            text,
            default_title=self.codec.default_title,
            default_target_rounds=self.codec.default_target_rounds,
        )

    def parse_question_input(self, text: str) -> List[Dict[str, Any]]:
        """
        Parse questions pasted into an existing set.

        TOON input must produce at least one question. JSON input may be a
        list, an object with a ``questions`` list, or a single question, in
        standard or minified key form.

        Args:
            text: Raw pasted text

        Returns:
            Question dictionaries with standard keys

        Raises:
            QuestionInputError: If nothing usable can be extracted
        """
        self.validate_input_size(text)
        trimmed = text.strip()

        if not _is_json_text(trimmed):
            decoded = self.decode(trimmed)
            questions = decoded.get("questions") or []
            if not questions:
                raise QuestionInputError("No valid questions found in TOON input.")
            logger.info(f"Parsed {len(questions)} questions from TOON input")
            return questions

        try:
            parsed = json.loads(trimmed)
        except json.JSONDecodeError as e:
            raise QuestionInputError("Invalid JSON format.") from e

        if isinstance(parsed, list):
            items = parsed
        elif isinstance(parsed, dict) and parsed.get("questions"):
            items = parsed["questions"]
        else:
            items = [parsed]

        if not isinstance(items, list):
            raise QuestionInputError("Could not extract questions array from JSON.")

        questions = [_normalize_input_item(item) for item in items]
        logger.info(f"Parsed {len(questions)} questions from JSON input")
        return questions

    def ingest_question_set(self, body: Union[str, bytes], content_type: Optional[str] = None) -> MCQSetUpload:
        """
        Decode and validate an uploaded question set.

        ``text/plain`` bodies go through the TOON decoder, anything else is
        read as JSON. The result must match either a titled set or a bare
        list of questions; a bare list gets the default title and rounds.

        Args:
            body: Raw request body
            content_type: Request Content-Type header value

        Returns:
            Validated MCQSetUpload

        Raises:
            QuestionInputError: If the body is too large or malformed
            ToonParseError: If TOON passthrough JSON is malformed
            QuestionSetValidationError: If the decoded body fails both schemas
        """
        self.validate_input_size(body)
        text = body.decode("utf-8") if isinstance(body, bytes) else body

        if content_type and "text/plain" in content_type:
            decoded = self.decode(text)
        else:
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as e:
                raise QuestionInputError("Invalid JSON format.") from e

        try:
            upload = MCQSetUpload.model_validate(decoded)
        except ValidationError as structured_error:
            try:
                questions = MCQSetArray.model_validate(decoded).root
            except ValidationError as array_error:
                logger.warning(
                    f"Question set rejected: {structured_error.error_count()} structured errors, "
                    f"{array_error.error_count()} array errors"
                )
                raise QuestionSetValidationError(
                    "Invalid question set format",
                    details=structured_error.errors(include_url=False),
                    array_errors=array_error.errors(include_url=False),
                ) from structured_error

            upload = MCQSetUpload(
                title=self.codec.default_title,
                target_rounds=self.codec.default_target_rounds,
                questions=questions,
            )

        logger.info(f"Ingested question set '{upload.title}' with {len(upload.questions)} questions")
        return upload

    def export_question_set(
        self,
        title: str,
        questions: Iterable[Union[Mapping[str, Any], BaseModel]],
        fmt: str = "json",
    ) -> Tuple[str, str, str]:
        """
        Render a stored set for download.

        Args:
            title: Set title, used for the filename
            questions: Stored questions (mappings or pydantic models)
            fmt: ``"json"`` or ``"toon"``

        Returns:
            Tuple of (body, media_type, filename)

        Raises:
            ValueError: If ``fmt`` is not a supported export format
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}. Use 'json' or 'toon'.")

        rows = [_project_question(question) for question in questions]
        stem = sanitize_filename(title)

        if fmt == "toon":
            return (to_toon(rows), TOON_MEDIA_TYPE, f"{stem}.toon")

        return (json.dumps(rows, indent=2, ensure_ascii=False), JSON_MEDIA_TYPE, f"{stem}.json")
