"""
Unit tests for QuestionSetService.

These tests verify:
1. Question input parsing (TOON, standard JSON, minified JSON)
2. Upload ingestion and two-shape schema validation
3. Export projection, formats and filenames
4. Input size guard
"""

import json

import pytest

from woodpecker.config import CodecSettings
from woodpecker.formatters.toon import ToonParseError
from woodpecker.models.schemas import MCQSetUpload, QuestionUpload
from woodpecker.services.question_service import (
    QuestionInputError,
    QuestionSetService,
    QuestionSetValidationError,
)

# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def service(codec_settings):
    return QuestionSetService(codec_settings=codec_settings)


@pytest.fixture
def valid_toon() -> str:
    return (
        "context:\n"
        "  topic: Big_O\n"
        "\n"
        "quiz[2]{question,answer,explanation,tag}:\n"
        "Lookup in a hash map?,O(1),Average case,Hashing / Easy\n"
        '"Sort, then scan?",O(n log n),Sort dominates,Sorting / Medium\n'
        "\n"
        "options:\n"
        "O(1),O(n),O(log n)\n"
        "O(n),O(n log n),O(n^2)\n"
    )


@pytest.fixture
def stored_questions():
    return [
        {
            "question": "What is 2+2?",
            "options": ["3", "4"],
            "answer": "4",
            "explanation": None,
            "patternTag": "Arithmetic",
        },
        {
            "question": "Pipe | inside?",
            "options": ["yes", "no"],
            "answer": "yes",
            "explanation": "Escaped on export",
            "patternTag": None,
        },
    ]


# =============================================================================
# parse_question_input
# =============================================================================


class TestParseQuestionInput:
    """Test parsing of pasted questions."""

    def test_toon_input(self, service, valid_toon):
        questions = service.parse_question_input(valid_toon)

        assert len(questions) == 2
        assert questions[1]["question"] == "Sort, then scan?"
        assert questions[1]["patternTag"] == "Sorting"
        assert questions[1]["options"] == ["O(n)", "O(n log n)", "O(n^2)"]

    def test_toon_without_questions_rejected(self, service):
        with pytest.raises(QuestionInputError, match="No valid questions found in TOON input"):
            service.parse_question_input("context:\n  topic: Empty\n")

    def test_standard_json_list(self, service):
        text = json.dumps([{"question": "Q", "options": ["a", "b"], "answer": "a", "patternTag": "T"}])

        assert service.parse_question_input(text) == [
            {"question": "Q", "options": ["a", "b"], "answer": "a", "patternTag": "T"}
        ]

    def test_object_with_questions_key(self, service):
        text = json.dumps({"title": "Set", "questions": [{"question": "Q", "options": ["a"], "answer": "a"}]})
        questions = service.parse_question_input(text)

        assert questions == [{"question": "Q", "options": ["a"], "answer": "a"}]

    def test_single_object(self, service):
        text = json.dumps({"question": "Q", "options": ["a", "b"], "answer": "b", "explanation": "E"})
        questions = service.parse_question_input(text)

        assert questions[0]["explanation"] == "E"

    def test_minified_form(self, service):
        text = json.dumps([{"q": "Q", "o": ["a", "b"], "a": "a", "t": "Tag"}])

        assert service.parse_question_input(text) == [
            {"question": "Q", "options": ["a", "b"], "answer": "a", "explanation": "", "patternTag": "Tag"}
        ]

    def test_incomplete_minified_falls_back_to_standard(self, service):
        text = json.dumps([{"q": "Q", "a": "a", "question": "Long Q", "options": ["a", "b"], "answer": "a"}])
        questions = service.parse_question_input(text)

        assert questions[0]["question"] == "Long Q"

    def test_invalid_item_message_preview(self, service):
        with pytest.raises(QuestionInputError, match=r"Invalid question format: \{\"question\": \"Q\""):
            service.parse_question_input(json.dumps([{"question": "Q"}]))

    def test_malformed_json(self, service):
        with pytest.raises(QuestionInputError, match="Invalid JSON format"):
            service.parse_question_input('[{"question": ')

    def test_questions_key_not_a_list(self, service):
        with pytest.raises(QuestionInputError, match="Could not extract questions array"):
            service.parse_question_input(json.dumps({"questions": "nope"}))


# =============================================================================
# ingest_question_set
# =============================================================================


class TestIngestQuestionSet:
    """Test upload ingestion and validation."""

    def test_toon_body(self, service, valid_toon):
        upload = service.ingest_question_set(valid_toon, content_type="text/plain; charset=utf-8")

        assert isinstance(upload, MCQSetUpload)
        assert upload.title == "Big O"
        assert upload.target_rounds == 7
        assert upload.questions[0].pattern_tag == "Hashing"
        assert upload.questions[0].options == ["O(1)", "O(n)", "O(log n)"]

    def test_bytes_body(self, service, valid_toon):
        upload = service.ingest_question_set(valid_toon.encode("utf-8"), content_type="text/plain")
        assert len(upload.questions) == 2

    def test_structured_json_body(self, service):
        body = json.dumps({
            "title": "Structured",
            "targetRounds": 3,
            "questions": [{"question": "Q", "options": ["a", "b"], "answer": "a", "pattern_tag": "T"}],
        })
        upload = service.ingest_question_set(body, content_type="application/json")

        assert upload.title == "Structured"
        assert upload.target_rounds == 3
        assert upload.questions[0].pattern_tag == "T"

    def test_bare_array_gets_defaults(self):
        service = QuestionSetService(CodecSettings(_env_file=None, default_title="Imported", default_target_rounds=4))
        body = json.dumps([{"question": "Q", "options": ["a", "b"], "answer": "a"}])
        upload = service.ingest_question_set(body, content_type="application/json")

        assert upload.title == "Imported"
        assert upload.target_rounds == 4

    def test_toon_passthrough_json(self, service):
        body = json.dumps([{"question": "Q", "options": ["a", "b"], "answer": "a"}])
        upload = service.ingest_question_set(body, content_type="text/plain")

        assert upload.questions[0].question == "Q"

    def test_toon_with_one_option_rejected(self, service):
        text = "quiz{question,answer}:\nQ,a\noptions:\na\n"

        with pytest.raises(QuestionSetValidationError) as exc_info:
            service.ingest_question_set(text, content_type="text/plain")

        payload = exc_info.value.to_dict()
        assert payload["error"] == "Invalid question set format"
        assert payload["details"]
        assert payload["arrayErrors"]

    def test_toon_without_questions_rejected(self, service):
        with pytest.raises(QuestionSetValidationError):
            service.ingest_question_set("context:\n  topic: Empty\n", content_type="text/plain")

    def test_malformed_passthrough_json(self, service):
        with pytest.raises(ToonParseError):
            service.ingest_question_set('{"title": ', content_type="text/plain")

    def test_malformed_json_body(self, service):
        with pytest.raises(QuestionInputError, match="Invalid JSON format"):
            service.ingest_question_set("not json", content_type="application/json")

    def test_missing_content_type_reads_json(self, service):
        body = json.dumps([{"question": "Q", "options": ["a", "b"], "answer": "a"}])
        assert len(service.ingest_question_set(body).questions) == 1


class TestInputSizeGuard:
    """Test the configured byte limit."""

    def test_oversized_body_rejected(self):
        service = QuestionSetService(CodecSettings(_env_file=None, max_input_bytes=1024))

        with pytest.raises(QuestionInputError, match="exceeds maximum 1024 bytes"):
            service.ingest_question_set("a" * 2000, content_type="text/plain")

    def test_multibyte_size_counted_in_bytes(self):
        service = QuestionSetService(CodecSettings(_env_file=None, max_input_bytes=1024))

        # 400 characters, 1200 bytes
        with pytest.raises(QuestionInputError):
            service.validate_input_size("€" * 400)

    def test_body_at_limit_passes(self):
        service = QuestionSetService(CodecSettings(_env_file=None, max_input_bytes=1024))
        service.validate_input_size(b"a" * 1024)


# =============================================================================
# export_question_set
# =============================================================================


class TestExportQuestionSet:
    """Test export packaging."""

    def test_toon_export(self, service, stored_questions):
        body, media_type, filename = service.export_question_set("Math Drills", stored_questions, fmt="toon")

        assert media_type == "text/plain"
        assert filename == "Math Drills.toon"
        lines = body.split("\n")
        assert lines[0] == "question | options | answer | explanation | pattern_tag"
        assert lines[1] == "What is 2+2? | 3; 4 | 4 |  | Arithmetic"
        assert lines[2] == "Pipe \\| inside? | yes; no | yes | Escaped on export | "

    def test_json_export(self, service, stored_questions):
        body, media_type, filename = service.export_question_set("Math Drills", stored_questions)

        assert media_type == "application/json"
        assert filename == "Math Drills.json"
        rows = json.loads(body)
        assert rows[0] == {
            "question": "What is 2+2?",
            "options": ["3", "4"],
            "answer": "4",
            "explanation": "",
            "pattern_tag": "Arithmetic",
        }

    def test_models_accepted(self, service):
        questions = [QuestionUpload(question="Q", options=["a", "b"], answer="a", pattern_tag="T")]
        body, _, _ = service.export_question_set("Set", questions, fmt="toon")

        assert body.split("\n")[1] == "Q | a; b | a |  | T"

    def test_empty_set_toon_export(self, service):
        body, media_type, _ = service.export_question_set("Empty", [], fmt="toon")

        assert body == ""
        assert media_type == "text/plain"

    def test_unknown_format(self, service, stored_questions):
        with pytest.raises(ValueError, match="Unsupported export format: csv"):
            service.export_question_set("Set", stored_questions, fmt="csv")

    def test_filename_sanitized(self, service):
        _, _, filename = service.export_question_set('bad"name/\r\nx', [], fmt="json")
        assert filename == "badnamex.json"

    def test_blank_title_filename(self, service):
        _, _, filename = service.export_question_set("   ", [], fmt="toon")
        assert filename == "export.toon"


def test_default_service_uses_global_settings(monkeypatch):
    monkeypatch.setenv("WOODPECKER_DEFAULT_TITLE", "From Env")
    service = QuestionSetService()

    assert service.codec.default_title == "From Env"
    assert service.decode("quiz{question}:\nQ\n")["title"] == "From Env"
