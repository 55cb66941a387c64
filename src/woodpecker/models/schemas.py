"""Validation models applied after decoding, before a set is persisted."""

from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel


class QuestionUpload(BaseModel):
    """A question as accepted for storage."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    question: str = Field(..., min_length=1, description="Question is required")
    options: List[str] = Field(..., min_length=2, description="At least two options are required")
    answer: str = Field(..., min_length=1, description="Answer is required")
    explanation: Optional[str] = None
    pattern_tag: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pattern_tag", "patternTag"),
    )


class MCQSetUpload(BaseModel):
    """A titled question set with its round target."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    title: str = Field(..., min_length=1, description="Title is required")
    target_rounds: int = Field(
        default=7,
        ge=1,
        le=20,
        validation_alias=AliasChoices("targetRounds", "target_rounds"),
    )
    questions: List[QuestionUpload] = Field(..., min_length=1, description="At least one question is required")


class MCQSetArray(RootModel[List[QuestionUpload]]):
    """A bare list of questions with no set metadata."""

    root: List[QuestionUpload] = Field(..., min_length=1)


class QuestionInput(BaseModel):
    """A question pasted in the standard long-key JSON form."""

    question: str
    options: List[str]
    answer: str
    explanation: Optional[str] = None
    patternTag: Optional[str] = None


class MinifiedQuestionInput(BaseModel):
    """A question in the short-key JSON form (``q``/``o``/``a``/``e``/``t``)."""

    q: str
    o: List[str]
    a: str
    e: Optional[str] = None
    t: Optional[str] = None
