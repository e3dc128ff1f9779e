"""Study notes schemas."""

import re
from typing import Annotated, Any, Literal, get_args

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from brain_battle.core.logging import get_logger

logger = get_logger(__name__)

QuestionType = Literal["multiple_choice", "open_ended", "true_false", "fill_blank"]
DiagramSource = Literal["file", "web"]

_PAGE_NUMBER = re.compile(r"\d+")


class LLMPayload(BaseModel):
    """Base for anything a model writes.

    Unknown keys are kept, ``null`` values fall back to field defaults and
    numbers are accepted where text is expected.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def _page_number(value: Any) -> Any:
    # "p. 3", "Page 3" -> 3
    if isinstance(value, str):
        match = _PAGE_NUMBER.search(value)
        return int(match.group()) if match else None
    return value


PageNumber = Annotated[int | None, BeforeValidator(_page_number)]


def valid_items(item_model: type[BaseModel]) -> BeforeValidator:
    """Validate list items one by one, dropping the ones that fail.

    A single malformed entry in a model reply would otherwise reject the
    whole payload.
    """

    def keep_valid(value: Any) -> Any:
        if not isinstance(value, list):
            return value
        kept = []
        for index, item in enumerate(value):
            try:
                kept.append(item_model.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "Dropping invalid item",
                    model=item_model.__name__,
                    index=index,
                    error_count=e.error_count(),
                )
        return kept

    return BeforeValidator(keep_valid)


class KeyTerm(LLMPayload):
    term: str
    definition: str = ""
    importance: str = "medium"


class FormulaVariable(LLMPayload):
    symbol: str
    meaning: str = ""


class Formula(LLMPayload):
    name: str = ""
    formula: str
    description: str = ""
    variables: Annotated[list[FormulaVariable], valid_items(FormulaVariable)] = []
    page: PageNumber = None
    example: str | None = None


class ConceptBlock(LLMPayload):
    heading: str
    bullets: list[str] = []
    examples: list[str] = []
    connections: list[str] = []


class Misconception(LLMPayload):
    misconception: str
    correction: str = ""
    why_common: str = ""


class PracticeQuestion(LLMPayload):
    question: str
    answer: str = ""
    type: QuestionType = "open_ended"
    options: list[str] = []
    difficulty: str = "medium"
    explanation: str = ""
    topic: str = ""
    page_reference: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalise_type(cls, value: Any) -> str:
        # "Multiple-Choice", "true false" -> multiple_choice, true_false
        if isinstance(value, str):
            value = re.sub(r"[\s\-]+", "_", value.strip().lower())
        if value not in get_args(QuestionType):
            logger.warning("Unknown question type, using open_ended", question_type=value)
            return "open_ended"
        return value


class Diagram(LLMPayload):
    source: DiagramSource = "file"
    title: str = ""
    caption: str = ""
    page: PageNumber = None
    type: str | None = None
    keywords: list[str] = []
    relates_to_concepts: list[str] = []
    image_data_b64: str | None = None
    width: int | None = None
    height: int | None = None

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, value: Any) -> Any:
        # "document", "pdf", ... all mean the upload itself
        if value not in get_args(DiagramSource):
            return "file"
        return value


class ComplexityProfile(BaseModel):
    vocabulary_level: str = "intermediate"
    concept_sophistication: str = "abstract"
    prerequisite_knowledge: list[str] = []
    reasoning_level: str = "application"


class Resources(BaseModel):
    links: list[str] = []
    videos: list[str] = []
    simulations: list[str] = []


class StudyNotes(BaseModel):
    """The assembled study-notes document."""

    model_config = ConfigDict(frozen=True)

    title: str = "Study Notes"
    subject: str = "General"
    education_level: str = "college"
    difficulty_level: str = "intermediate"
    complexity_analysis: ComplexityProfile = Field(default_factory=ComplexityProfile)
    outline: list[str] = []
    key_terms: list[KeyTerm] = []
    concepts: list[ConceptBlock] = []
    diagrams: list[Diagram] = []
    formulas: list[Formula] = []
    practice_questions: list[PracticeQuestion] = []
    resources: Resources = Field(default_factory=Resources)
    study_tips: list[str] = []
    common_misconceptions: list[Misconception] = []
