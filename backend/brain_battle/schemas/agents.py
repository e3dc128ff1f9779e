"""Payloads produced by the individual notes agents."""

from typing import Annotated

from pydantic import Field

from brain_battle.schemas.notes import (
    ConceptBlock,
    Diagram,
    Formula,
    KeyTerm,
    LLMPayload,
    Misconception,
    PracticeQuestion,
    valid_items,
)


class DocumentStructure(LLMPayload):
    sections: list[str] = []
    headings: list[str] = []


class Example(LLMPayload):
    title: str = ""
    content: str = ""


class ContentExtraction(LLMPayload):
    """Terms, structure, examples and formulas quoted from the source."""

    key_terms: Annotated[list[KeyTerm], valid_items(KeyTerm)] = []
    structure: DocumentStructure = Field(default_factory=DocumentStructure)
    examples: Annotated[list[Example], valid_items(Example)] = []
    formulas: Annotated[list[Formula], valid_items(Formula)] = []


class ComplexityEvidence(LLMPayload):
    vocabulary_examples: list[str] = []
    complexity_indicators: list[str] = []


class ComplexityAnalysis(LLMPayload):
    """Reading level of the source. Unset fields mean the model omitted them."""

    subject: str | None = None
    vocabulary_level: str | None = None
    concept_sophistication: str | None = None
    prerequisite_knowledge: list[str] = []
    reasoning_level: str | None = None
    education_level: str | None = None
    difficulty_level: str | None = None
    evidence: ComplexityEvidence = Field(default_factory=ComplexityEvidence)


class ConceptOrganization(LLMPayload):
    outline: list[str] = []
    concepts: Annotated[list[ConceptBlock], valid_items(ConceptBlock)] = []
    study_tips: list[str] = []
    common_misconceptions: Annotated[list[Misconception], valid_items(Misconception)] = []


class QuestionSet(LLMPayload):
    practice_questions: Annotated[
        list[PracticeQuestion], valid_items(PracticeQuestion)
    ] = []


class DiagramAnalysis(LLMPayload):
    diagrams: Annotated[list[Diagram], valid_items(Diagram)] = []
