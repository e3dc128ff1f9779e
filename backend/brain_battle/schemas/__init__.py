"""Pydantic schemas."""

from brain_battle.schemas.agents import (
    ComplexityAnalysis,
    ConceptOrganization,
    ContentExtraction,
    DiagramAnalysis,
    QuestionSet,
)
from brain_battle.schemas.notes import (
    ComplexityProfile,
    ConceptBlock,
    Diagram,
    Formula,
    KeyTerm,
    Misconception,
    PracticeQuestion,
    StudyNotes,
)

__all__ = [
    "ContentExtraction",
    "ComplexityAnalysis",
    "ConceptOrganization",
    "QuestionSet",
    "DiagramAnalysis",
    "StudyNotes",
    "ComplexityProfile",
    "KeyTerm",
    "Formula",
    "ConceptBlock",
    "Diagram",
    "PracticeQuestion",
    "Misconception",
]
