"""Notes agents."""

from brain_battle.agent.agents.base import BaseAgent
from brain_battle.agent.agents.complexity_analyzer import ComplexityAnalyzerAgent
from brain_battle.agent.agents.concept_organizer import ConceptOrganizerAgent
from brain_battle.agent.agents.content_extractor import ContentExtractorAgent
from brain_battle.agent.agents.diagram_analyzer import DiagramAnalyzerAgent
from brain_battle.agent.agents.question_generator import QuestionGeneratorAgent

__all__ = [
    "BaseAgent",
    "ContentExtractorAgent",
    "ComplexityAnalyzerAgent",
    "ConceptOrganizerAgent",
    "QuestionGeneratorAgent",
    "DiagramAnalyzerAgent",
]
