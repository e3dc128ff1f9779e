"""Complexity Analyzer - classifies reading level and prerequisites."""

from typing import Any

from brain_battle.agent.agents.base import BaseAgent, head_lines, join_sections
from brain_battle.agent.types import AgentInput
from brain_battle.schemas.agents import ComplexityAnalysis

DOCUMENT_LINE_LIMIT = 8000

SYSTEM_PROMPT = """\
You are an educational content analyst. Analyze document complexity and determine the appropriate education level.

REQUIREMENTS:
1. Name the subject the documents belong to
2. Analyze vocabulary level (basic, intermediate, advanced, expert)
3. Assess concept sophistication (concrete, abstract, theoretical, research)
4. Identify prerequisite knowledge that is mentioned or implied
5. Determine the reasoning level required (memorization, comprehension, application, analysis, synthesis, evaluation)
6. Infer the education level (elementary, middle_school, high_school, college, graduate, professional)
7. Back every judgement with evidence and page references

Return a JSON object matching this schema:
{
  "subject": "string",
  "vocabulary_level": "basic|intermediate|advanced|expert",
  "concept_sophistication": "concrete|abstract|theoretical|research",
  "prerequisite_knowledge": ["string (p. N)"],
  "reasoning_level": "memorization|comprehension|application|analysis|synthesis|evaluation",
  "education_level": "elementary|middle_school|high_school|college|graduate|professional",
  "difficulty_level": "beginner|intermediate|advanced",
  "evidence": {"vocabulary_examples": ["string (p. N)"], "complexity_indicators": ["string (p. N)"]}
}"""


class ComplexityAnalyzerAgent(BaseAgent):
    name = "ComplexityAnalyzer"
    key = "complexity_analyzer"
    description = "Analyzes document complexity, education level, and prerequisites"
    dependencies = ()
    temperature = 0.3
    result_model = ComplexityAnalysis

    def build_system_prompt(self, agent_input: AgentInput) -> str:
        return SYSTEM_PROMPT

    def build_user_prompt(self, agent_input: AgentInput) -> str:
        return join_sections(
            "Analyze the complexity of these documents:",
            f"DOCUMENTS:\n{head_lines(agent_input.document_content, DOCUMENT_LINE_LIMIT)}",
            f"REQUESTED DIFFICULTY: {agent_input.difficulty}" if agent_input.difficulty else None,
            "Analyze vocabulary, concepts, prerequisites, and reasoning requirements. "
            "Provide evidence with page references.",
        )

    def summarize(self, data: ComplexityAnalysis) -> dict[str, Any]:
        return {
            "education_level": data.education_level,
            "difficulty_level": data.difficulty_level,
        }
