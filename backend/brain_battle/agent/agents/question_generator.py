"""Question Generator - writes cited practice questions."""

from typing import Any

from brain_battle.agent.agents.base import (
    BaseAgent,
    head_lines,
    join_sections,
    key_terms_json,
    relevant_excerpts,
    study_preferences,
)
from brain_battle.agent.types import AgentInput
from brain_battle.schemas.agents import QuestionSet

DOCUMENT_LINE_LIMIT = 10000
KEY_TERM_LIMIT = 30

SYSTEM_PROMPT = """\
You are a question generation specialist. Create practice questions that test understanding of the ACTUAL document content.

REQUIREMENTS:
1. Base every question ONLY on the document content
2. Use the exact examples, data, and concepts from the documents
3. Include page references in questions and explanations
4. Vary the question types (multiple_choice, open_ended, true_false, fill_blank)
5. Give a detailed explanation with a citation for every answer
6. Match the difficulty to the document complexity

Return a JSON object with:
{
  "practice_questions": [{
    "question": "string",
    "answer": "string",
    "type": "multiple_choice|open_ended|true_false|fill_blank",
    "options": ["string"],
    "difficulty": "easy|medium|hard",
    "explanation": "string (p. N)",
    "topic": "string",
    "page_reference": "N"
  }]
}
Only multiple_choice questions carry "options"."""


class QuestionGeneratorAgent(BaseAgent):
    name = "QuestionGenerator"
    key = "question_generator"
    description = "Generates practice questions based on document content"
    dependencies = ("ContentExtractor",)
    # Slightly higher for question variety
    temperature = 0.4
    result_model = QuestionSet

    def build_system_prompt(self, agent_input: AgentInput) -> str:
        return SYSTEM_PROMPT

    def build_user_prompt(self, agent_input: AgentInput) -> str:
        upstream = agent_input.upstream
        key_terms = key_terms_json(upstream.content_extraction, KEY_TERM_LIMIT)
        complexity = None
        if upstream.complexity_analysis is not None:
            complexity = upstream.complexity_analysis.difficulty_level or "medium"

        return join_sections(
            "Generate practice questions from these documents:",
            f"DOCUMENT CONTENT:\n{head_lines(agent_input.document_content, DOCUMENT_LINE_LIMIT)}",
            f"KEY TERMS AND CONCEPTS:\n{key_terms}" if key_terms else None,
            f"COMPLEXITY: {complexity}" if complexity else None,
            f"REQUESTED DIFFICULTY: {agent_input.difficulty}" if agent_input.difficulty else None,
            relevant_excerpts(agent_input),
            study_preferences(agent_input),
            "Generate 8-15 practice questions that test understanding of the actual document "
            "content. Use specific examples from the documents. Include page references.",
        )

    def summarize(self, data: QuestionSet) -> dict[str, Any]:
        return {"questions": len(data.practice_questions)}
