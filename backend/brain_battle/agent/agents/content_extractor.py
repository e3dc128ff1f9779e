"""Content Extractor - quotes key terms, structure, examples and formulas."""

from typing import Any

from brain_battle.agent.agents.base import BaseAgent, head_lines, join_sections
from brain_battle.agent.types import AgentInput
from brain_battle.schemas.agents import ContentExtraction

DOCUMENT_LINE_LIMIT = 10000

SYSTEM_PROMPT = """\
You are a content extraction specialist. Extract key information from the documents with high precision.

REQUIREMENTS:
1. Extract key terms with their definitions exactly as they appear in the document
2. Identify the document structure (headings, sections, chapters)
3. Extract specific examples, formulas and data points
4. Quote exact phrases with quotation marks
5. Include page or section references when available
6. Do NOT generate or invent content - only extract what exists

Return a JSON object with:
{
  "key_terms": [{"term": "string", "definition": "string (p. N)", "importance": "high|medium|low"}],
  "structure": {"sections": ["string"], "headings": ["string"]},
  "examples": [{"title": "string", "content": "string (p. N)"}],
  "formulas": [{
    "name": "string",
    "formula": "string (exact formula as written)",
    "description": "string (p. N)",
    "variables": [{"symbol": "string", "meaning": "string"}],
    "page": N,
    "example": "string"
  }]
}

FORMULAS:
- Extract ALL formulas: complexity bounds (O(n log n)), recurrences (T(n) = ...), equations
- Copy every formula exactly as it appears in the document
- Include variable definitions when the document gives them
- Note the page number where each formula appears
- Include a worked example when one is shown"""


class ContentExtractorAgent(BaseAgent):
    name = "ContentExtractor"
    key = "content_extractor"
    description = "Extracts key terms, definitions, and structured content from documents"
    dependencies = ()
    temperature = 0.2
    result_model = ContentExtraction

    def build_system_prompt(self, agent_input: AgentInput) -> str:
        return SYSTEM_PROMPT

    def build_user_prompt(self, agent_input: AgentInput) -> str:
        return join_sections(
            "Extract content from these documents:",
            f"DOCUMENTS:\n{head_lines(agent_input.document_content, DOCUMENT_LINE_LIMIT)}",
            f"TOPIC: {agent_input.topic}" if agent_input.topic else None,
            f"INSTRUCTIONS: {agent_input.instructions}" if agent_input.instructions else None,
            "Extract all key terms, definitions, examples, and structure. "
            "Include page references when available.",
        )

    def summarize(self, data: ContentExtraction) -> dict[str, Any]:
        return {
            "key_terms": len(data.key_terms),
            "examples": len(data.examples),
            "formulas": len(data.formulas),
        }
