"""Concept Organizer - turns extracted content into an outline and concept blocks."""

import json
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
from brain_battle.schemas.agents import ConceptOrganization

DOCUMENT_LINE_LIMIT = 10000
KEY_TERM_LIMIT = 20

SYSTEM_PROMPT = """\
You are a study material organizer. Structure the extracted content into comprehensive study materials.

REQUIREMENTS:
1. Create an outline that follows the document structure
2. Organize concepts with headings, bullets, examples, and connections
3. Use the exact terminology and definitions from the documents
4. Include page references for all facts
5. Write study tips based on the actual content
6. Identify common misconceptions
7. Do NOT use generic filler - everything must be specific to the documents

Return a JSON object with:
{
  "outline": ["string (p. N)"],
  "concepts": [{
    "heading": "string",
    "bullets": ["string (p. N)"],
    "examples": ["string (p. N)"],
    "connections": ["string"]
  }],
  "study_tips": ["string (p. N)"],
  "common_misconceptions": [{
    "misconception": "string",
    "correction": "string (p. N)",
    "why_common": "string"
  }]
}"""


class ConceptOrganizerAgent(BaseAgent):
    name = "ConceptOrganizer"
    key = "concept_organizer"
    description = "Organizes content into structured concepts, outlines, and study materials"
    dependencies = ("ContentExtractor", "ComplexityAnalyzer")
    temperature = 0.3
    result_model = ConceptOrganization

    def build_system_prompt(self, agent_input: AgentInput) -> str:
        return SYSTEM_PROMPT

    def build_user_prompt(self, agent_input: AgentInput) -> str:
        upstream = agent_input.upstream
        key_terms = key_terms_json(upstream.content_extraction, KEY_TERM_LIMIT)
        complexity = (
            json.dumps(upstream.complexity_analysis.model_dump(), indent=2, ensure_ascii=False)
            if upstream.complexity_analysis is not None
            else None
        )

        return join_sections(
            "Organize this content into structured study materials:",
            f"DOCUMENT CONTENT:\n{head_lines(agent_input.document_content, DOCUMENT_LINE_LIMIT)}",
            f"EXTRACTED KEY TERMS:\n{key_terms}" if key_terms else None,
            f"COMPLEXITY ANALYSIS:\n{complexity}" if complexity else None,
            relevant_excerpts(agent_input),
            f"TOPIC: {agent_input.topic}" if agent_input.topic else None,
            f"INSTRUCTIONS: {agent_input.instructions}" if agent_input.instructions else None,
            study_preferences(agent_input),
            "Create a structured outline, organize concepts, and provide study tips. "
            "Include page references for all content.",
        )

    def summarize(self, data: ConceptOrganization) -> dict[str, Any]:
        return {"outline_items": len(data.outline), "concepts": len(data.concepts)}
