"""Shared fixtures: a scripted LLM client and sample inputs."""

import asyncio
import copy
import json
from typing import Any

import pytest

from brain_battle.agent.llm import ChatCompletion, ChatMessage, LLMClient, TokenUsage
from brain_battle.agent.types import AgentInput, ExtractedImage

# The opening line of each agent's system prompt identifies the caller
AGENT_MARKERS = {
    "content_extractor": "content extraction specialist",
    "complexity_analyzer": "educational content analyst",
    "concept_organizer": "study material organizer",
    "question_generator": "question generation specialist",
    "diagram_analyzer": "diagram and figure analysis specialist",
}

DEFAULT_REPLIES: dict[str, Any] = {
    "content_extractor": {
        "key_terms": [
            {
                "term": "Entropy",
                "definition": '"a measure of the disorder of a system" (p. 2)',
                "importance": "high",
            },
            {
                "term": "Internal energy",
                "definition": '"the total energy contained in a system" (p. 1)',
                "importance": "medium",
            },
        ],
        "structure": {
            "sections": ["First Law", "Second Law"],
            "headings": ["Laws of Thermodynamics"],
        },
        "examples": [{"title": "Melting ice", "content": "Ice absorbs heat at 0 C (p. 2)"}],
        "formulas": [
            {
                "name": "First law of thermodynamics",
                "formula": "ΔU = Q - W",
                "description": "Energy conservation for a closed system (p. 1)",
                "variables": [
                    {"symbol": "Q", "meaning": "heat added to the system"},
                    {"symbol": "W", "meaning": "work done by the system"},
                ],
                "page": 1,
            }
        ],
    },
    "complexity_analyzer": {
        "subject": "Physics",
        "vocabulary_level": "advanced",
        "concept_sophistication": "theoretical",
        "prerequisite_knowledge": ["Basic calculus (p. 1)"],
        "reasoning_level": "analysis",
        "education_level": "college",
        "difficulty_level": "advanced",
        "evidence": {
            "vocabulary_examples": ["isentropic (p. 2)"],
            "complexity_indicators": ["derivations (p. 3)"],
        },
    },
    "concept_organizer": {
        "outline": ["Laws of Thermodynamics (p. 1)", "Entropy and disorder (p. 2)"],
        "concepts": [
            {
                "heading": "The First Law",
                "bullets": ["Energy is conserved (p. 1)"],
                "examples": ["A piston doing work (p. 1)"],
                "connections": ["Internal energy"],
            }
        ],
        "study_tips": ["Derive the first law from energy conservation (p. 1)"],
        "common_misconceptions": [
            {
                "misconception": "Entropy always decreases in living systems",
                "correction": "Total entropy of the system and surroundings increases (p. 2)",
                "why_common": "Organisms look increasingly ordered",
            }
        ],
    },
    "question_generator": {
        "practice_questions": [
            {
                "question": "What does ΔU = Q - W express?",
                "answer": "Conservation of energy",
                "type": "multiple-choice",
                "options": ["Conservation of energy", "Entropy increase", "Zeroth law"],
                "difficulty": "easy",
                "explanation": "The first law is energy conservation (p. 1)",
                "topic": "First law",
                "page_reference": 1,
            },
            {
                "question": "Entropy of an isolated system can decrease.",
                "answer": "False",
                "type": "true_false",
                "difficulty": "medium",
                "explanation": "The second law forbids it (p. 2)",
                "topic": "Second law",
                "page_reference": "2",
            },
        ]
    },
    "diagram_analyzer": {
        "diagrams": [
            {
                "source": "file",
                "title": "Carnot Cycle on a P-V Diagram",
                "caption": "This diagram shows the four stages of the Carnot cycle (p. 3)",
                "page": 3,
                "type": "graph",
                "keywords": ["carnot cycle", "pv diagram"],
                "relates_to_concepts": ["Entropy"],
            }
        ]
    },
}

DEFAULT_TOKENS = {
    "content_extractor": 1200,
    "complexity_analyzer": 800,
    "concept_organizer": 1500,
    "question_generator": 1100,
    "diagram_analyzer": 600,
}


class ScriptedLLMClient(LLMClient):
    """LLMClient that answers each agent from a script.

    A reply may be a dict (sent as JSON), a raw string, or an exception to
    raise. ``events`` records ``start:<agent>`` / ``end:<agent>`` in order.
    """

    provider = "scripted"

    def __init__(
        self,
        replies: dict[str, Any] | None = None,
        tokens: dict[str, int] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self.tokens = {**DEFAULT_TOKENS, **(tokens or {})}
        self.delays = delays or {}
        self.calls: list[dict[str, Any]] = []
        self.events: list[str] = []

    @staticmethod
    def agent_for(system_prompt: str) -> str:
        for key, marker in AGENT_MARKERS.items():
            if marker in system_prompt:
                return key
        raise AssertionError(f"Unrecognised system prompt: {system_prompt[:80]}")

    def call_count(self, key: str) -> int:
        return sum(1 for call in self.calls if call["agent"] == key)

    def user_prompt(self, key: str) -> str:
        return next(call["messages"][1]["content"] for call in self.calls if call["agent"] == key)

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        *,
        response_format: str = "text",
        temperature: float = 0.2,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletion:
        key = self.agent_for(messages[0]["content"])
        self.calls.append(
            {
                "agent": key,
                "messages": messages,
                "response_format": response_format,
                "temperature": temperature,
            }
        )
        self.events.append(f"start:{key}")
        await asyncio.sleep(self.delays.get(key, 0))
        self.events.append(f"end:{key}")

        reply = self.replies[key]
        if isinstance(reply, BaseException):
            raise reply
        content = reply if isinstance(reply, str) else json.dumps(reply)
        total = self.tokens[key]
        return ChatCompletion(
            content=content,
            usage=TokenUsage(prompt_tokens=total // 2, completion_tokens=total - total // 2, total_tokens=total),
            model="scripted-model",
        )


@pytest.fixture
def scripted_llm():
    """Factory for ScriptedLLMClient instances."""

    def make(**kwargs: Any) -> ScriptedLLMClient:
        return ScriptedLLMClient(**kwargs)

    return make


@pytest.fixture
def default_replies() -> dict[str, Any]:
    """A copy of the replies ScriptedLLMClient gives when not told otherwise."""
    return copy.deepcopy(DEFAULT_REPLIES)


@pytest.fixture
def document_text() -> str:
    return (
        "=== thermo.pdf ===\n"
        "Chapter 1: Laws of Thermodynamics\n"
        "The first law states ΔU = Q - W.\n"
        "Entropy is a measure of the disorder of a system.\n"
        "Figure 3 shows the Carnot cycle.\n"
    )


@pytest.fixture
def text_only_input(document_text: str) -> AgentInput:
    return AgentInput(document_content=document_text, file_names=["thermo.pdf"])


@pytest.fixture
def image_input(document_text: str) -> AgentInput:
    return AgentInput(
        document_content=document_text,
        file_names=["thermo.pdf"],
        topic="Thermodynamics",
        extracted_images=[
            ExtractedImage(page=3, width=640, height=480, image_data_b64="aW1hZ2UtcGFnZS0z"),
        ],
    )
