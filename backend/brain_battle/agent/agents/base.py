"""Shared plumbing for the notes agents.

Every agent makes exactly one JSON-mode chat completion per run. The base
class owns the call, the parsing and the timing; subclasses only write
prompts and, where needed, post-process the parsed payload. ``execute``
never raises: any failure comes back as a failed ``AgentOutput``.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from brain_battle.agent.llm import ChatMessage, LLMClient, get_llm_client
from brain_battle.agent.llm_utils import parse_llm_json_object
from brain_battle.agent.types import AgentInput, AgentOutput, AgentRunMetadata
from brain_battle.core.logging import get_logger
from brain_battle.schemas.agents import ContentExtraction
from brain_battle.schemas.notes import LLMPayload


def head_lines(text: str, limit: int) -> str:
    """First ``limit`` lines of ``text``."""
    return "\n".join(text.split("\n")[:limit])


def key_terms_json(extraction: ContentExtraction | None, limit: int) -> str | None:
    if extraction is None:
        return None
    terms = [term.model_dump() for term in extraction.key_terms[:limit]]
    return json.dumps(terms, indent=2, ensure_ascii=False)


def relevant_excerpts(agent_input: AgentInput, limit: int = 10) -> str | None:
    chunks = agent_input.relevant_chunks[:limit]
    if not chunks:
        return None
    lines = [f"Chunk {index}: {chunk.content}" for index, chunk in enumerate(chunks, start=1)]
    return "RELEVANT EXCERPTS (semantic search):\n" + "\n\n".join(lines)


def study_preferences(agent_input: AgentInput) -> str | None:
    if agent_input.study_context is None:
        return None
    described = agent_input.study_context.describe()
    if not described:
        return None
    return (
        f"STUDY PREFERENCES:\n{described}\n"
        "Tailor the output to these preferences while keeping everything grounded in the documents."
    )


def join_sections(*sections: str | None) -> str:
    """Join the non-empty prompt sections with blank lines."""
    return "\n\n".join(section for section in sections if section)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class BaseAgent(ABC):
    name: ClassVar[str]
    key: ClassVar[str]
    description: ClassVar[str]
    # Documentation only; phase membership lives in the orchestrator
    dependencies: ClassVar[tuple[str, ...]] = ()
    temperature: ClassVar[float] = 0.3
    result_model: ClassVar[type[LLMPayload]]

    def __init__(self, llm_client: LLMClient | None = None) -> None:
        self._llm_client = llm_client
        self.logger = get_logger(__name__, agent=self.name)

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = get_llm_client()
        return self._llm_client

    @abstractmethod
    def build_system_prompt(self, agent_input: AgentInput) -> str:
        ...

    @abstractmethod
    def build_user_prompt(self, agent_input: AgentInput) -> str:
        ...

    def short_circuit(self, agent_input: AgentInput) -> AgentOutput[Any] | None:
        """Return a result to skip the LLM call entirely."""
        return None

    def postprocess(self, data: Any, agent_input: AgentInput) -> Any:
        return data

    def failure_data(self) -> Any:
        """Data attached to a failed output."""
        return None

    def summarize(self, data: Any) -> dict[str, Any]:
        """Counts logged on completion."""
        return {}

    async def execute(self, agent_input: AgentInput) -> AgentOutput[Any]:
        skipped = self.short_circuit(agent_input)
        if skipped is not None:
            return skipped

        self.logger.info("Agent started")
        start = time.monotonic()
        tokens_used = 0

        try:
            messages: list[ChatMessage] = [
                {"role": "system", "content": self.build_system_prompt(agent_input)},
                {"role": "user", "content": self.build_user_prompt(agent_input)},
            ]
            completion = await self.llm_client.chat_completion(
                messages,
                response_format="json_object",
                temperature=self.temperature,
            )
            tokens_used = completion.usage.total_tokens

            payload = parse_llm_json_object(completion.content)
            data = self.postprocess(self.result_model.model_validate(payload), agent_input)
        except Exception as e:
            elapsed = _elapsed_ms(start)
            self.logger.error(
                "Agent failed",
                error=str(e),
                error_type=type(e).__name__,
                elapsed_ms=elapsed,
                exc_info=True,
            )
            return AgentOutput.failed(
                str(e) or type(e).__name__,
                data=self.failure_data(),
                metadata=AgentRunMetadata(tokens_used=tokens_used, processing_time_ms=elapsed),
            )

        elapsed = _elapsed_ms(start)
        self.logger.info(
            "Agent completed",
            tokens_used=tokens_used,
            elapsed_ms=elapsed,
            **self.summarize(data),
        )
        return AgentOutput(
            success=True,
            data=data,
            metadata=AgentRunMetadata(tokens_used=tokens_used, processing_time_ms=elapsed),
        )
