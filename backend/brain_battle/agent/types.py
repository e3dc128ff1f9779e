"""Agent input/output types shared by the notes agents and the orchestrator."""

from collections.abc import Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from brain_battle.schemas.agents import ComplexityAnalysis, ContentExtraction
from brain_battle.schemas.notes import StudyNotes

DataT = TypeVar("DataT")


class ExtractedImage(BaseModel):
    """A bitmap pulled out of an uploaded PDF."""

    page: int
    width: int | None = None
    height: int | None = None
    image_data_b64: str | None = None


class RelevantChunk(BaseModel):
    """A semantic-search hit over the uploaded documents."""

    content: str
    similarity: float | None = None
    source: str | None = None


class StudyContext(BaseModel):
    """Study preferences chosen in the UI."""

    study_focus: str | None = None
    question_types: list[str] = []
    difficulty: str | None = None
    special_instructions: str | None = None

    def describe(self) -> str:
        lines = []
        if self.study_focus:
            lines.append(f"- Study Focus: {self.study_focus}")
        if self.question_types:
            lines.append(f"- Preferred Question Types: {', '.join(self.question_types)}")
        if self.difficulty:
            lines.append(f"- Difficulty Level: {self.difficulty}")
        if self.special_instructions:
            lines.append(f"- Special Instructions: {self.special_instructions}")
        return "\n".join(lines)


class UpstreamContext(BaseModel):
    """Phase 1 results handed to Phase 2 agents.

    A slot is ``None`` when the agent that fills it failed.
    """

    model_config = ConfigDict(frozen=True)

    content_extraction: ContentExtraction | None = None
    complexity_analysis: ComplexityAnalysis | None = None


class AgentInput(BaseModel):
    """Task descriptor passed to every agent in a run."""

    model_config = ConfigDict(frozen=True)

    document_content: str
    file_names: list[str] = []
    topic: str | None = None
    difficulty: str | None = None
    instructions: str | None = None
    study_context: StudyContext | None = None
    extracted_images: list[ExtractedImage] = []
    relevant_chunks: list[RelevantChunk] = []
    upstream: UpstreamContext = Field(default_factory=UpstreamContext)

    @property
    def has_images(self) -> bool:
        return len(self.extracted_images) > 0

    def with_upstream(
        self,
        *,
        content_extraction: ContentExtraction | None = None,
        complexity_analysis: ComplexityAnalysis | None = None,
    ) -> "AgentInput":
        """Return a shallow copy carrying a fresh upstream context."""
        return self.model_copy(
            update={
                "upstream": UpstreamContext(
                    content_extraction=content_extraction,
                    complexity_analysis=complexity_analysis,
                )
            }
        )

    @classmethod
    def from_documents(cls, documents: Iterable[tuple[str, str]], **fields: object) -> "AgentInput":
        """Build an input from ``(file name, text)`` pairs.

        Each non-blank document becomes a ``=== name ===`` block; every file
        name is recorded even when its text is blank.
        """
        file_names = []
        blocks = []
        for name, text in documents:
            file_names.append(name)
            if text.strip():
                blocks.append(f"=== {name} ===\n{text}\n")
        return cls(document_content="".join(blocks), file_names=file_names, **fields)


class AgentRunMetadata(BaseModel):
    tokens_used: int = 0
    processing_time_ms: int = 0


class AgentOutput(BaseModel, Generic[DataT]):
    """Result of one agent execution."""

    success: bool
    data: DataT | None = None
    errors: list[str] = []
    metadata: AgentRunMetadata = Field(default_factory=AgentRunMetadata)

    @model_validator(mode="after")
    def _failure_has_errors(self) -> "AgentOutput[DataT]":
        if not self.success and not self.errors:
            raise ValueError("A failed agent output must carry at least one error")
        return self

    @classmethod
    def failed(
        cls,
        message: str,
        data: DataT | None = None,
        metadata: AgentRunMetadata | None = None,
    ) -> "AgentOutput[DataT]":
        return cls(
            success=False,
            data=data,
            errors=[message],
            metadata=metadata or AgentRunMetadata(),
        )

    @property
    def error_summary(self) -> str:
        return ", ".join(self.errors)


class OrchestratorMetadata(BaseModel):
    total_time_ms: int = 0
    agent_times: dict[str, int] = {}
    tokens_used: int = 0
    agents_executed: list[str] = []
    # Notes sections filled from defaults because their agent failed
    defaulted_sections: list[str] = []


class OrchestratorResult(BaseModel):
    success: bool
    notes: StudyNotes | None = None
    metadata: OrchestratorMetadata = Field(default_factory=OrchestratorMetadata)
    errors: list[str] | None = None
