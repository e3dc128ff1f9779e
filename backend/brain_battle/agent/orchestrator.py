"""Multi-agent study notes orchestrator.

Runs the notes agents as a LangGraph workflow with two fan-out phases and a
final assembly step:

    begin_phase_1 -> content_extractor, complexity_analyzer
                  -> begin_phase_2 -> concept_organizer, question_generator,
                                      diagram_analyzer
                  -> begin_assembly -> assemble_notes

Nodes in one phase run concurrently. A multi-source edge only fires once
every source has finished, so it acts as the phase barrier.
"""

import operator
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, TypedDict

import structlog
from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from brain_battle.agent.agents import (
    BaseAgent,
    ComplexityAnalyzerAgent,
    ConceptOrganizerAgent,
    ContentExtractorAgent,
    DiagramAnalyzerAgent,
    QuestionGeneratorAgent,
)
from brain_battle.agent.llm import LLMClient
from brain_battle.agent.types import (
    AgentInput,
    AgentOutput,
    OrchestratorMetadata,
    OrchestratorResult,
)
from brain_battle.core.logging import get_logger
from brain_battle.schemas.agents import (
    ComplexityAnalysis,
    ConceptOrganization,
    ContentExtraction,
    DiagramAnalysis,
    QuestionSet,
)
from brain_battle.schemas.notes import ComplexityProfile, Diagram, StudyNotes

logger = get_logger(__name__)

CONTENT_EXTRACTOR = "content_extractor"
COMPLEXITY_ANALYZER = "complexity_analyzer"
CONCEPT_ORGANIZER = "concept_organizer"
QUESTION_GENERATOR = "question_generator"
DIAGRAM_ANALYZER = "diagram_analyzer"

# Phase membership. An agent only reads results of earlier phases.
PHASES: dict[int, tuple[str, ...]] = {
    1: (CONTENT_EXTRACTOR, COMPLEXITY_ANALYZER),
    2: (CONCEPT_ORGANIZER, QUESTION_GENERATOR, DIAGRAM_ANALYZER),
}

# Notes sections owned by each agent, reported when filled from defaults
AGENT_SECTIONS: dict[str, tuple[str, ...]] = {
    COMPLEXITY_ANALYZER: ("complexity_analysis",),
    CONTENT_EXTRACTOR: ("key_terms", "formulas"),
    CONCEPT_ORGANIZER: ("outline", "concepts", "study_tips", "common_misconceptions"),
    QUESTION_GENERATOR: ("practice_questions",),
    DIAGRAM_ANALYZER: ("diagrams",),
}


class RunStage(str, Enum):
    IDLE = "idle"
    PHASE_1 = "phase_1"
    PHASE_2 = "phase_2"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True)
class AgentRun:
    """One agent invocation, as recorded by the orchestrator."""

    key: str
    name: str
    output: AgentOutput[Any]
    elapsed_ms: int
    finished_at: float


def _merge(left: dict, right: dict) -> dict:
    return {**left, **right}


class NotesState(TypedDict):
    agent_input: AgentInput
    stage: RunStage
    phase_started_at: Annotated[dict[int, float], _merge]
    outputs: Annotated[dict[str, AgentOutput[Any]], _merge]
    runs: Annotated[list[AgentRun], operator.add]
    notes: StudyNotes | None
    defaulted_sections: list[str]


def _successful_data(outputs: Mapping[str, AgentOutput[Any]], key: str) -> Any:
    output = outputs.get(key)
    if output is None or not output.success:
        return None
    return output.data


def _placeholder_diagrams(agent_input: AgentInput) -> list[Diagram]:
    return [
        Diagram(
            source="file",
            title=f"Diagram {index}",
            caption=f"Extracted from page {image.page}",
            page=image.page,
            image_data_b64=image.image_data_b64,
            width=image.width,
            height=image.height,
        )
        for index, image in enumerate(agent_input.extracted_images, start=1)
    ]


def assemble_notes(
    agent_input: AgentInput, outputs: Mapping[str, AgentOutput[Any]]
) -> tuple[StudyNotes, list[str]]:
    """Merge agent outputs into a StudyNotes document.

    Returns the notes and the sections that were filled from defaults
    because the owning agent failed or never reported.
    """
    extraction: ContentExtraction | None = _successful_data(outputs, CONTENT_EXTRACTOR)
    complexity: ComplexityAnalysis | None = _successful_data(outputs, COMPLEXITY_ANALYZER)
    organization: ConceptOrganization | None = _successful_data(outputs, CONCEPT_ORGANIZER)
    questions: QuestionSet | None = _successful_data(outputs, QUESTION_GENERATOR)
    diagram_analysis: DiagramAnalysis | None = _successful_data(outputs, DIAGRAM_ANALYZER)

    extraction = extraction or ContentExtraction()
    complexity = complexity or ComplexityAnalysis()
    organization = organization or ConceptOrganization()
    questions = questions or QuestionSet()

    defaulted = [
        section
        for key, sections in AGENT_SECTIONS.items()
        if _successful_data(outputs, key) is None
        for section in sections
    ]

    outline_title = organization.outline[0].split("(")[0].strip() if organization.outline else ""
    title = agent_input.topic or outline_title or "Study Notes"

    profile_defaults = ComplexityProfile()
    profile = ComplexityProfile(
        vocabulary_level=complexity.vocabulary_level or profile_defaults.vocabulary_level,
        concept_sophistication=(
            complexity.concept_sophistication or profile_defaults.concept_sophistication
        ),
        prerequisite_knowledge=complexity.prerequisite_knowledge,
        reasoning_level=complexity.reasoning_level or profile_defaults.reasoning_level,
    )

    if diagram_analysis is not None and diagram_analysis.diagrams:
        diagrams = diagram_analysis.diagrams
    else:
        diagrams = _placeholder_diagrams(agent_input)

    notes = StudyNotes(
        title=title,
        subject=complexity.subject or "General",
        education_level=complexity.education_level or "college",
        difficulty_level=complexity.difficulty_level or "intermediate",
        complexity_analysis=profile,
        outline=organization.outline,
        key_terms=extraction.key_terms,
        concepts=organization.concepts,
        diagrams=diagrams,
        formulas=extraction.formulas,
        practice_questions=questions.practice_questions,
        study_tips=organization.study_tips,
        common_misconceptions=organization.common_misconceptions,
    )
    return notes, defaulted


class NotesOrchestrator:
    """Coordinates the notes agents and assembles their outputs."""

    def __init__(
        self,
        llm_client: LLMClient | None = None,
        agents: Mapping[str, BaseAgent] | None = None,
    ) -> None:
        self.agents: dict[str, BaseAgent] = {
            CONTENT_EXTRACTOR: ContentExtractorAgent(llm_client),
            COMPLEXITY_ANALYZER: ComplexityAnalyzerAgent(llm_client),
            CONCEPT_ORGANIZER: ConceptOrganizerAgent(llm_client),
            QUESTION_GENERATOR: QuestionGeneratorAgent(llm_client),
            DIAGRAM_ANALYZER: DiagramAnalyzerAgent(llm_client),
        }
        if agents:
            self.agents.update(agents)
        self.graph = self._build_graph()

    def _build_graph(self) -> CompiledStateGraph:
        workflow = StateGraph(NotesState)

        workflow.add_node("begin_phase_1", self._begin_phase(1, RunStage.PHASE_1))
        workflow.add_node("begin_phase_2", self._begin_phase(2, RunStage.PHASE_2))
        for phase, keys in PHASES.items():
            for key in keys:
                workflow.add_node(key, self._agent_node(key, phase))
        workflow.add_node("begin_assembly", self._begin_assembly)
        workflow.add_node("assemble_notes", self._assemble_node)

        workflow.add_edge(START, "begin_phase_1")
        for key in PHASES[1]:
            workflow.add_edge("begin_phase_1", key)
        workflow.add_edge(list(PHASES[1]), "begin_phase_2")
        for key in PHASES[2]:
            workflow.add_edge("begin_phase_2", key)
        workflow.add_edge(list(PHASES[2]), "begin_assembly")
        workflow.add_edge("begin_assembly", "assemble_notes")
        workflow.add_edge("assemble_notes", END)

        return workflow.compile()

    def _begin_phase(self, phase: int, stage: RunStage) -> Callable[[NotesState], dict[str, Any]]:
        def begin(state: NotesState) -> dict[str, Any]:
            logger.info("Phase started", phase=phase, agents=list(PHASES[phase]))
            return {"stage": stage, "phase_started_at": {phase: time.monotonic()}}

        return begin

    def _phase_input(self, key: str, state: NotesState) -> AgentInput:
        agent_input = state["agent_input"]
        if key in PHASES[1]:
            return agent_input

        outputs = state["outputs"]
        extraction = _successful_data(outputs, CONTENT_EXTRACTOR)
        if key == DIAGRAM_ANALYZER:
            return agent_input.with_upstream(content_extraction=extraction)
        return agent_input.with_upstream(
            content_extraction=extraction,
            complexity_analysis=_successful_data(outputs, COMPLEXITY_ANALYZER),
        )

    def _agent_node(
        self, key: str, phase: int
    ) -> Callable[[NotesState], Awaitable[dict[str, Any]]]:
        agent = self.agents[key]

        async def run(state: NotesState) -> dict[str, Any]:
            agent_input = state["agent_input"]
            if key == DIAGRAM_ANALYZER and not agent_input.has_images:
                logger.info("No extracted images, skipping agent", agent=agent.name)
                skipped: AgentOutput[DiagramAnalysis] = AgentOutput(
                    success=True, data=DiagramAnalysis()
                )
                return {"outputs": {key: skipped}}

            output = await agent.execute(self._phase_input(key, state))
            finished_at = time.monotonic()
            elapsed_ms = int((finished_at - state["phase_started_at"][phase]) * 1000)
            return {
                "outputs": {key: output},
                "runs": [
                    AgentRun(
                        key=key,
                        name=agent.name,
                        output=output,
                        elapsed_ms=elapsed_ms,
                        finished_at=finished_at,
                    )
                ],
            }

        return run

    @staticmethod
    def _begin_assembly(state: NotesState) -> dict[str, Any]:
        logger.info("Assembling notes", agents_reported=len(state["outputs"]))
        return {"stage": RunStage.ASSEMBLING}

    def _assemble_node(self, state: NotesState) -> dict[str, Any]:
        notes, defaulted = assemble_notes(state["agent_input"], state["outputs"])
        return {
            "stage": RunStage.COMPLETE,
            "notes": notes,
            "defaulted_sections": defaulted,
        }

    @staticmethod
    def _initial_state(agent_input: AgentInput) -> NotesState:
        return {
            "agent_input": agent_input,
            "stage": RunStage.IDLE,
            "phase_started_at": {},
            "outputs": {},
            "runs": [],
            "notes": None,
            "defaulted_sections": [],
        }

    @staticmethod
    def _metadata(start: float, state: NotesState) -> OrchestratorMetadata:
        runs = sorted(state["runs"], key=lambda run: run.finished_at)
        return OrchestratorMetadata(
            total_time_ms=int((time.monotonic() - start) * 1000),
            agent_times={run.key: run.elapsed_ms for run in runs},
            tokens_used=sum(run.output.metadata.tokens_used for run in runs),
            agents_executed=[run.key for run in runs],
            defaulted_sections=state["defaulted_sections"],
        )

    @staticmethod
    def _agent_errors(state: NotesState) -> list[str]:
        runs = sorted(state["runs"], key=lambda run: run.finished_at)
        return [f"{run.name}: {run.output.error_summary}" for run in runs if not run.output.success]

    async def generate_notes(self, agent_input: AgentInput) -> OrchestratorResult:
        """Run every phase and return the assembled notes. Never raises.

        Every log line emitted during the run carries the same ``run_id``.
        """
        with structlog.contextvars.bound_contextvars(run_id=uuid.uuid4().hex[:12]):
            return await self._run(agent_input)

    async def _run(self, agent_input: AgentInput) -> OrchestratorResult:
        start = time.monotonic()
        state = self._initial_state(agent_input)

        logger.info(
            "Starting multi-agent note generation",
            files=len(agent_input.file_names),
            images=len(agent_input.extracted_images),
            topic=agent_input.topic,
        )

        try:
            async for snapshot in self.graph.astream(state, stream_mode="values"):
                state = snapshot
            if state.get("notes") is None:
                raise RuntimeError("Notes assembly did not run")
        except Exception as e:
            logger.error(
                "Note generation failed",
                stage=RunStage.FATAL_ERROR.value,
                last_stage=RunStage(state["stage"]).value,
                error=str(e),
                exc_info=True,
            )
            return OrchestratorResult(
                success=False,
                notes=None,
                metadata=self._metadata(start, state),
                errors=[str(e) or type(e).__name__, *self._agent_errors(state)],
            )

        metadata = self._metadata(start, state)
        errors = self._agent_errors(state)
        logger.info(
            "Note generation completed",
            total_time_ms=metadata.total_time_ms,
            agents_executed=len(metadata.agents_executed),
            tokens_used=metadata.tokens_used,
            failed_agents=len(errors),
        )
        return OrchestratorResult(
            success=True,
            notes=state["notes"],
            metadata=metadata,
            errors=errors or None,
        )


_orchestrator: NotesOrchestrator | None = None


def get_orchestrator() -> NotesOrchestrator:
    """Get or create the global orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = NotesOrchestrator()
        logger.info("Notes orchestrator created")
    return _orchestrator
