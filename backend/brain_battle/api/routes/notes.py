"""Study notes routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from brain_battle.agent.orchestrator import NotesOrchestrator, get_orchestrator
from brain_battle.agent.types import AgentInput, OrchestratorResult
from brain_battle.core.logging import get_logger
from brain_battle.schemas.generation import NotesGenerateRequest

logger = get_logger(__name__)
router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/generate", response_model=OrchestratorResult)
async def generate_notes(
    data: NotesGenerateRequest,
    response: Response,
    orchestrator: Annotated[NotesOrchestrator, Depends(get_orchestrator)],
) -> OrchestratorResult:
    """Generate study notes from uploaded document text and images."""
    agent_input = AgentInput.from_documents(
        ((document.name, document.content) for document in data.documents),
        topic=data.topic,
        difficulty=data.difficulty,
        instructions=data.instructions,
        study_context=data.study_context,
        extracted_images=data.extracted_images,
        relevant_chunks=data.relevant_chunks,
    )
    if not agent_input.document_content.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No document content provided",
        )

    logger.info(
        "Notes generation requested",
        files=agent_input.file_names,
        images=len(agent_input.extracted_images),
        topic=data.topic,
    )
    result = await orchestrator.generate_notes(agent_input)
    if not result.success:
        logger.error("Notes generation failed", errors=result.errors)
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result
