"""Notes generation request schemas."""

from pydantic import BaseModel, Field

from brain_battle.agent.types import ExtractedImage, RelevantChunk, StudyContext


class SourceDocument(BaseModel):
    name: str
    content: str


class NotesGenerateRequest(BaseModel):
    documents: list[SourceDocument] = Field(min_length=1)
    topic: str | None = None
    difficulty: str | None = None
    instructions: str | None = None
    study_context: StudyContext | None = None
    extracted_images: list[ExtractedImage] = []
    relevant_chunks: list[RelevantChunk] = []
