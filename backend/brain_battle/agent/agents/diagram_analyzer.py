"""Diagram Analyzer - titles and captions the images extracted from the documents."""

from typing import Any

from brain_battle.agent.agents.base import BaseAgent, join_sections, key_terms_json
from brain_battle.agent.types import AgentInput, AgentOutput, AgentRunMetadata, ExtractedImage
from brain_battle.schemas.agents import DiagramAnalysis
from brain_battle.schemas.notes import Diagram

DOCUMENT_CHAR_LIMIT = 5000
KEY_TERM_LIMIT = 20

SYSTEM_PROMPT = """\
You are a diagram and figure analysis specialist. Analyze images extracted from educational documents and describe them definitively.

REQUIREMENTS:
1. Work out what each diagram or figure shows from the document context
2. Give each one a descriptive title that states its purpose
3. Write a detailed caption explaining what it illustrates
4. Identify the diagram type (flowchart, tree, graph, table, trace, algorithm visualization, ...)
5. List keywords that could be used for a web image search
6. Reference the page number where the diagram appears
7. Connect each diagram to concepts named in the document

LANGUAGE:
- NEVER hedge: no "likely", "possibly", "may", "might", "probably", "perhaps", "appears to", "seems to", "could be"
- State it directly: "This diagram shows...", "The figure illustrates...", "This visualization demonstrates..."
- Ground every description in the document context
- Use conditional language only if you genuinely cannot tell what the diagram shows

Return a JSON object with:
{
  "diagrams": [{
    "source": "file",
    "title": "Descriptive title based on content",
    "caption": "What the diagram shows and how it relates to the document (p. N)",
    "page": N,
    "type": "diagram|table|trace|flowchart|tree|graph|algorithm|visualization",
    "keywords": ["relevant", "search", "terms"],
    "relates_to_concepts": ["concept1", "concept2"]
  }]
}

Name the specific algorithms, processes or structures the document discusses when a diagram depicts them."""


def _describe_image(index: int, image: ExtractedImage) -> str:
    lines = [f"Image {index}:", f"  - Page: {image.page}"]
    if image.width and image.height:
        lines.append(f"  - Dimensions: {image.width}x{image.height}px")
    if image.image_data_b64:
        lines.append("  - [Base64 image data available]")
    return "\n".join(lines)


class DiagramAnalyzerAgent(BaseAgent):
    name = "DiagramAnalyzer"
    key = "diagram_analyzer"
    description = "Analyzes extracted diagrams and figures to generate titles, captions, and descriptions"
    dependencies = ("ContentExtractor",)
    temperature = 0.3
    result_model = DiagramAnalysis

    def short_circuit(self, agent_input: AgentInput) -> AgentOutput[DiagramAnalysis] | None:
        if agent_input.has_images:
            return None
        self.logger.info("No images to analyze")
        return AgentOutput(success=True, data=DiagramAnalysis(), metadata=AgentRunMetadata())

    def failure_data(self) -> DiagramAnalysis:
        return DiagramAnalysis()

    def build_system_prompt(self, agent_input: AgentInput) -> str:
        return SYSTEM_PROMPT

    def build_user_prompt(self, agent_input: AgentInput) -> str:
        key_terms = key_terms_json(agent_input.upstream.content_extraction, KEY_TERM_LIMIT)
        images = "\n".join(
            _describe_image(index, image)
            for index, image in enumerate(agent_input.extracted_images, start=1)
        )

        return join_sections(
            "Analyze these extracted diagrams from the document:",
            f"DOCUMENT CONTEXT (first {DOCUMENT_CHAR_LIMIT} chars):\n"
            f"{agent_input.document_content[:DOCUMENT_CHAR_LIMIT]}",
            f"KEY TERMS FROM DOCUMENT:\n{key_terms}" if key_terms else None,
            f"EXTRACTED IMAGES:\n{images}",
            f"TOPIC: {agent_input.topic}" if agent_input.topic else None,
            "For each image, use the document context to write a descriptive title, a detailed "
            "caption with a page reference, search keywords, the visualization type, and the "
            "document concepts it relates to.",
        )

    def postprocess(self, data: DiagramAnalysis, agent_input: AgentInput) -> DiagramAnalysis:
        return DiagramAnalysis(diagrams=self.match_images(data.diagrams, agent_input.extracted_images))

    def match_images(self, diagrams: list[Diagram], images: list[ExtractedImage]) -> list[Diagram]:
        """Attach each analysed diagram to its source image.

        A diagram takes the first image on the page it reports. Without such
        an image it takes the image at its own position. When both a page
        candidate and a positional candidate exist the page one wins.
        """
        enriched = []
        for index, diagram in enumerate(diagrams):
            image = None
            if diagram.page is not None:
                image = next((img for img in images if img.page == diagram.page), None)

            if image is None and index < len(images):
                image = images[index]
                self.logger.warning(
                    "Page number mismatch, matching diagram by position",
                    diagram=index + 1,
                    reported_page=diagram.page,
                    image_page=image.page,
                )

            update: dict[str, Any] = {"source": "file"}
            if image is not None:
                update.update(
                    page=image.page,
                    image_data_b64=image.image_data_b64,
                    width=image.width,
                    height=image.height,
                )
            enriched.append(diagram.model_copy(update=update))
        return enriched

    def summarize(self, data: DiagramAnalysis) -> dict[str, Any]:
        return {"diagrams": len(data.diagrams)}
