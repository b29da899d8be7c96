import logging
from typing import List

from adaptive_learning.errors import OperationFailed
from adaptive_learning.models.concepts import Concept, ConceptExtraction
from adaptive_learning.models.content import ContentAnalysis
from adaptive_learning.services.llm import LLMService

logger = logging.getLogger(__name__)


class ConceptExtractionService:
    """Extracts detailed learning concepts from a content analysis."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def extract_concepts(self, analysis: ContentAnalysis) -> List[Concept]:
        try:
            extraction = await self.llm.complete(
                "concepts",
                "extract_concepts",
                ConceptExtraction,
                subject=analysis.subject,
                topic=analysis.topic,
                key_concepts=", ".join(analysis.key_concepts),
                learning_objectives=", ".join(analysis.learning_objectives),
                summary=analysis.summary,
            )

            concepts = [
                Concept(
                    **{
                        **extracted.model_dump(),
                        "id": extracted.id or f"concept_{index + 1}",
                    },
                    source_subject=analysis.subject,
                    source_topic=analysis.topic,
                )
                for index, extracted in enumerate(extraction.concepts)
            ]
        except Exception as e:
            logger.error(f"Error extracting concepts: {str(e)}")
            raise OperationFailed("Failed to extract concepts from content") from e

        logger.info(
            f"Extracted {len(concepts)} concepts for {analysis.subject} / "
            f"{analysis.topic}"
        )
        return concepts
