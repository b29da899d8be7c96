from unittest.mock import AsyncMock, MagicMock

import pytest
from adaptive_learning.errors import OperationFailed, SchemaViolation
from adaptive_learning.models.concepts import ConceptExtraction, ExtractedConcept
from adaptive_learning.models.content import ContentAnalysis
from adaptive_learning.services.concepts.extractor import ConceptExtractionService


def make_analysis():
    return ContentAnalysis(
        subject="Computer Science",
        topic="Python Basics",
        difficulty="Beginner",
        key_concepts=["Variables", "Loops"],
        learning_objectives=["Write a loop"],
        estimated_time="45 min",
        summary="An introduction to Python.",
    )


def make_extracted(name, concept_id=None):
    return ExtractedConcept(
        id=concept_id,
        name=name,
        description=f"About {name}",
        difficulty="Beginner",
        estimated_time="15 min",
    )


@pytest.mark.asyncio
async def test_extract_concepts_backfills_ids_and_source():
    llm = MagicMock()
    llm.complete = AsyncMock(
        return_value=ConceptExtraction(
            concepts=[
                make_extracted("Variables"),
                make_extracted("Loops", concept_id="loops"),
                make_extracted("Functions"),
            ]
        )
    )
    service = ConceptExtractionService(llm)

    concepts = await service.extract_concepts(make_analysis())

    assert [c.id for c in concepts] == ["concept_1", "loops", "concept_3"]
    assert all(c.source_subject == "Computer Science" for c in concepts)
    assert all(c.source_topic == "Python Basics" for c in concepts)
    assert all(c.mastery_level == 0 and c.attempts == 0 for c in concepts)

    args, kwargs = llm.complete.call_args
    assert args == ("concepts", "extract_concepts", ConceptExtraction)
    assert kwargs["key_concepts"] == "Variables, Loops"
    assert kwargs["summary"] == "An introduction to Python."


@pytest.mark.asyncio
async def test_extract_concepts_wraps_llm_errors():
    llm = MagicMock()
    llm.complete = AsyncMock(side_effect=SchemaViolation("missing concepts"))
    service = ConceptExtractionService(llm)

    with pytest.raises(OperationFailed, match="Failed to extract concepts"):
        await service.extract_concepts(make_analysis())
