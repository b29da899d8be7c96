from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ExtractedConcept(BaseModel):
    """A concept as returned by the extraction call."""

    id: Optional[str] = Field(description="Stable concept identifier", default=None)
    name: str = Field(description="Concept name")
    description: str = Field(description="What the concept is about")
    difficulty: str = Field(description="Beginner, Intermediate or Advanced")
    prerequisites: List[str] = Field(
        description="Names of concepts that should be learned first",
        default_factory=list,
    )
    sub_concepts: List[str] = Field(
        description="Smaller ideas that make up this concept", default_factory=list
    )
    examples: List[str] = Field(
        description="Real-world examples", default_factory=list
    )
    misconceptions: List[str] = Field(
        description="Common misconceptions", default_factory=list
    )
    key_principles: List[str] = Field(
        description="Key formulas or principles, if applicable",
        default_factory=list,
    )
    estimated_time: str = Field(description="Estimated study time, e.g. '20 min'")
    blooms_level: Optional[str] = Field(
        description="Bloom's taxonomy level", default=None
    )


class ConceptExtraction(BaseModel):
    concepts: List[ExtractedConcept]


class Concept(ExtractedConcept):
    """A concept tracked for the lifetime of a learning session."""

    id: str
    extracted_at: datetime = Field(default_factory=datetime.now)
    source_subject: Optional[str] = None
    source_topic: Optional[str] = None
    mastery_level: float = Field(default=0, ge=0, le=100)
    attempts: int = 0
    correct_answers: int = 0


class PathwayConcept(Concept):
    order: int
    is_unlocked: bool
    dependencies: List[str] = Field(default_factory=list)


class LearningPathway(BaseModel):
    pathway: List[PathwayConcept] = Field(default_factory=list)
    total_estimated_time: str = "0 min"
    total_concepts: int = 0
    difficulty_distribution: Dict[str, int] = Field(
        default_factory=lambda: {d.value: 0 for d in Difficulty}
    )


class ConceptPerformance(BaseModel):
    """A user's recorded performance on one concept."""

    mastery_level: float = Field(default=0, ge=0, le=100)
    attempts: int = 0
    correct_answers: int = 0


# Keyed by concept id
UserPerformance = Dict[str, ConceptPerformance]
