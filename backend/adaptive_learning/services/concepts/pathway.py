"""Learning pathway construction.

Orders extracted concepts into a recommended learning sequence and annotates
each one with its position, unlock state and the other concepts it appears to
depend on.
"""
import re
from typing import Dict, List, Optional, Sequence

from adaptive_learning.models.concepts import (
    Concept,
    Difficulty,
    LearningPathway,
    PathwayConcept,
)

DIFFICULTY_RANK = {
    Difficulty.BEGINNER.value: 1,
    Difficulty.INTERMEDIATE.value: 2,
    Difficulty.ADVANCED.value: 3,
}
DEFAULT_RANK = 2

DEFAULT_MINUTES = 15

_TIME_PATTERN = re.compile(r"(\d+)\s*(min|hour|hr)", re.IGNORECASE)


def difficulty_rank(difficulty: Optional[str]) -> int:
    return DIFFICULTY_RANK.get(difficulty, DEFAULT_RANK)


def sort_concepts_by_dependency(concepts: Sequence[Concept]) -> List[Concept]:
    """Sort by difficulty rank, then by prerequisite count.

    ``sorted`` is stable, so concepts with equal keys keep their input order.
    """
    return sorted(
        concepts,
        key=lambda c: (difficulty_rank(c.difficulty), len(c.prerequisites)),
    )


def find_dependencies(concept: Concept, all_concepts: Sequence[Concept]) -> List[str]:
    """Ids of concepts whose name or sub-concepts mention one of our prerequisites."""
    if not concept.prerequisites:
        return []

    prerequisites = [p.lower() for p in concept.prerequisites]
    dependencies = []
    for other in all_concepts:
        if other.id == concept.id:
            continue
        name = other.name.lower()
        sub_concepts = [s.lower() for s in other.sub_concepts]
        if any(
            prereq in name or any(prereq in sub for sub in sub_concepts)
            for prereq in prerequisites
        ):
            dependencies.append(other.id)
    return dependencies


def parse_time_to_minutes(time_string: Optional[str]) -> int:
    """'45 min' -> 45, '2 hours' -> 120; anything unparseable -> 15."""
    if not time_string:
        return DEFAULT_MINUTES

    match = _TIME_PATTERN.search(time_string)
    if not match:
        return DEFAULT_MINUTES

    value = int(match.group(1))
    unit = match.group(2).lower()
    return value * 60 if unit in ("hour", "hr") else value


def format_minutes_to_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"

    hours, remaining_minutes = divmod(minutes, 60)
    if remaining_minutes == 0:
        return f"{hours} hour{'s' if hours > 1 else ''}"

    return f"{hours}h {remaining_minutes}min"


def calculate_difficulty_distribution(concepts: Sequence[Concept]) -> Dict[str, int]:
    distribution = {d.value: 0 for d in Difficulty}
    for concept in concepts:
        if concept.difficulty in distribution:
            distribution[concept.difficulty] += 1
    return distribution


def create_learning_pathway(concepts: Sequence[Concept]) -> LearningPathway:
    if not concepts:
        return LearningPathway()

    sorted_concepts = sort_concepts_by_dependency(concepts)

    total_minutes = sum(
        parse_time_to_minutes(concept.estimated_time) for concept in sorted_concepts
    )

    pathway = [
        PathwayConcept(
            **concept.model_dump(exclude={"order", "is_unlocked", "dependencies"}),
            order=index + 1,
            # Only the first concept starts unlocked
            is_unlocked=index == 0,
            dependencies=find_dependencies(concept, sorted_concepts),
        )
        for index, concept in enumerate(sorted_concepts)
    ]

    return LearningPathway(
        pathway=pathway,
        total_estimated_time=format_minutes_to_time(total_minutes),
        total_concepts=len(sorted_concepts),
        difficulty_distribution=calculate_difficulty_distribution(sorted_concepts),
    )
