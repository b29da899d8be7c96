import random
from typing import List, Mapping, Optional, Sequence

from adaptive_learning.models.concepts import (
    Concept,
    ConceptPerformance,
    Difficulty,
)
from adaptive_learning.models.questions import Question

WEAK_MASTERY_THRESHOLD = 70
STRONG_MASTERY_THRESHOLD = 80
BEGINNER_MASTERY_THRESHOLD = 40


def _performance_for(
    concept: Concept, performance: Mapping[str, ConceptPerformance]
) -> ConceptPerformance:
    # Unseen concepts count as zero mastery, zero attempts
    return performance.get(concept.id) or ConceptPerformance()


def identify_weak_areas(
    concepts: Sequence[Concept], performance: Mapping[str, ConceptPerformance]
) -> List[Concept]:
    """Concepts that need more focus, weakest first."""
    weak = [
        concept
        for concept in concepts
        if _performance_for(concept, performance).mastery_level
        < WEAK_MASTERY_THRESHOLD
        or _performance_for(concept, performance).attempts == 0
    ]
    return sorted(weak, key=lambda c: _performance_for(c, performance).mastery_level)


def identify_strong_areas(
    concepts: Sequence[Concept], performance: Mapping[str, ConceptPerformance]
) -> List[Concept]:
    """Concepts the user is strong in, strongest first."""
    strong = [
        concept
        for concept in concepts
        if _performance_for(concept, performance).mastery_level
        >= STRONG_MASTERY_THRESHOLD
    ]
    return sorted(
        strong,
        key=lambda c: _performance_for(c, performance).mastery_level,
        reverse=True,
    )


def adjust_difficulty_for_performance(
    concept: Concept, performance: Mapping[str, ConceptPerformance]
) -> str:
    mastery_level = _performance_for(concept, performance).mastery_level
    if mastery_level < BEGINNER_MASTERY_THRESHOLD:
        return Difficulty.BEGINNER.value
    elif mastery_level < WEAK_MASTERY_THRESHOLD:
        return Difficulty.INTERMEDIATE.value
    else:
        return Difficulty.ADVANCED.value


def shuffle_questions(
    questions: Sequence[Question], rng: Optional[random.Random] = None
) -> List[Question]:
    """Return the questions in random order, renumbered from 1.

    The input sequence and its questions are left untouched.
    """
    shuffled = list(questions)
    (rng or random).shuffle(shuffled)
    return [
        question.model_copy(update={"number": index + 1})
        for index, question in enumerate(shuffled)
    ]
