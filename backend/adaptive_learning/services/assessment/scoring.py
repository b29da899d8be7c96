import math
from typing import Dict, Mapping, MutableMapping, Optional, Sequence

from adaptive_learning.models.assessment import AreaScore, AssessmentResults, ConceptScore
from adaptive_learning.models.concepts import ConceptPerformance
from adaptive_learning.models.questions import Question

DEFAULT_CONFIDENCE = 3.0
WEAK_SCORE_THRESHOLD = 60
STRONG_SCORE_THRESHOLD = 80


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    return math.floor(part / whole * 100 + 0.5)


def format_session_time(seconds: int) -> str:
    """Format elapsed seconds as m:ss."""
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def is_answer_correct(question: Question, answer: str) -> bool:
    return answer == question.correct_answer


def update_performance(
    performance: MutableMapping[str, ConceptPerformance],
    concept_id: str,
    is_correct: bool,
    previous: Optional[bool] = None,
) -> ConceptPerformance:
    """Record one answered question against a concept and recompute mastery.

    ``previous`` is the outcome already recorded for the same question. It is
    replaced, so a changed answer still counts as a single attempt.
    """
    current = performance.get(concept_id) or ConceptPerformance()
    attempts = current.attempts + (1 if previous is None else 0)
    correct_answers = current.correct_answers + int(is_correct) - int(bool(previous))
    updated = ConceptPerformance(
        attempts=attempts,
        correct_answers=correct_answers,
        mastery_level=percentage(correct_answers, attempts),
    )
    performance[concept_id] = updated
    return updated


def withdraw_performance(
    performance: MutableMapping[str, ConceptPerformance],
    concept_id: str,
    previous: bool,
) -> ConceptPerformance:
    """Remove a cleared answer's outcome from the concept's record."""
    current = performance.get(concept_id) or ConceptPerformance()
    attempts = max(0, current.attempts - 1)
    correct_answers = max(0, current.correct_answers - int(previous))
    updated = ConceptPerformance(
        attempts=attempts,
        correct_answers=correct_answers,
        mastery_level=percentage(correct_answers, attempts) if attempts else 0,
    )
    performance[concept_id] = updated
    return updated


def generate_assessment_results(
    questions: Sequence[Question],
    answers: Mapping[str, str],
    confidence: Mapping[str, int],
    elapsed_seconds: int,
) -> AssessmentResults:
    questions_by_id = {question.id: question for question in questions}
    total_answered = len(answers)
    correct_count = 0
    concept_performance: Dict[str, ConceptScore] = {}

    for question_id, user_answer in answers.items():
        question = questions_by_id.get(question_id)
        if question is None:
            continue

        correct = is_answer_correct(question, user_answer)
        if correct:
            correct_count += 1

        score = concept_performance.setdefault(
            question.concept_id, ConceptScore(concept=question.concept_name)
        )
        score.total += 1
        if correct:
            score.correct += 1

    weak_areas = []
    strong_areas = []
    for score in concept_performance.values():
        concept_score = percentage(score.correct, score.total)
        if concept_score < WEAK_SCORE_THRESHOLD:
            weak_areas.append(AreaScore(topic=score.concept, score=concept_score))
        elif concept_score >= STRONG_SCORE_THRESHOLD:
            strong_areas.append(AreaScore(topic=score.concept, score=concept_score))

    if confidence:
        average_confidence = round(sum(confidence.values()) / len(confidence), 1)
    else:
        average_confidence = DEFAULT_CONFIDENCE

    return AssessmentResults(
        total_questions=total_answered,
        correct_answers=correct_count,
        incorrect_answers=total_answered - correct_count,
        average_confidence=average_confidence,
        time_spent=format_session_time(elapsed_seconds),
        overall_score=(
            percentage(correct_count, total_answered) if total_answered else 0
        ),
        weak_areas=weak_areas,
        strong_areas=strong_areas,
        concept_performance=concept_performance,
    )
