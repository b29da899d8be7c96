import asyncio
import logging
import random
from typing import Awaitable, List, Mapping, Optional, Sequence

from adaptive_learning.errors import OperationFailed
from adaptive_learning.models.concepts import Concept, ConceptPerformance, Difficulty
from adaptive_learning.models.questions import (
    AnswerEvaluation,
    EvaluationResponse,
    Question,
    QuestionGeneration,
    QuestionGenerationOptions,
    QuestionType,
)
from adaptive_learning.services.llm import LLMService
from adaptive_learning.services.questions.adaptive import (
    adjust_difficulty_for_performance,
    identify_strong_areas,
    identify_weak_areas,
    shuffle_questions,
)

logger = logging.getLogger(__name__)

# Adaptive mix allocation
WEAK_CONCEPT_LIMIT = 3
WEAK_QUESTION_COUNT = 3
MIXED_CONCEPT_LIMIT = 2
MIXED_QUESTION_COUNT = 2
MIXED_QUESTION_TYPES = [
    QuestionType.MULTIPLE_CHOICE.value,
    QuestionType.SHORT_ANSWER.value,
]
CHALLENGE_QUESTION_COUNT = 1


def _join_or_na(values: Sequence[str]) -> str:
    return ", ".join(values) if values else "N/A"


class QuestionGenerationService:
    """Generates assessment questions for concepts and grades answers."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def generate_questions_for_concept(
        self,
        concept: Concept,
        options: Optional[QuestionGenerationOptions] = None,
    ) -> List[Question]:
        options = options or QuestionGenerationOptions()
        difficulty = options.difficulty_level or concept.difficulty

        try:
            generation = await self.llm.complete(
                "questions",
                "generate_questions",
                QuestionGeneration,
                question_count=options.question_count,
                concept_name=concept.name,
                description=concept.description,
                difficulty=difficulty,
                key_principles=_join_or_na(concept.key_principles),
                examples=_join_or_na(concept.examples),
                misconceptions=_join_or_na(concept.misconceptions),
                question_types=", ".join(options.question_types),
                option_explanations=(
                    " with explanations" if options.include_explanations else ""
                ),
            )

            questions = [
                Question(
                    **{
                        **generated.model_dump(),
                        "id": generated.id or f"{concept.id}_q{index + 1}",
                    },
                    concept_id=concept.id,
                    concept_name=concept.name,
                    number=index + 1,
                )
                for index, generated in enumerate(generation.questions)
            ]
        except Exception as e:
            logger.error(f"Error generating questions: {str(e)}")
            raise OperationFailed("Failed to generate questions for concept") from e

        logger.info(
            f"Generated {len(questions)} {difficulty} questions for {concept.id}"
        )
        return questions

    async def generate_assessment_questions(
        self,
        concepts: Sequence[Concept],
        concept_limit: int = 3,
        question_count: int = 3,
        rng: Optional[random.Random] = None,
    ) -> List[Question]:
        """Standard assessment: the first few concepts, all question types."""
        options = QuestionGenerationOptions(question_count=question_count)
        requests = [
            self.generate_questions_for_concept(concept, options)
            for concept in concepts[:concept_limit]
        ]
        return shuffle_questions(await self._gather(requests), rng)

    async def generate_adaptive_questions(
        self,
        concepts: Sequence[Concept],
        performance: Optional[Mapping[str, ConceptPerformance]] = None,
        rng: Optional[random.Random] = None,
    ) -> List[Question]:
        """Build a question set biased toward the user's weakest concepts."""
        performance = performance or {}
        try:
            weak_concepts = identify_weak_areas(concepts, performance)
            strong_concepts = identify_strong_areas(concepts, performance)

            requests: List[Awaitable[List[Question]]] = []

            for concept in weak_concepts[:WEAK_CONCEPT_LIMIT]:
                requests.append(
                    self.generate_questions_for_concept(
                        concept,
                        QuestionGenerationOptions(
                            question_count=WEAK_QUESTION_COUNT,
                            difficulty_level=adjust_difficulty_for_performance(
                                concept, performance
                            ),
                        ),
                    )
                )

            for concept in concepts[:MIXED_CONCEPT_LIMIT]:
                # Identity, not equality: pydantic models compare by value
                if not any(concept is weak for weak in weak_concepts):
                    requests.append(
                        self.generate_questions_for_concept(
                            concept,
                            QuestionGenerationOptions(
                                question_count=MIXED_QUESTION_COUNT,
                                question_types=MIXED_QUESTION_TYPES,
                            ),
                        )
                    )

            if strong_concepts:
                requests.append(
                    self.generate_questions_for_concept(
                        strong_concepts[0],
                        QuestionGenerationOptions(
                            question_count=CHALLENGE_QUESTION_COUNT,
                            difficulty_level=Difficulty.ADVANCED.value,
                        ),
                    )
                )

            logger.info(
                f"Adaptive mix: {len(weak_concepts)} weak, "
                f"{len(strong_concepts)} strong, {len(requests)} generation calls"
            )
            questions = await self._gather(requests)
        except Exception as e:
            logger.error(f"Error generating adaptive questions: {str(e)}")
            raise OperationFailed("Failed to generate adaptive questions") from e

        return shuffle_questions(questions, rng)

    async def _gather(
        self, requests: List[Awaitable[List[Question]]]
    ) -> List[Question]:
        """Run generation calls concurrently and flatten them in call order.

        The first failure cancels the calls still in flight.
        """
        tasks = [asyncio.ensure_future(request) for request in requests]
        try:
            question_sets = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [question for question_set in question_sets for question in question_set]

    async def evaluate_answer(
        self, question: Question, user_answer: str
    ) -> AnswerEvaluation:
        try:
            evaluation = await self.llm.complete(
                "questions",
                "evaluate_answer",
                EvaluationResponse,
                question=question.question,
                question_type=question.type,
                correct_answer=question.correct_answer,
                user_answer=user_answer,
                context=question.context or "N/A",
            )

            return AnswerEvaluation(
                **evaluation.model_dump(),
                question_id=question.id,
                concept_id=question.concept_id,
                user_answer=user_answer,
            )
        except Exception as e:
            logger.error(f"Error evaluating answer: {str(e)}")
            raise OperationFailed("Failed to evaluate answer") from e
