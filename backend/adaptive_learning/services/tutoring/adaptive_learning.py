import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from adaptive_learning.errors import OperationFailed
from adaptive_learning.models.concepts import Concept
from adaptive_learning.models.questions import Question
from adaptive_learning.models.tutoring import (
    AdaptiveHints,
    AudioScript,
    AudioScriptResponse,
    DailySession,
    ExplanationResponse,
    HintContext,
    HintsResponse,
    LearnerContext,
    LearningAnalysis,
    LearningAnalysisResponse,
    LearningData,
    LearningDataPoints,
    PersonalizedExplanation,
    PersonalizedFor,
    StudyPlan,
    StudyPlanResponse,
    UserProfile,
    VoiceSettings,
)
from adaptive_learning.services.llm import LLMService

logger = logging.getLogger(__name__)

REVIEW_INTERVAL_DAYS = 7


def _join_or(values: Sequence[str], fallback: str) -> str:
    return ", ".join(values) if values else fallback


def _average(values: Sequence[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def calculate_completion_time(daily_sessions: List[DailySession]) -> str:
    if not daily_sessions:
        return "0 days"

    total_days = len(daily_sessions)
    weeks = math.ceil(total_days / 7)
    if weeks == 1:
        return f"{total_days} days"
    return f"{weeks} weeks"


def calculate_next_review_date(now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now()) + timedelta(days=REVIEW_INTERVAL_DAYS)


class AdaptiveLearningService:
    """Personalized explanations, hints and study plans based on performance."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def generate_personalized_explanation(
        self, concept: Concept, context: Optional[LearnerContext] = None
    ) -> PersonalizedExplanation:
        context = context or LearnerContext()
        try:
            explanation = await self.llm.complete(
                "tutoring",
                "personalized_explanation",
                ExplanationResponse,
                concept_name=concept.name,
                description=concept.description,
                mastery_level=context.current_mastery_level,
                previous_attempts=context.previous_attempts,
                learning_style=context.learning_style,
                preferred_complexity=context.preferred_complexity,
                mistake_patterns=_join_or(context.mistake_patterns, "None identified"),
                key_principles=_join_or(concept.key_principles, "N/A"),
            )

            return PersonalizedExplanation(
                **explanation.model_dump(),
                concept_id=concept.id,
                concept_name=concept.name,
                personalized_for=PersonalizedFor(
                    mastery_level=context.current_mastery_level,
                    learning_style=context.learning_style,
                    preferred_complexity=context.preferred_complexity,
                ),
            )
        except Exception as e:
            logger.error(f"Error generating personalized explanation: {str(e)}")
            raise OperationFailed("Failed to generate personalized explanation") from e

    async def create_audio_script(
        self,
        explanation: PersonalizedExplanation,
        voice_settings: Optional[VoiceSettings] = None,
    ) -> AudioScript:
        voice_settings = voice_settings or VoiceSettings()
        try:
            script = await self.llm.complete(
                "tutoring",
                "audio_script",
                AudioScriptResponse,
                overview=explanation.overview,
                key_points=", ".join(explanation.key_points),
                examples=", ".join(example.title for example in explanation.examples),
                pace=voice_settings.pace,
                tone=voice_settings.tone,
                include_examples=voice_settings.include_examples,
                max_duration=voice_settings.max_duration,
            )

            return AudioScript(
                **script.model_dump(),
                concept_id=explanation.concept_id,
                voice_settings=voice_settings,
            )
        except Exception as e:
            logger.error(f"Error creating audio script: {str(e)}")
            raise OperationFailed("Failed to create audio script") from e

    async def analyze_learning_patterns(
        self, learning_data: LearningData
    ) -> LearningAnalysis:
        data_points = LearningDataPoints(
            total_responses=len(learning_data.question_responses),
            average_study_time=_average(learning_data.study_times),
            concepts_studied=len(learning_data.concept_mastery),
            overall_progress=_average(list(learning_data.concept_mastery.values())),
        )
        try:
            analysis = await self.llm.complete(
                "tutoring",
                "learning_patterns",
                LearningAnalysisResponse,
                total_responses=data_points.total_responses,
                average_study_time=data_points.average_study_time,
                concept_mastery=", ".join(
                    f"{concept}: {level}%"
                    for concept, level in learning_data.concept_mastery.items()
                ),
                preferred_question_types=", ".join(
                    f"{question_type}: {count}"
                    for question_type, count in (
                        learning_data.preferred_question_types.items()
                    )
                ),
                mistake_patterns=", ".join(learning_data.mistake_patterns),
            )

            return LearningAnalysis(**analysis.model_dump(), data_points=data_points)
        except Exception as e:
            logger.error(f"Error analyzing learning patterns: {str(e)}")
            raise OperationFailed("Failed to analyze learning patterns") from e

    async def generate_adaptive_hints(
        self, question: Question, context: Optional[HintContext] = None
    ) -> AdaptiveHints:
        context = context or HintContext()
        try:
            hints = await self.llm.complete(
                "tutoring",
                "adaptive_hints",
                HintsResponse,
                question=question.question,
                question_type=question.type,
                context=question.context or "N/A",
                attempt_count=context.attempt_count,
                time_spent=context.time_spent,
                previous_hints=_join_or(context.previous_hints, "None"),
                mastery_level=context.mastery_level,
            )

            return AdaptiveHints(
                **hints.model_dump(),
                question_id=question.id,
                user_context=context,
            )
        except Exception as e:
            logger.error(f"Error generating adaptive hints: {str(e)}")
            raise OperationFailed("Failed to generate adaptive hints") from e

    async def create_personalized_study_plan(
        self, profile: UserProfile, available_concepts: Sequence[Concept]
    ) -> StudyPlan:
        try:
            plan = await self.llm.complete(
                "tutoring",
                "study_plan",
                StudyPlanResponse,
                learning_goals=", ".join(profile.learning_goals),
                available_time=profile.available_time,
                preferred_pace=profile.preferred_pace,
                current_level=profile.current_level,
                weak_areas=", ".join(profile.weak_areas),
                strong_areas=", ".join(profile.strong_areas),
                available_concepts=", ".join(c.name for c in available_concepts),
            )

            return StudyPlan(
                **plan.model_dump(),
                user_profile=profile,
                total_concepts=len(available_concepts),
                estimated_completion_time=calculate_completion_time(
                    plan.daily_sessions
                ),
                next_review_date=calculate_next_review_date(),
            )
        except Exception as e:
            logger.error(f"Error creating study plan: {str(e)}")
            raise OperationFailed("Failed to create personalized study plan") from e
