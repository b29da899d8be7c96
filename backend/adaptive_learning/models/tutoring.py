from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# Explanations


class ExplanationExample(BaseModel):
    title: str
    description: str
    type: str = Field(description="Kind of example, e.g. 'visual' or 'analogy'")


class ExplanationResponse(BaseModel):
    overview: str = Field(description="Overview tailored to current understanding")
    detailed_explanation: str = Field(
        description="Step-by-step breakdown addressing the learner's mistakes"
    )
    key_points: List[str]
    examples: List[ExplanationExample]
    practice_exercises: List[str] = Field(default_factory=list)
    common_pitfalls: List[str] = Field(default_factory=list)
    real_world_applications: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    estimated_study_time: Optional[str] = None
    difficulty_adjustment: Optional[str] = None


class LearnerContext(BaseModel):
    mistake_patterns: List[str] = Field(default_factory=list)
    learning_style: str = "visual"
    current_mastery_level: float = 0
    previous_attempts: int = 0
    preferred_complexity: str = "intermediate"


class PersonalizedFor(BaseModel):
    mastery_level: float
    learning_style: str
    preferred_complexity: str


class PersonalizedExplanation(ExplanationResponse):
    concept_id: str
    concept_name: str
    generated_at: datetime = Field(default_factory=datetime.now)
    personalized_for: PersonalizedFor


# Audio scripts


class ScriptSegment(BaseModel):
    text: str
    type: str = Field(description="Segment role, e.g. 'introduction'")
    emphasis: Optional[str] = None
    pause_duration: Optional[float] = Field(
        description="Pause after the segment, in seconds", default=None
    )


class AudioScriptResponse(BaseModel):
    script: str
    segments: List[ScriptSegment]
    estimated_duration: str
    key_emphasis_points: List[str] = Field(default_factory=list)
    transition_cues: List[str] = Field(default_factory=list)


class VoiceSettings(BaseModel):
    pace: str = "normal"
    tone: str = "encouraging"
    include_examples: bool = True
    max_duration: str = "5 minutes"


class AudioScript(AudioScriptResponse):
    concept_id: Optional[str] = None
    voice_settings: VoiceSettings
    created_at: datetime = Field(default_factory=datetime.now)


# Learning pattern analysis


class StudyPlanSummary(BaseModel):
    daily_goals: List[str]
    weekly_milestones: List[str]
    review_schedule: Optional[str] = None


class LearningAnalysisResponse(BaseModel):
    strengths: List[str]
    weaknesses: List[str]
    optimal_study_time: Optional[str] = None
    recommended_strategies: List[str]
    focus_areas: List[str]
    study_plan: Optional[StudyPlanSummary] = None
    motivational_insights: List[str] = Field(default_factory=list)
    next_learning_goals: List[str] = Field(default_factory=list)


class LearningData(BaseModel):
    question_responses: List[str] = Field(
        default_factory=list, description="Ids of answered questions"
    )
    study_times: List[float] = Field(
        default_factory=list, description="Study session lengths in minutes"
    )
    concept_mastery: Dict[str, float] = Field(
        default_factory=dict, description="Mastery percentage keyed by concept name"
    )
    preferred_question_types: Dict[str, int] = Field(
        default_factory=dict, description="Answer counts keyed by question type"
    )
    mistake_patterns: List[str] = Field(default_factory=list)


class LearningDataPoints(BaseModel):
    total_responses: int
    average_study_time: float
    concepts_studied: int
    overall_progress: float


class LearningAnalysis(LearningAnalysisResponse):
    analyzed_at: datetime = Field(default_factory=datetime.now)
    data_points: LearningDataPoints


# Hints


class Hint(BaseModel):
    level: int = Field(description="1 for a gentle nudge up to 4 for near-solution")
    text: str
    type: str = Field(description="conceptual, methodology, step_by_step, ...")
    reveal_amount: Optional[str] = None


class HintsResponse(BaseModel):
    hints: List[Hint]
    encouragement: str
    study_tip: Optional[str] = None


class HintContext(BaseModel):
    attempt_count: int = 0
    time_spent: int = 0
    previous_hints: List[str] = Field(default_factory=list)
    mastery_level: float = 0


class AdaptiveHints(HintsResponse):
    question_id: str
    generated_at: datetime = Field(default_factory=datetime.now)
    user_context: HintContext


# Study plans


class DailySession(BaseModel):
    day: int
    concepts: List[str]
    activities: List[str]
    duration: str
    goals: List[str] = Field(default_factory=list)


class StudyPlanResponse(BaseModel):
    plan_overview: str
    daily_sessions: List[DailySession]
    weekly_milestones: List[str]
    progress_checkpoints: List[str] = Field(default_factory=list)
    review_schedule: Optional[str] = None
    motivation_strategies: List[str] = Field(default_factory=list)
    adaptation_triggers: List[str] = Field(default_factory=list)


class UserProfile(BaseModel):
    learning_goals: List[str] = Field(default_factory=list)
    available_time: str = "1 hour"
    preferred_pace: str = "moderate"
    current_level: str = "beginner"
    weak_areas: List[str] = Field(default_factory=list)
    strong_areas: List[str] = Field(default_factory=list)


class StudyPlan(StudyPlanResponse):
    created_at: datetime = Field(default_factory=datetime.now)
    user_profile: UserProfile
    total_concepts: int
    estimated_completion_time: str
    next_review_date: datetime
