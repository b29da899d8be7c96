from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from adaptive_learning.models.assessment import AssessmentResults, AssessmentSnapshot
from adaptive_learning.models.concepts import Concept, ConceptPerformance, LearningPathway
from adaptive_learning.models.content import AnalysisResult, ContentAnalysis
from adaptive_learning.models.questions import Question, QuestionGenerationOptions
from adaptive_learning.models.tutoring import (
    HintContext,
    LearnerContext,
    PersonalizedExplanation,
    UserProfile,
    VoiceSettings,
)


class FileAnalysisResponse(BaseModel):
    upload_id: str
    analysis: AnalysisResult


class ConceptExtractionRequest(BaseModel):
    analysis: ContentAnalysis
    upload_id: Optional[str] = Field(
        default=None, description="Store the concepts under this upload"
    )


class ConceptExtractionResponse(BaseModel):
    concepts: List[Concept]
    learning_pathway: LearningPathway


class PathwayRequest(BaseModel):
    concepts: List[Concept]


class QuestionGenerationRequest(BaseModel):
    concept: Concept
    options: QuestionGenerationOptions = Field(
        default_factory=QuestionGenerationOptions
    )


class AdaptiveQuestionsRequest(BaseModel):
    concepts: List[Concept]
    performance: Dict[str, ConceptPerformance] = Field(default_factory=dict)


class AnswerEvaluationRequest(BaseModel):
    question: Question
    user_answer: str


class CreateAssessmentRequest(BaseModel):
    concepts: List[Concept] = Field(
        default_factory=list,
        description="Concepts to assess; loaded from upload_id when empty",
    )
    upload_id: Optional[str] = None
    performance: Dict[str, ConceptPerformance] = Field(default_factory=dict)
    adaptive: bool = False


class AnswerRequest(BaseModel):
    answer: str


class ConfidenceRequest(BaseModel):
    level: int = Field(ge=1, le=5)


class SelectQuestionRequest(BaseModel):
    question_id: str


class ExplanationRequest(BaseModel):
    concept: Concept
    context: LearnerContext = Field(default_factory=LearnerContext)


class HintRequest(BaseModel):
    question: Question
    context: HintContext = Field(default_factory=HintContext)


class AudioScriptRequest(BaseModel):
    explanation: PersonalizedExplanation
    voice_settings: VoiceSettings = Field(default_factory=VoiceSettings)


class StudyPlanRequest(BaseModel):
    profile: UserProfile = Field(default_factory=UserProfile)
    concepts: List[Concept]


class AssessmentStateResponse(BaseModel):
    session: AssessmentSnapshot
    accepted: bool = Field(
        default=True, description="False when a navigation step was rejected"
    )
    results: Optional[AssessmentResults] = None
