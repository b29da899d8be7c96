from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from adaptive_learning.models.concepts import ConceptPerformance
from adaptive_learning.models.questions import Question


class SessionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    SAVING = "saving"
    SAVED = "saved"


class SessionView(str, Enum):
    QUESTIONS = "questions"  # Answering questions
    SUMMARY = "summary"  # Submitted, showing results


class ConceptScore(BaseModel):
    concept: Optional[str] = None
    correct: int = 0
    total: int = 0


class AreaScore(BaseModel):
    topic: Optional[str] = None
    score: int


class AssessmentResults(BaseModel):
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    average_confidence: float
    time_spent: str
    overall_score: int
    weak_areas: List[AreaScore] = Field(default_factory=list)
    strong_areas: List[AreaScore] = Field(default_factory=list)
    concept_performance: Dict[str, ConceptScore] = Field(default_factory=dict)


class AssessmentSnapshot(BaseModel):
    """Serializable state of an assessment session."""

    session_id: str
    status: SessionStatus
    view: SessionView
    current_index: int
    total_questions: int
    completion_percentage: int
    elapsed_seconds: int
    session_time: str
    show_validation: bool
    last_saved: Optional[datetime] = None
    questions: List[Question]
    answers: Dict[str, str]
    confidence: Dict[str, int]
    performance: Dict[str, ConceptPerformance]
    used_demo_questions: bool = False
