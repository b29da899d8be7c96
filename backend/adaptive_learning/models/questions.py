from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


class QuestionOption(BaseModel):
    id: str = Field(description="Option identifier, e.g. 'a'")
    text: str = Field(description="Option text")
    explanation: Optional[str] = Field(
        description="Why this option is right or wrong", default=None
    )


class GeneratedQuestion(BaseModel):
    """A question as returned by the generation call."""

    id: Optional[str] = Field(description="Question identifier", default=None)
    type: str = Field(description="multiple_choice, true_false or short_answer")
    difficulty: str = Field(description="Difficulty rating of the question")
    question: str = Field(description="The question text")
    context: Optional[str] = Field(
        description="Background needed to answer", default=None
    )
    options: Optional[List[QuestionOption]] = Field(
        description="Answer options for multiple choice questions", default=None
    )
    correct_answer: str = Field(
        description="Option id, 'true'/'false', or a model answer"
    )
    sample_answers: List[str] = Field(
        description="Sample correct answers for short answer questions",
        default_factory=list,
    )
    explanation: Optional[str] = Field(
        description="Explanation of the correct answer", default=None
    )
    learning_objective: Optional[str] = Field(
        description="Learning objective this question maps to", default=None
    )
    blooms_level: Optional[str] = Field(
        description="Bloom's taxonomy level", default=None
    )
    estimated_time: Optional[str] = Field(
        description="Expected time to answer", default=None
    )


class QuestionGeneration(BaseModel):
    questions: List[GeneratedQuestion]


class Question(GeneratedQuestion):
    """A question in an assessment, with the user's interaction state."""

    id: str
    concept_id: str
    concept_name: Optional[str] = None
    number: int
    created_at: datetime = Field(default_factory=datetime.now)
    attempts: int = 0
    correct_attempts: int = 0
    last_attempted: Optional[datetime] = None
    user_answer: Optional[str] = None
    is_correct: Optional[bool] = None
    time_spent: int = 0
    hints_used: int = 0


class QuestionGenerationOptions(BaseModel):
    question_count: int = 5
    question_types: List[str] = Field(
        default_factory=lambda: [t.value for t in QuestionType]
    )
    # None means the concept's own difficulty
    difficulty_level: Optional[str] = None
    include_explanations: bool = True


class EvaluationResponse(BaseModel):
    is_correct: bool = Field(description="Whether the answer is correct")
    score: float = Field(description="Score from 0 to 100")
    feedback: str = Field(description="Detailed feedback on the answer")
    explanation: str = Field(description="Explanation of the correct answer")
    areas_for_improvement: List[str] = Field(
        description="What the learner should work on", default_factory=list
    )
    hints: List[str] = Field(
        description="Hints for better understanding", default_factory=list
    )
    next_steps: Optional[str] = Field(
        description="Suggested next steps", default=None
    )


class AnswerEvaluation(EvaluationResponse):
    score: float = Field(ge=0, le=100)
    question_id: str
    concept_id: str
    user_answer: str
    evaluated_at: datetime = Field(default_factory=datetime.now)
    time_taken: int = 0
