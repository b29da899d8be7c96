"""Assessment session state.

A session walks the user through a question set. It tracks navigation, the
answers and confidence ratings given so far, the session clock, and the
pause/autosave status. All methods are synchronous and are only ever called
from the event loop, so no locking is needed.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from adaptive_learning.models.assessment import (
    AssessmentResults,
    AssessmentSnapshot,
    SessionStatus,
    SessionView,
)
from adaptive_learning.models.concepts import ConceptPerformance
from adaptive_learning.models.questions import Question
from adaptive_learning.services.assessment.scoring import (
    format_session_time,
    generate_assessment_results,
    is_answer_correct,
    percentage,
    update_performance,
    withdraw_performance,
)

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5


class AssessmentSession:
    def __init__(
        self,
        questions: List[Question],
        session_id: Optional[str] = None,
        performance: Optional[Mapping[str, ConceptPerformance]] = None,
        used_demo_questions: bool = False,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.questions = questions
        self.performance: Dict[str, ConceptPerformance] = dict(performance or {})
        self.used_demo_questions = used_demo_questions

        self.current_index = 0
        self.answers: Dict[str, str] = {}
        self.confidence: Dict[str, int] = {}
        # Outcome each answered question currently contributes to performance
        self._outcomes: Dict[str, bool] = {}
        self.show_validation = False
        self.status = SessionStatus.ACTIVE
        self.view = SessionView.QUESTIONS
        self.elapsed_seconds = 0
        self.last_saved: Optional[datetime] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < self.total_questions:
            return self.questions[self.current_index]
        return None

    @property
    def completion_percentage(self) -> int:
        if not self.total_questions:
            return 0
        return percentage(len(self.answers), self.total_questions)

    def _current_is_answered(self) -> bool:
        question = self.current_question
        return question is not None and bool(self.answers.get(question.id))

    # Answers

    def record_answer(self, answer: str) -> None:
        """Record an answer for the current question.

        An empty answer clears any previous answer.
        """
        question = self.current_question
        if question is None:
            return

        self.show_validation = False
        previous = self._outcomes.get(question.id)
        if not answer:
            self.answers.pop(question.id, None)
            if previous is not None:
                del self._outcomes[question.id]
                withdraw_performance(self.performance, question.concept_id, previous)
            return

        self.answers[question.id] = answer

        correct = is_answer_correct(question, answer)
        self._outcomes[question.id] = correct
        question.attempts += 1
        question.correct_attempts += 1 if correct else 0
        question.user_answer = answer
        question.is_correct = correct
        question.last_attempted = datetime.now()
        update_performance(self.performance, question.concept_id, correct, previous)

    def set_confidence(self, level: int) -> None:
        question = self.current_question
        if question is None:
            return
        self.confidence[question.id] = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, level))

    # Navigation

    def next(self) -> bool:
        """Move to the next question; rejected while the current one is unanswered."""
        if not self._current_is_answered():
            self.show_validation = True
            return False

        if self.current_index < self.total_questions - 1:
            self.current_index += 1
            self.show_validation = False
        return True

    def previous(self) -> bool:
        if self.current_index > 0:
            self.current_index -= 1
            self.show_validation = False
            return True
        return False

    def select_question(self, question_id: str) -> bool:
        for index, question in enumerate(self.questions):
            if question.id == question_id:
                self.current_index = index
                return True
        return False

    def submit(self) -> Optional[AssessmentResults]:
        """Finish the assessment; rejected while the current question is unanswered."""
        if not self._current_is_answered():
            self.show_validation = True
            return None

        self.view = SessionView.SUMMARY
        logger.info(
            f"Session {self.session_id} submitted with "
            f"{len(self.answers)}/{self.total_questions} answers"
        )
        return self.results()

    def retake(self) -> None:
        self.current_index = 0
        self.answers = {}
        self.confidence = {}
        self._outcomes = {}
        for question in self.questions:
            question.user_answer = None
            question.is_correct = None
            question.time_spent = 0
        self.show_validation = False
        self.view = SessionView.QUESTIONS
        self.elapsed_seconds = 0
        self.status = SessionStatus.ACTIVE

    # Clock and status

    def toggle_pause(self) -> SessionStatus:
        self.status = (
            SessionStatus.PAUSED
            if self.status == SessionStatus.ACTIVE
            else SessionStatus.ACTIVE
        )
        return self.status

    def tick(self) -> None:
        """Advance the session clock by one second while active."""
        if self.status != SessionStatus.ACTIVE or self.view != SessionView.QUESTIONS:
            return
        self.elapsed_seconds += 1
        question = self.current_question
        if question is not None:
            question.time_spent += 1

    def should_autosave(self) -> bool:
        return (
            self.status == SessionStatus.ACTIVE
            and self.view == SessionView.QUESTIONS
            and bool(self.answers)
        )

    def mark_saving(self) -> None:
        self.status = SessionStatus.SAVING

    # A pause requested while saving wins over the save transitions

    def mark_saved(self) -> None:
        self.last_saved = datetime.now()
        if self.status == SessionStatus.SAVING:
            self.status = SessionStatus.SAVED

    def resume_after_save(self) -> None:
        if self.status == SessionStatus.SAVED:
            self.status = SessionStatus.ACTIVE

    # Results

    def results(self) -> AssessmentResults:
        return generate_assessment_results(
            self.questions, self.answers, self.confidence, self.elapsed_seconds
        )

    def snapshot(self) -> AssessmentSnapshot:
        return AssessmentSnapshot(
            session_id=self.session_id,
            status=self.status,
            view=self.view,
            current_index=self.current_index,
            total_questions=self.total_questions,
            completion_percentage=self.completion_percentage,
            elapsed_seconds=self.elapsed_seconds,
            session_time=format_session_time(self.elapsed_seconds),
            show_validation=self.show_validation,
            last_saved=self.last_saved,
            questions=self.questions,
            answers=self.answers,
            confidence=self.confidence,
            performance=self.performance,
            used_demo_questions=self.used_demo_questions,
        )
