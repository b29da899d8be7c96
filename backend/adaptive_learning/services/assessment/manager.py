import logging
import random
from typing import Dict, List, Mapping, Optional

from adaptive_learning.errors import NoConceptsAvailable, OperationFailed, SessionNotFound
from adaptive_learning.models.concepts import Concept, ConceptPerformance
from adaptive_learning.services.assessment.demo import get_demo_questions
from adaptive_learning.services.assessment.scheduler import (
    ASSESSMENT_NAMESPACE,
    PeriodicTask,
    SessionRunner,
)
from adaptive_learning.services.assessment.session import AssessmentSession
from adaptive_learning.services.questions.generator import QuestionGenerationService
from adaptive_learning.services.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

CONCEPTS_NAMESPACE = "concepts"


class AssessmentManager:
    """Creates assessment sessions and keeps their runners alive until closed.

    Sessions untouched for ``idle_timeout`` seconds are closed by a sweep that
    runs every ``sweep_interval`` seconds while any session is open.
    """

    def __init__(
        self,
        question_service: QuestionGenerationService,
        store: SessionStore,
        autosave_interval: float = 30,
        saved_display_seconds: float = 1,
        concept_limit: int = 3,
        questions_per_concept: int = 3,
        rng: Optional[random.Random] = None,
        idle_timeout: float = 3600,
        sweep_interval: float = 60,
    ):
        self.questions = question_service
        self.store = store
        self.autosave_interval = autosave_interval
        self.saved_display_seconds = saved_display_seconds
        self.concept_limit = concept_limit
        self.questions_per_concept = questions_per_concept
        self.rng = rng
        self.idle_timeout = idle_timeout
        self._runners: Dict[str, SessionRunner] = {}
        self._sweeper = PeriodicTask(
            sweep_interval, self.expire_idle_sessions, name="session-sweeper"
        )

    async def store_concepts(self, upload_id: str, concepts: List[Concept]) -> None:
        await self.store.put(
            CONCEPTS_NAMESPACE,
            upload_id,
            {"concepts": [c.model_dump(mode="json") for c in concepts]},
        )

    async def load_concepts(self, upload_id: str) -> List[Concept]:
        doc = await self.store.get(CONCEPTS_NAMESPACE, upload_id)
        if not doc:
            return []
        return [Concept.model_validate(c) for c in doc["concepts"]]

    async def create_session(
        self,
        concepts: List[Concept],
        performance: Optional[Mapping[str, ConceptPerformance]] = None,
        adaptive: bool = False,
    ) -> SessionRunner:
        if not concepts:
            raise NoConceptsAvailable(
                "No concepts available; upload learning material first"
            )

        used_demo_questions = False
        try:
            if adaptive:
                questions = await self.questions.generate_adaptive_questions(
                    concepts, performance, rng=self.rng
                )
            else:
                questions = await self.questions.generate_assessment_questions(
                    concepts,
                    concept_limit=self.concept_limit,
                    question_count=self.questions_per_concept,
                    rng=self.rng,
                )
        except OperationFailed as e:
            logger.warning(f"Question generation failed, using demo questions: {e}")
            questions = get_demo_questions()
            used_demo_questions = True

        session = AssessmentSession(
            questions,
            performance=performance,
            used_demo_questions=used_demo_questions,
        )
        runner = SessionRunner(
            session,
            self.store,
            autosave_interval=self.autosave_interval,
            saved_display_seconds=self.saved_display_seconds,
        )
        runner.start()
        self._runners[session.session_id] = runner
        self._sweeper.start()

        logger.info(
            f"Created session {session.session_id} with "
            f"{session.total_questions} questions"
        )
        return runner

    def get(self, session_id: str) -> SessionRunner:
        runner = self._runners.get(session_id)
        if runner is None:
            raise SessionNotFound(session_id)
        runner.touch()
        return runner

    async def close_session(self, session_id: str) -> None:
        runner = self._runners.pop(session_id, None)
        if runner is None:
            raise SessionNotFound(session_id)
        await runner.close()
        await self.store.delete(ASSESSMENT_NAMESPACE, session_id)
        logger.info(f"Closed session {session_id}")

    async def expire_idle_sessions(self) -> List[str]:
        expired = [
            session_id
            for session_id, runner in self._runners.items()
            if runner.idle_seconds() >= self.idle_timeout
        ]
        for session_id in expired:
            if session_id in self._runners:
                await self.close_session(session_id)
        if expired:
            logger.info(f"Expired {len(expired)} idle sessions")
        return expired

    async def shutdown(self) -> None:
        await self._sweeper.stop()
        for session_id in list(self._runners):
            await self.close_session(session_id)
