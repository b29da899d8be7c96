import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from adaptive_learning.errors import NoConceptsAvailable, OperationFailed, SessionNotFound
from adaptive_learning.models.concepts import Concept
from adaptive_learning.models.questions import Question
from adaptive_learning.services.assessment.manager import AssessmentManager
from adaptive_learning.services.assessment.scheduler import ASSESSMENT_NAMESPACE
from adaptive_learning.services.storage.session_store import InMemorySessionStore


def make_concept(concept_id):
    return Concept(
        id=concept_id,
        name=f"Concept {concept_id}",
        description="A concept",
        difficulty="Beginner",
        estimated_time="15 min",
    )


def make_question(question_id):
    return Question(
        id=question_id,
        number=1,
        type="true_false",
        difficulty="Beginner",
        question="Statement",
        correct_answer="true",
        concept_id="c1",
    )


def make_manager(question_service=None, **kwargs):
    question_service = question_service or MagicMock()
    return AssessmentManager(
        question_service,
        InMemorySessionStore(),
        autosave_interval=60,
        concept_limit=2,
        questions_per_concept=4,
        rng=random.Random(0),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_session_uses_standard_generation():
    questions = MagicMock()
    questions.generate_assessment_questions = AsyncMock(
        return_value=[make_question("q1"), make_question("q2")]
    )
    manager = make_manager(questions)
    concepts = [make_concept("c1")]

    runner = await manager.create_session(concepts)

    assert runner.session.total_questions == 2
    assert runner.session.used_demo_questions is False
    assert runner.clock.running and runner.autosave.running
    assert manager.get(runner.session.session_id) is runner
    kwargs = questions.generate_assessment_questions.call_args.kwargs
    assert kwargs["concept_limit"] == 2
    assert kwargs["question_count"] == 4

    await manager.shutdown()
    assert not runner.clock.running


@pytest.mark.asyncio
async def test_create_session_adaptive():
    questions = MagicMock()
    questions.generate_adaptive_questions = AsyncMock(
        return_value=[make_question("q1")]
    )
    manager = make_manager(questions)

    runner = await manager.create_session([make_concept("c1")], {}, adaptive=True)

    questions.generate_adaptive_questions.assert_awaited_once()
    assert runner.session.total_questions == 1
    await manager.shutdown()


@pytest.mark.asyncio
async def test_create_session_falls_back_to_demo_questions():
    questions = MagicMock()
    questions.generate_assessment_questions = AsyncMock(
        side_effect=OperationFailed("Failed to generate questions for concept")
    )
    manager = make_manager(questions)

    runner = await manager.create_session([make_concept("c1")])

    assert runner.session.used_demo_questions is True
    assert [q.id for q in runner.session.questions] == ["demo_1", "demo_2"]
    await manager.shutdown()


@pytest.mark.asyncio
async def test_create_session_without_concepts():
    manager = make_manager()

    with pytest.raises(NoConceptsAvailable):
        await manager.create_session([])


@pytest.mark.asyncio
async def test_close_session():
    questions = MagicMock()
    questions.generate_assessment_questions = AsyncMock(
        return_value=[make_question("q1")]
    )
    manager = make_manager(questions)
    runner = await manager.create_session([make_concept("c1")])
    session_id = runner.session.session_id

    await manager.close_session(session_id)

    with pytest.raises(SessionNotFound):
        manager.get(session_id)
    with pytest.raises(SessionNotFound):
        await manager.close_session(session_id)
    await manager.shutdown()


@pytest.mark.asyncio
async def test_store_and_load_concepts():
    manager = make_manager()
    concepts = [make_concept("c1"), make_concept("c2")]

    await manager.store_concepts("upload-1", concepts)
    loaded = await manager.load_concepts("upload-1")

    assert [c.id for c in loaded] == ["c1", "c2"]
    assert await manager.load_concepts("missing") == []


def make_question_service():
    questions = MagicMock()
    questions.generate_assessment_questions = AsyncMock(
        return_value=[make_question("q1")]
    )
    return questions


@pytest.mark.asyncio
async def test_close_session_deletes_saved_snapshot():
    manager = make_manager(make_question_service())
    runner = await manager.create_session([make_concept("c1")])
    session_id = runner.session.session_id
    await runner.save()
    assert await manager.store.get(ASSESSMENT_NAMESPACE, session_id) is not None

    await manager.close_session(session_id)

    assert await manager.store.get(ASSESSMENT_NAMESPACE, session_id) is None
    await manager.shutdown()


@pytest.mark.asyncio
async def test_expire_idle_sessions_keeps_recently_used_sessions():
    manager = make_manager(make_question_service(), idle_timeout=60)
    idle = await manager.create_session([make_concept("c1")])
    active = await manager.create_session([make_concept("c1")])
    idle.last_activity -= 120
    active.last_activity -= 120
    manager.get(active.session.session_id)

    expired = await manager.expire_idle_sessions()

    assert expired == [idle.session.session_id]
    assert not idle.clock.running
    with pytest.raises(SessionNotFound):
        manager.get(idle.session.session_id)
    assert manager.get(active.session.session_id) is active
    await manager.shutdown()


@pytest.mark.asyncio
async def test_idle_sessions_are_swept_in_background():
    manager = make_manager(
        make_question_service(), idle_timeout=0.03, sweep_interval=0.01
    )
    runner = await manager.create_session([make_concept("c1")])

    await asyncio.sleep(0.15)

    with pytest.raises(SessionNotFound):
        manager.get(runner.session.session_id)
    assert not runner.clock.running
    assert not runner.autosave.running
    await manager.shutdown()
