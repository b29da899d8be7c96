from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from adaptive_learning.errors import SchemaViolation
from adaptive_learning.models.concepts import Concept
from adaptive_learning.models.questions import (
    EvaluationResponse,
    GeneratedQuestion,
    QuestionGeneration,
    QuestionGenerationOptions,
)
from adaptive_learning.models.tutoring import ExplanationResponse
from adaptive_learning.prompts import PROMPTS, build_messages
from adaptive_learning.services.llm import LLMService
from adaptive_learning.services.questions.generator import QuestionGenerationService
from adaptive_learning.services.tutoring.adaptive_learning import (
    AdaptiveLearningService,
)
from openai import APIConnectionError

EVALUATION = EvaluationResponse(
    is_correct=False, score=20, feedback="Not quite", explanation="Because"
)

PROMPT_VALUES = {
    "question": "What is 2 + 2?",
    "question_type": "short_answer",
    "correct_answer": "4",
    "user_answer": "5",
    "context": "N/A",
}


def completion(parsed, refusal=None):
    message = SimpleNamespace(parsed=parsed, refusal=refusal)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_service(mock_openai, parse, max_attempts=1):
    client = MagicMock()
    client.beta.chat.completions.parse = parse
    mock_openai.return_value = client
    return LLMService("test-key", max_attempts=max_attempts)


def test_prompts_are_loaded_in_pairs():
    for group, templates in PROMPTS["system"].items():
        assert set(templates) == set(PROMPTS["user"][group]), group


def test_build_messages_formats_user_prompt():
    messages = build_messages("questions", "evaluate_answer", **PROMPT_VALUES)

    assert [m["role"] for m in messages] == ["system", "user"]
    assert "What is 2 + 2?" in messages[1]["content"]
    assert "{" not in messages[1]["content"]


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_complete_returns_parsed_model(mock_openai):
    parse = AsyncMock(return_value=completion(EVALUATION))
    service = make_service(mock_openai, parse)

    result = await service.complete(
        "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
    )

    assert result == EVALUATION
    kwargs = parse.call_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["temperature"] == 0
    assert kwargs["response_format"] is EvaluationResponse
    mock_openai.assert_called_once_with(api_key="test-key")


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_complete_revalidates_plain_payloads(mock_openai):
    parse = AsyncMock(return_value=completion(EVALUATION.model_dump()))
    service = make_service(mock_openai, parse)

    result = await service.complete(
        "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
    )

    assert isinstance(result, EvaluationResponse)
    assert result.score == 20


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_complete_rejects_refusals(mock_openai):
    parse = AsyncMock(return_value=completion(None, refusal="I can't help"))
    service = make_service(mock_openai, parse)

    with pytest.raises(SchemaViolation, match="refusal"):
        await service.complete(
            "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
        )


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_complete_rejects_invalid_payloads(mock_openai):
    parse = AsyncMock(return_value=completion({"is_correct": "maybe"}))
    service = make_service(mock_openai, parse)

    with pytest.raises(SchemaViolation):
        await service.complete(
            "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
        )


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_transport_errors_are_not_retried_by_default(mock_openai):
    error = APIConnectionError(request=httpx.Request("POST", "https://example.com"))
    parse = AsyncMock(side_effect=error)
    service = make_service(mock_openai, parse)

    with pytest.raises(APIConnectionError):
        await service.complete(
            "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
        )

    assert parse.await_count == 1


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_schema_violations_are_not_retried(mock_openai):
    parse = AsyncMock(return_value=completion(None))
    service = make_service(mock_openai, parse, max_attempts=3)

    with pytest.raises(SchemaViolation):
        await service.complete(
            "questions", "evaluate_answer", EvaluationResponse, **PROMPT_VALUES
        )

    assert parse.await_count == 1


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_template_values_may_use_prompt_selector_names(mock_openai):
    parse = AsyncMock(return_value=completion(EVALUATION))
    service = make_service(mock_openai, parse)

    await service.complete(
        "questions",
        "evaluate_answer",
        EvaluationResponse,
        name="ignored",
        **PROMPT_VALUES,
    )

    assert parse.await_count == 1


@pytest.mark.asyncio
@patch("adaptive_learning.services.llm.AsyncOpenAI")
async def test_services_run_through_real_llm_service(mock_openai):
    concept = Concept(
        id="c1",
        name="Recursion",
        description="Functions that call themselves",
        difficulty="Intermediate",
        estimated_time="30 min",
    )
    parse = AsyncMock(
        side_effect=[
            completion(
                QuestionGeneration(
                    questions=[
                        GeneratedQuestion(
                            type="true_false",
                            difficulty="Intermediate",
                            question="Recursion needs a base case.",
                            correct_answer="true",
                        )
                    ]
                )
            ),
            completion(
                ExplanationResponse(
                    overview="Overview",
                    detailed_explanation="Details",
                    key_points=["Base case"],
                    examples=[],
                )
            ),
        ]
    )
    llm = make_service(mock_openai, parse)

    questions = await QuestionGenerationService(llm).generate_questions_for_concept(
        concept, QuestionGenerationOptions(question_count=1)
    )
    explanation = await AdaptiveLearningService(
        llm
    ).generate_personalized_explanation(concept)

    assert [q.id for q in questions] == ["c1_q1"]
    assert explanation.concept_name == "Recursion"
    for call in parse.call_args_list:
        assert "Concept: Recursion" in call.kwargs["messages"][1]["content"]
