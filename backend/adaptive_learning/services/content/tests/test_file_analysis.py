import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from adaptive_learning.errors import FileValidationError, OperationFailed
from adaptive_learning.models.content import ContentAnalysis
from adaptive_learning.services.content.file_analysis import (
    FileAnalysisService,
    resolve_content_type,
)

ANALYSIS = ContentAnalysis(
    subject="Mathematics",
    topic="Fractions",
    difficulty="Beginner",
    key_concepts=["Numerator", "Denominator"],
    learning_objectives=["Add fractions"],
    estimated_time="30 min",
    summary="Fractions basics.",
)


def make_service(max_file_size=10 * 1024 * 1024):
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=ANALYSIS)
    return FileAnalysisService(llm, max_file_size=max_file_size), llm


@pytest.mark.parametrize(
    "filename,content_type,expected",
    [
        ("notes.txt", "text/plain", "text/plain"),
        ("notes.md", "text/markdown; charset=utf-8", "text/markdown"),
        ("data.json", "", "application/json"),
        ("data.csv", "application/octet-stream", "text/csv"),
        ("notes.MD", None, "text/markdown"),
        ("slides.pdf", "application/pdf", "application/pdf"),
        ("unknown.bin", None, ""),
    ],
)
def test_resolve_content_type(filename, content_type, expected):
    assert resolve_content_type(filename, content_type) == expected


def test_validate_file_rejects_missing_file():
    service, _ = make_service()

    with pytest.raises(FileValidationError) as exc_info:
        service.validate_file(None, "text/plain", 10)

    assert exc_info.value.message == "No file provided"
    assert exc_info.value.status_code == 400


def test_validate_file_rejects_oversized_file():
    service, _ = make_service()

    with pytest.raises(FileValidationError) as exc_info:
        service.validate_file("big.txt", "text/plain", 10 * 1024 * 1024 + 1)

    assert exc_info.value.message == "File size exceeds 10MB limit"
    assert exc_info.value.status_code == 413


def test_validate_file_accepts_file_at_limit():
    service, _ = make_service()

    assert service.validate_file("ok.txt", "text/plain", 10 * 1024 * 1024) == (
        "text/plain"
    )


@pytest.mark.parametrize(
    "filename,content_type",
    [("slides.pdf", "application/pdf"), ("image.png", "image/png"), ("x.bin", None)],
)
def test_validate_file_rejects_unsupported_types(filename, content_type):
    service, _ = make_service()

    with pytest.raises(FileValidationError, match="Unsupported file type"):
        service.validate_file(filename, content_type, 100)


def test_extract_file_content_reindents_json():
    service, _ = make_service()

    content = service.extract_file_content(b'{"a":1,"b":[1,2]}', "application/json")

    assert content == json.dumps({"a": 1, "b": [1, 2]}, indent=2)


def test_extract_file_content_rejects_invalid_input():
    service, _ = make_service()

    with pytest.raises(OperationFailed, match="Failed to extract file content"):
        service.extract_file_content(b"{not json", "application/json")
    with pytest.raises(OperationFailed, match="Failed to extract file content"):
        service.extract_file_content(b"\xff\xfe\xfa", "text/plain")


@pytest.mark.asyncio
async def test_analyze_file():
    service, llm = make_service()
    data = "# Fractions\nA fraction has a numerator.".encode("utf-8")

    result = await service.analyze_file("fractions.md", "text/markdown", data)

    assert result.subject == "Mathematics"
    assert result.file_info.name == "fractions.md"
    assert result.file_info.size == len(data)
    assert result.file_info.type == "text/markdown"
    assert result.raw_content == data.decode("utf-8")

    args, kwargs = llm.complete.call_args
    assert args == ("content", "analyze_file", ContentAnalysis)
    assert kwargs["content"] == data.decode("utf-8")


@pytest.mark.asyncio
async def test_analyze_file_validates_before_calling_llm():
    service, llm = make_service(max_file_size=4)

    with pytest.raises(FileValidationError):
        await service.analyze_file("notes.txt", "text/plain", b"too large")

    llm.complete.assert_not_called()


@pytest.mark.asyncio
async def test_analyze_file_wraps_llm_errors():
    service, llm = make_service()
    llm.complete.side_effect = RuntimeError("connection reset")

    with pytest.raises(OperationFailed, match="Failed to analyze file content"):
        await service.analyze_file("notes.txt", "text/plain", b"hello")
