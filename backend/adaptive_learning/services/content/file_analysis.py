import json
import logging
from pathlib import PurePath
from typing import Optional

from adaptive_learning.errors import FileValidationError, OperationFailed
from adaptive_learning.models.content import AnalysisResult, ContentAnalysis, FileInfo
from adaptive_learning.services.llm import LLMService

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_TYPES = {
    "text/plain",
    "text/markdown",
    "text/x-markdown",
    "application/json",
    "text/csv",
}

# Used only when the client sent no useful content type
ALLOWED_EXTENSIONS = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".json": "application/json",
    ".csv": "text/csv",
}

_GENERIC_TYPES = {"", "application/octet-stream"}


def resolve_content_type(filename: Optional[str], content_type: Optional[str]) -> str:
    """Return the effective media type, falling back to the file extension."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type in _GENERIC_TYPES and filename:
        return ALLOWED_EXTENSIONS.get(PurePath(filename).suffix.lower(), media_type)
    return media_type


class FileAnalysisService:
    """Validates uploads, extracts their text and analyzes it with the LLM."""

    def __init__(self, llm_service: LLMService, max_file_size: int = MAX_FILE_SIZE):
        self.llm = llm_service
        self.max_file_size = max_file_size

    def validate_file(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        size: Optional[int],
    ) -> str:
        """Check size and type before any LLM call. Returns the media type."""
        if not filename or size is None:
            raise FileValidationError("No file provided")

        if size > self.max_file_size:
            limit_mb = self.max_file_size // (1024 * 1024)
            raise FileValidationError(
                f"File size exceeds {limit_mb}MB limit", status_code=413
            )

        media_type = resolve_content_type(filename, content_type)
        if media_type not in ALLOWED_TYPES:
            raise FileValidationError("Unsupported file type")

        return media_type

    def extract_file_content(self, data: bytes, media_type: str) -> str:
        """Decode the upload as UTF-8; JSON is normalized to 2-space indentation."""
        try:
            content = data.decode("utf-8")
            if media_type == "application/json":
                content = json.dumps(json.loads(content), indent=2)
            return content
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error extracting file content: {str(e)}")
            raise OperationFailed("Failed to extract file content") from e

    async def analyze_file(
        self, filename: Optional[str], content_type: Optional[str], data: bytes
    ) -> AnalysisResult:
        media_type = self.validate_file(
            filename, content_type, len(data) if data is not None else None
        )
        content = self.extract_file_content(data, media_type)

        try:
            analysis = await self.llm.complete(
                "content", "analyze_file", ContentAnalysis, content=content
            )
        except Exception as e:
            logger.error(f"Error analyzing file: {str(e)}")
            raise OperationFailed("Failed to analyze file content") from e

        logger.info(
            f"Analyzed {filename}: {analysis.subject} / {analysis.topic} "
            f"({analysis.difficulty})"
        )
        return AnalysisResult(
            **analysis.model_dump(),
            file_info=FileInfo(name=filename, size=len(data), type=media_type),
            raw_content=content,
        )
