from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ContentAnalysis(BaseModel):
    """Structured summary of an uploaded document."""

    subject: str = Field(description="Subject area of the content")
    topic: str = Field(description="Specific topic covered")
    difficulty: str = Field(description="Beginner, Intermediate or Advanced")
    key_concepts: List[str] = Field(description="Key concepts covered")
    learning_objectives: List[str] = Field(description="Learning objectives")
    prerequisites: Optional[List[str]] = Field(
        description="Prerequisite knowledge, if any", default=None
    )
    estimated_time: str = Field(description="Estimated study time, e.g. '45 min'")
    summary: str = Field(description="Short summary of the content")


class FileInfo(BaseModel):
    name: str
    size: int
    type: Optional[str] = None


class AnalysisResult(ContentAnalysis):
    """Content analysis together with the file it was produced from."""

    file_info: FileInfo
    raw_content: str
    analyzed_at: datetime = Field(default_factory=datetime.now)
