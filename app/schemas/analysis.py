from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

AnalysisStatus = Literal["processing", "completed", "failed"]


class TopicToMaster(BaseModel):
    topic: str
    description: str = ""


class InterviewQuestion(BaseModel):
    question: str
    category: str = "general"


class TalkingPoint(BaseModel):
    point: str
    example: str = ""


class AnalysisResult(BaseModel):
    match_score: int = Field(default=0, ge=0, le=100)
    ats_score: int = Field(default=0, ge=0, le=100)
    missing_keywords: list[str] = Field(default_factory=list, max_length=10)
    topics_to_master: list[TopicToMaster] = Field(default_factory=list)
    ats_improvements: list[str] = Field(default_factory=list)
    matching_improvements: list[str] = Field(default_factory=list)
    priority_improvements: list[str] = Field(default_factory=list)
    cover_letter: str | None = None
    interview_questions: list[InterviewQuestion] = Field(default_factory=list)
    interview_talking_points: list[TalkingPoint] = Field(default_factory=list)


class AnalysisCreate(BaseModel):
    resume_text: str = Field(min_length=30, max_length=120000)
    job_description: str = Field(min_length=30, max_length=50000)
    resume_file_name: str | None = Field(default=None, max_length=255)
    job_application_id: str | None = Field(default=None, max_length=64)


class Analysis(AnalysisResult):
    id: str
    user_id: str
    resume_file_name: str | None = None
    job_description: str
    job_application_id: str | None = None
    status: AnalysisStatus
    error_message: str | None = None
    is_favorited: bool = False
    created_at: int


class ResumeSuggestionsRequest(BaseModel):
    resume_content: str = Field(min_length=30, max_length=120000)
    job_description: str | None = Field(default=None, max_length=50000)


class ResumeSuggestions(BaseModel):
    ats_optimization: list[str] = Field(default_factory=list)
    keyword_suggestions: list[str] = Field(default_factory=list)
    content_improvements: list[str] = Field(default_factory=list)
    structure_recommendations: list[str] = Field(default_factory=list)
    overall_score: int = Field(default=0, ge=0, le=100)


class ResumeSuggestionsResponse(BaseModel):
    suggestions: ResumeSuggestions
    source: Literal["llm", "fallback"]


class ExtractTextResponse(BaseModel):
    filename: str
    source_type: Literal["pdf", "text"]
    text: str
    characters: int = Field(ge=0)
    pages: int | None = None
