from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class GenerateQuestionsRequest(BaseModel):
    jd: str = Field(min_length=20, max_length=50000)
    count: int | None = None


class GenerateQuestionsResponse(BaseModel):
    questions: list[str]
    source: Literal["llm", "fallback"]


class PolishAnswerRequest(BaseModel):
    question: str = Field(min_length=3, max_length=2000)
    answer: str = Field(min_length=1, max_length=10000)
    jd: str | None = Field(default=None, max_length=50000)


class PolishAnswerResponse(BaseModel):
    polished_answer: str


class FollowUpRequest(BaseModel):
    previous_question: str = Field(min_length=3, max_length=2000)
    user_answer: str = Field(min_length=1, max_length=10000)
    jd: str | None = Field(default=None, max_length=50000)


class FollowUpResponse(BaseModel):
    question: str


class InterviewSessionSave(BaseModel):
    jd: str = Field(min_length=1, max_length=50000)
    resume_file_name: str | None = Field(default=None, max_length=300)
    questions: list[str] = Field(default_factory=list, max_length=200)
    current_idx: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _index_within_questions(self) -> "InterviewSessionSave":
        # len(questions) marks a finished session
        if self.current_idx > len(self.questions):
            raise ValueError("current_idx must not exceed the number of questions")
        return self


class InterviewSession(InterviewSessionSave):
    updated_at: int
