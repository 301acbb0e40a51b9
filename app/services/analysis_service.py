from __future__ import annotations

import logging
from typing import Any

from app.ai.client import json_completion
from app.ai.types import Empty, Malformed, Parsed
from app.core import analysis_store, notification_store
from app.core.config.scoring import get_scoring_value
from app.normalize.utils import clamp_score, object_list, pick, string_list
from app.schemas.analysis import (
    Analysis,
    AnalysisCreate,
    AnalysisResult,
    InterviewQuestion,
    TalkingPoint,
    TopicToMaster,
)

logger = logging.getLogger(__name__)

# Stored on a failed analysis so readers always see a complete, zeroed result.
FAILED_ANALYSIS_RESULT = AnalysisResult()

_SYSTEM_PROMPT = (
    "You are an expert technical recruiter and ATS specialist. "
    "Compare the resume with the job description. Be specific and evidence-based. Return strict JSON only."
)


class AnalysisError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def coerce_analysis_result(payload: dict[str, Any]) -> AnalysisResult:
    max_keywords = int(get_scoring_value("analysis.max_missing_keywords", 10))
    max_topics = int(get_scoring_value("analysis.max_topics", 8))
    cover_letter = pick(payload, "cover_letter", "coverLetter")
    return AnalysisResult(
        match_score=clamp_score(pick(payload, "match_score", "matchScore")),
        ats_score=clamp_score(pick(payload, "ats_score", "atsScore")),
        missing_keywords=string_list(pick(payload, "missing_keywords", "missingKeywords"), max_keywords),
        topics_to_master=[
            TopicToMaster(**row)
            for row in object_list(pick(payload, "topics_to_master", "topicsToMaster"), "topic", "description")[:max_topics]
        ],
        ats_improvements=string_list(pick(payload, "ats_improvements", "atsImprovements")),
        matching_improvements=string_list(pick(payload, "matching_improvements", "matchingImprovements")),
        priority_improvements=string_list(pick(payload, "priority_improvements", "priorityImprovements")),
        cover_letter=str(cover_letter).strip() if cover_letter else None,
        interview_questions=[
            InterviewQuestion(**row)
            for row in object_list(pick(payload, "interview_questions", "interviewQuestions"), "question", "category")
        ],
        interview_talking_points=[
            TalkingPoint(**row)
            for row in object_list(pick(payload, "interview_talking_points", "interviewTalkingPoints"), "point", "example")
        ],
    )


def _user_prompt(resume_text: str, job_description: str) -> str:
    return (
        "Analyze this resume against the job description and provide a detailed assessment.\n\n"
        f"RESUME:\n{resume_text[:15000]}\n\n"
        f"JOB DESCRIPTION:\n{job_description[:8000]}\n\n"
        "Return a JSON object with keys exactly:\n"
        "match_score (0-100), ats_score (0-100), missing_keywords (top 10 strings),\n"
        "topics_to_master (array of {topic, description}), ats_improvements (strings),\n"
        "matching_improvements (strings), priority_improvements (strings), cover_letter (string),\n"
        "interview_questions (array of {question, category}),\n"
        "interview_talking_points (array of {point, example})."
    )


def create_analysis(user_id: str, payload: AnalysisCreate) -> Analysis:
    analysis_id = analysis_store.create_analysis(
        user_id,
        job_description=payload.job_description,
        resume_file_name=payload.resume_file_name,
        job_application_id=payload.job_application_id,
    )
    result = json_completion(
        system_prompt=_SYSTEM_PROMPT,
        user_prompt=_user_prompt(payload.resume_text, payload.job_description),
        temperature=0.3,
        max_output_tokens=2000,
        task="resume_analysis",
    )

    if isinstance(result, Parsed):
        analysis_result = coerce_analysis_result(result.value)
        analysis_store.update_analysis_results(analysis_id, result=analysis_result, status="completed")
        notification_store.notify(
            user_id,
            type="analysis",
            title="Resume Analysis Complete",
            message=f"Your analysis is ready with a {analysis_result.match_score}% match score.",
            priority="high",
            action_url=f"/analyses/{analysis_id}",
        )
    else:
        if isinstance(result, Malformed):
            error_message = "The AI response could not be parsed. Please retry."
        elif isinstance(result, Empty) and result.reason == "llm_disabled":
            error_message = "AI analysis is not configured."
        else:
            error_message = "No response from AI model."
        logger.warning("analysis_failed id=%s reason=%s", analysis_id, type(result).__name__)
        analysis_store.update_analysis_results(
            analysis_id,
            result=FAILED_ANALYSIS_RESULT,
            status="failed",
            error_message=error_message,
        )

    analysis = analysis_store.get_analysis(user_id, analysis_id)
    if analysis is None:  # pragma: no cover - row was written above
        raise AnalysisError("Analysis not found.", status_code=404)
    return analysis


def get_analysis(user_id: str, analysis_id: str) -> Analysis:
    analysis = analysis_store.get_analysis(user_id, analysis_id)
    if analysis is None:
        raise AnalysisError("Analysis not found or user does not have permission to view.", status_code=404)
    return analysis


def toggle_favorite(user_id: str, analysis_id: str) -> bool:
    favorited = analysis_store.toggle_favorite(user_id, analysis_id)
    if favorited is None:
        raise AnalysisError("Analysis not found or user does not have permission to update.", status_code=404)
    return favorited


def delete_analysis(user_id: str, analysis_id: str) -> None:
    if not analysis_store.delete_analysis(user_id, analysis_id):
        raise AnalysisError("Analysis not found or user does not have permission to delete.", status_code=404)
