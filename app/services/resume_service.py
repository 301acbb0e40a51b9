from __future__ import annotations

import json
import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from app.ai.client import json_completion
from app.ai.types import Parsed
from app.core import resume_store
from app.normalize.utils import clamp_score, pick, string_list
from app.schemas.analysis import (
    ExtractTextResponse,
    ResumeSuggestions,
    ResumeSuggestionsRequest,
    ResumeSuggestionsResponse,
)
from app.schemas.resumes import ResumeDocument, ResumeDocumentCreate, ResumeDocumentUpdate

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"pdf", "txt", "md"}

DEFAULT_RESUME_SUGGESTIONS = ResumeSuggestions(
    ats_optimization=["Ensure consistent formatting throughout the document"],
    keyword_suggestions=["Add relevant industry keywords"],
    content_improvements=["Quantify achievements with specific numbers"],
    structure_recommendations=["Use clear section headers"],
    overall_score=75,
)

# Empty editor document for a new resume.
DEFAULT_RESUME_CONTENT = json.dumps(
    {
        "personalInfo": {"name": "", "email": "", "phone": "", "location": ""},
        "summary": "",
        "experience": [],
        "education": [],
        "skills": [],
    }
)


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def extract_resume_text(filename: str, content: bytes) -> ExtractTextResponse:
    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}.")

    if ext == "pdf":
        if not content.startswith(b"%PDF"):
            raise ValueError("File content does not look like a PDF.")
        try:
            reader = PdfReader(BytesIO(content))
            page_chunks = [(page.extract_text() or "").strip() for page in reader.pages]
        except (PdfReadError, OSError, ValueError) as exc:
            raise ValueError("Unable to extract text from this PDF file.") from exc
        text = "\n\n".join(chunk for chunk in page_chunks if chunk)
        if not text:
            raise ValueError("No extractable text found in PDF.")
        return ExtractTextResponse(
            filename=filename,
            source_type="pdf",
            text=text,
            characters=len(text),
            pages=len(page_chunks),
        )

    text = ""
    for encoding in ("utf-8", "utf-16", "latin-1"):
        try:
            text = content.decode(encoding)
            break
        except UnicodeDecodeError:
            continue
    text = text.strip()
    if not text:
        raise ValueError("The uploaded file is empty.")
    return ExtractTextResponse(filename=filename, source_type="text", text=text, characters=len(text))


def generate_resume_suggestions(payload: ResumeSuggestionsRequest) -> ResumeSuggestionsResponse:
    jd_block = f"Job Description to target:\n{payload.job_description[:8000]}\n\n" if payload.job_description else ""
    result = json_completion(
        system_prompt="You are an expert resume optimization assistant. Return strict JSON only.",
        user_prompt=(
            "Analyze the following resume content and provide actionable suggestions for improvement.\n\n"
            f"Resume Content:\n{payload.resume_content[:15000]}\n\n"
            f"{jd_block}"
            "Return JSON with keys: ats_optimization, keyword_suggestions, content_improvements, "
            "structure_recommendations (arrays of strings) and overall_score (0-100).\n"
            "Focus on ATS compatibility, keyword optimization, content clarity and impact, structure, "
            "industry-specific improvements and quantifiable achievements."
        ),
        temperature=0.7,
        max_output_tokens=2000,
        task="resume_suggestions",
    )
    if not isinstance(result, Parsed):
        logger.info("resume_suggestions_fallback reason=%s", type(result).__name__)
        return ResumeSuggestionsResponse(suggestions=DEFAULT_RESUME_SUGGESTIONS, source="fallback")

    value = result.value
    suggestions = ResumeSuggestions(
        ats_optimization=string_list(pick(value, "ats_optimization", "atsOptimization")),
        keyword_suggestions=string_list(pick(value, "keyword_suggestions", "keywordSuggestions")),
        content_improvements=string_list(pick(value, "content_improvements", "contentImprovements")),
        structure_recommendations=string_list(pick(value, "structure_recommendations", "structureRecommendations")),
        overall_score=clamp_score(pick(value, "overall_score", "overallScore")),
    )
    return ResumeSuggestionsResponse(suggestions=suggestions, source="llm")


class ResumeError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _resume_not_found() -> ResumeError:
    return ResumeError("Resume not found or access denied.", status_code=404)


def create_resume(user_id: str, payload: ResumeDocumentCreate) -> ResumeDocument:
    resume_id = resume_store.insert_resume(
        user_id,
        title=payload.title,
        content=payload.content or DEFAULT_RESUME_CONTENT,
        template_id=payload.template_id,
    )
    resume = resume_store.get_resume(user_id, resume_id)
    if resume is None:  # pragma: no cover - row was written above
        raise _resume_not_found()
    logger.info("resume_created user=%s resume=%s", user_id, resume_id)
    return resume


def get_resume(user_id: str, resume_id: str) -> ResumeDocument | None:
    return resume_store.get_resume(user_id, resume_id)


def list_resumes(user_id: str) -> list[ResumeDocument]:
    return resume_store.list_resumes(user_id)


def update_resume(user_id: str, resume_id: str, payload: ResumeDocumentUpdate) -> ResumeDocument:
    fields = payload.model_dump(exclude_unset=True)
    for key in ("title", "content"):
        if key in fields and fields[key] is None:
            raise ResumeError(f"{key} must not be null.", status_code=422)
    if not resume_store.update_resume_fields(user_id, resume_id, **fields):
        raise _resume_not_found()
    resume = resume_store.get_resume(user_id, resume_id)
    if resume is None:
        raise _resume_not_found()
    return resume


def delete_resume(user_id: str, resume_id: str) -> None:
    if not resume_store.delete_resume(user_id, resume_id):
        raise _resume_not_found()
