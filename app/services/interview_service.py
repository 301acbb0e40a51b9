from __future__ import annotations

import logging

from app.ai.client import require_text, text_completion
from app.core.config.scoring import get_scoring_value
from app.normalize.utils import split_lines, strip_numbering, strip_question_label
from app.schemas.interview import GenerateQuestionsResponse

logger = logging.getLogger(__name__)

_COACH_SYSTEM_PROMPT = "You are an expert interview coach. Be concise, practical, and specific. Avoid fluff."

FALLBACK_QUESTION_BANK: tuple[str, ...] = (
    "Walk me through your background and why this role is the right next step.",
    "Tell me about a project you are most proud of and your specific contribution.",
    "Describe a time you had to deliver under a tight deadline. What did you prioritize?",
    "Tell me about a disagreement with a teammate and how you resolved it.",
    "What is a technical or professional decision you made that you would revisit today?",
    "How do you measure whether your work was successful?",
    "Describe a time you received difficult feedback and what you changed afterwards.",
    "How would you approach your first 90 days in this role?",
    "Tell me about a time you had to learn something new quickly to get a job done.",
    "What trade-offs did you weigh on the most complex problem you have solved recently?",
    "How do you keep stakeholders informed when plans change?",
    "Describe a failure and what you learned from it.",
)


def _question_bounds() -> tuple[int, int, int]:
    low = int(get_scoring_value("interview.min_questions", 5))
    high = int(get_scoring_value("interview.max_questions", 80))
    default = int(get_scoring_value("interview.default_questions", 50))
    return low, high, default


def clamp_question_count(count: int | None) -> int:
    low, high, default = _question_bounds()
    return min(max(default if count is None else count, low), high)


def parse_question_list(raw: str, count: int) -> list[str]:
    questions = [strip_numbering(line) for line in split_lines(raw)]
    return [question for question in questions if question][:count]


def generate_questions(jd: str, count: int | None = None) -> GenerateQuestionsResponse:
    total = clamp_question_count(count)
    raw = text_completion(
        system_prompt=_COACH_SYSTEM_PROMPT,
        user_prompt=(
            f"Given the following job description, generate {total} highly relevant mock interview questions.\n"
            "Mix behavioral, situational, technical, and role-specific strategy questions.\n"
            f"Number them 1..{total}. Only output the list, one per line, no extra commentary.\n\n"
            f"Job Description:\n{jd[:10000]}"
        ),
        temperature=0.5,
        max_output_tokens=min(4000, 60 * total),
        task="interview_questions",
    )
    questions = parse_question_list(raw or "", total)
    if not questions:
        logger.info("interview_questions_fallback count=%s", total)
        return GenerateQuestionsResponse(questions=list(FALLBACK_QUESTION_BANK[:total]), source="fallback")
    return GenerateQuestionsResponse(questions=questions, source="llm")


def polish_answer(question: str, answer: str, jd: str | None = None) -> str:
    out = text_completion(
        system_prompt=_COACH_SYSTEM_PROMPT,
        user_prompt=(
            "Polish the following interview answer with a crisp, professional tone.\n"
            "- Keep it concise (120-200 words).\n"
            "- Use the STAR framework implicitly if applicable.\n"
            "- Add measurable impact where reasonable (keep realistic).\n"
            "- Fix filler wording and make it confident.\n\n"
            f"Context (optional JD): {jd[:6000] if jd else 'N/A'}\n\n"
            f"Question: {question}\n\n"
            f"Candidate's draft answer:\n{answer}"
        ),
        temperature=0.4,
        task="interview_polish",
    )
    return require_text(out, message="Could not polish the answer right now. Try again.")


def next_follow_up(previous_question: str, user_answer: str, jd: str | None = None) -> str:
    out = text_completion(
        system_prompt=_COACH_SYSTEM_PROMPT,
        user_prompt=(
            f"You are conducting a mock interview based on this job description: {jd[:6000] if jd else 'N/A'}.\n"
            "Given the last question and the candidate's answer, ask ONE smart follow-up question that digs deeper "
            "into impact, decision-making, tradeoffs, or metrics.\n"
            "Keep it under 25 words. Only output the question.\n\n"
            f"Previous Question: {previous_question}\n"
            f"Candidate Answer:\n{user_answer}"
        ),
        temperature=0.6,
        max_output_tokens=120,
        task="interview_follow_up",
    )
    question = strip_question_label(require_text(out, message="Could not generate a follow-up question. Try again."))
    return require_text(question, message="Could not generate a follow-up question. Try again.")
