"""Resume parsing stage: budgeted request, JSON parse, keyword fallback.

Data flow:
  1. Estimate the system directive and resume text against the context budget
  2. Truncate the resume to the longest prefix that fits (if needed)
  3. One completion request asking for strict JSON
  4. Parse into ResumeRecord, or fall back to keyword skill extraction
  5. Store the record (fire-and-forget)
"""

import json
import logging

from pydantic import ValidationError

from jobagent.core.config import BudgetConfig
from jobagent.core.db import PARSED_RESUMES, RecordSink, emit_record
from jobagent.core.errors import MalformedResponseError, TokenBudgetExceededError
from jobagent.core.schemas import ResumeRecord
from jobagent.llm.base import CompletionClient, Message, strip_code_fences
from jobagent.pipeline.tokens import estimate_tokens, truncate_to_budget

logger = logging.getLogger(__name__)

RESUME_TEMPERATURE = 0.3
SUMMARY_PREVIEW_CHARS = 200
MAX_FALLBACK_SKILLS = 10

SYSTEM_PROMPT = (
    "You are a resume parsing assistant. Your task is to extract structured "
    "information from the provided resume text and return it as a JSON object "
    'with the following structure: {"skills": ["skill1", "skill2"], '
    '"workExperience": [{"company": "", "position": "", "duration": "", '
    '"responsibilities": []}], "education": [{"degree": "", "institution": "", '
    '"year": ""}], "rolesOfInterest": ["role1", "role2"], '
    '"summary": "brief professional summary"}. '
    "Provide only the JSON object, no additional text."
)

COMMON_SKILLS = (
    "JavaScript", "TypeScript", "React", "Node.js", "Python", "Java", "C++",
    "HTML", "CSS", "SQL", "MongoDB", "PostgreSQL", "AWS", "Docker", "Kubernetes",
    "Git", "Agile", "Scrum", "Machine Learning", "Data Analysis",
    "Project Management", "Leadership", "Communication",
)


def system_message() -> Message:
    return {"role": "system", "content": SYSTEM_PROMPT}


def max_user_units(budget: BudgetConfig, system_units: int) -> int:
    """Units left for the resume after the system prompt, completion and buffer."""
    return (
        budget.context_ceiling
        - system_units
        - budget.completion_ceiling
        - budget.safety_buffer
    )


def fit_resume_to_budget(
    resume_text: str,
    budget: BudgetConfig,
    system_units: int,
) -> tuple[str, int]:
    """Truncate ``resume_text`` to fit the budget and validate the total.

    Returns:
        (user_text, user_units) to send.

    Raises:
        TokenBudgetExceededError: If system + user + completion still exceeds
            the context ceiling.
    """
    limit = max_user_units(budget, system_units)
    user_text = truncate_to_budget(resume_text, limit)
    user_units = estimate_tokens(user_text)

    if len(user_text) < len(resume_text):
        logger.warning(
            "Resume truncated from %d to %d chars (%d/%d user tokens) to fit the "
            "token limit. Consider shortening the resume to under 300,000 characters "
            "or using a text-based format.",
            len(resume_text), len(user_text), user_units, limit,
        )

    total = system_units + user_units + budget.completion_ceiling
    if total > budget.context_ceiling:
        msg = (
            f"Total tokens ({total}) exceed API limit ({budget.context_ceiling}). "
            f"Original resume: {len(resume_text)} chars, truncated: {len(user_text)} chars. "
            "Please shorten the resume to under 300,000 characters or use a "
            "text-based format."
        )
        raise TokenBudgetExceededError(total, budget.context_ceiling, msg)

    logger.info(
        "Token breakdown: system=%d, user=%d, completion=%d, total=%d",
        system_units, user_units, budget.completion_ceiling, total,
    )
    return user_text, user_units


def extract_skills_from_text(text: str) -> list[str]:
    """Return known skills mentioned in ``text`` (case-insensitive, max 10)."""
    lowered = text.lower()
    found = [skill for skill in COMMON_SKILLS if skill.lower() in lowered]
    return found[:MAX_FALLBACK_SKILLS]


def parse_resume_response(raw_text: str) -> ResumeRecord:
    """Parse model output into a ResumeRecord.

    Handles markdown-wrapped JSON. Missing or non-list fields become empty
    lists.

    Raises:
        MalformedResponseError: If the text is not a JSON object.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse resume response as JSON: {e}"
        raise MalformedResponseError(msg) from e

    if not isinstance(data, dict):
        msg = f"Expected a JSON object for the resume, got {type(data).__name__}"
        raise MalformedResponseError(msg)

    try:
        return ResumeRecord.model_validate(data)
    except ValidationError as e:
        msg = f"Resume response does not match the expected shape: {e}"
        raise MalformedResponseError(msg) from e


def fallback_resume(resume_text: str) -> ResumeRecord:
    """Keyword-only ResumeRecord built from the original text."""
    return ResumeRecord(
        skills=extract_skills_from_text(resume_text),
        summary=resume_text[:SUMMARY_PREVIEW_CHARS] + "...",
    )


async def parse_resume(
    resume_text: str,
    client: CompletionClient,
    budget: BudgetConfig | None = None,
    sink: RecordSink | None = None,
) -> ResumeRecord:
    """Extract a ResumeRecord from raw resume text with one completion request.

    The caller is responsible for input limits (file <= 1 MB, text <= 300,000
    characters).

    Raises:
        TokenBudgetExceededError: If the request cannot fit the context window.
        TransportError: If the endpoint answers with a non-2xx status.
    """
    budget = budget or BudgetConfig()
    system = system_message()
    system_units = estimate_tokens(json.dumps(system, separators=(",", ":")))

    user_text, _ = fit_resume_to_budget(resume_text, budget, system_units)

    raw = await client.complete(
        [system, {"role": "user", "content": user_text}],
        max_tokens=budget.completion_ceiling,
        temperature=RESUME_TEMPERATURE,
    )

    try:
        record = parse_resume_response(raw)
    except MalformedResponseError:
        logger.warning(
            "Resume response was not usable JSON - falling back to keyword extraction. "
            "Response starts with: %r",
            raw[:200],
            exc_info=True,
        )
        record = fallback_resume(resume_text)

    emit_record(sink, PARSED_RESUMES, {
        "resume_text": user_text,
        "parsed_data": record.to_wire(),
    })
    return record
