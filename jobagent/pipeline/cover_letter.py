"""Cover letter stage: one completion request, prose returned as-is."""

import logging

from jobagent.core.config import CoverLetterConfig
from jobagent.core.db import COVER_LETTERS, RecordSink, emit_record
from jobagent.core.schemas import CoverLetterOptions, ResumeRecord
from jobagent.llm.base import CompletionClient, Message

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a cover letter generation assistant. Create a personalized cover "
    "letter based on the job description and candidate information."
)

_TONE_INSTRUCTIONS = {
    "formal": "Use a professional, formal tone with proper business language.",
    "friendly": "Use a friendly, approachable tone while maintaining professionalism.",
}

_LANGUAGE_INSTRUCTIONS = {
    "english": "Write the cover letter in English.",
    "french": "Write the cover letter in French.",
}


def build_cover_letter_messages(
    job_description: str,
    resume: ResumeRecord,
    options: CoverLetterOptions,
) -> list[Message]:
    """Assemble the prompts embedding the resume summary and style instructions."""
    experience = ", ".join(f"{exp.position} at {exp.company}" for exp in resume.work_experience)
    education = ", ".join(f"{edu.degree} from {edu.institution}" for edu in resume.education)

    user_prompt = (
        "Generate a personalized cover letter based on the following information:\n\n"
        f"Job Description:\n{job_description}\n\n"
        "Candidate Information:\n"
        f"- Skills: {', '.join(resume.skills)}\n"
        f"- Work Experience: {experience}\n"
        f"- Education: {education}\n"
        f"- Professional Summary: {resume.summary}\n\n"
        "Instructions:\n"
        f"- {_TONE_INSTRUCTIONS[options.tone]}\n"
        f"- {_LANGUAGE_INSTRUCTIONS[options.language]}\n"
        "- Highlight relevant skills and experience\n"
        "- Show enthusiasm for the role\n"
        "- Keep it concise (3-4 paragraphs)\n"
        "- Include a strong opening and closing\n"
        "- Make it specific to this job and company\n\n"
        "Generate only the cover letter content, no additional text or formatting."
    )
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


async def generate_cover_letter(
    job_description: str,
    resume: ResumeRecord,
    options: CoverLetterOptions,
    client: CompletionClient,
    config: CoverLetterConfig | None = None,
    sink: RecordSink | None = None,
) -> str:
    """Generate a cover letter. Call again with other options to regenerate.

    Raises:
        TransportError: If the endpoint answers with a non-2xx status.
    """
    config = config or CoverLetterConfig()
    raw = await client.complete(
        build_cover_letter_messages(job_description, resume, options),
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )
    letter = raw.strip()

    emit_record(sink, COVER_LETTERS, {
        "job_description": job_description,
        "resume_data": resume.to_wire(),
        "cover_letter": letter,
        "tone": options.tone,
        "language": options.language,
    })
    logger.info("Generated %s/%s cover letter (%d chars)", options.tone, options.language, len(letter))
    return letter
