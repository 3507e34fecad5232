"""Job search stage: one completion request, progress reporting, ranking.

Data flow:
  1. initialize -> completed
  2. search: completion request for 8-12 listings as a JSON array
  3. analyze / rank: paced delays for the live progress view
  4. complete -> completed
  5. Extract and parse the JSON array (fallback listings on failure)
  6. Fill missing scores, sort by relevance descending
  7. Store the batch (fire-and-forget)

The analyze and rank phases carry no computation; scoring happens after
all steps are reported, and a parse failure there never marks a step failed.
"""

import asyncio
import json
import logging
import math
import re
from typing import Any

from pydantic import ValidationError

from jobagent.core.config import SearchStageConfig
from jobagent.core.db import JOB_LISTINGS, RecordSink, emit_record
from jobagent.core.errors import MalformedResponseError
from jobagent.core.schemas import JobListing
from jobagent.llm.base import CompletionClient, Message
from jobagent.pipeline.fallback import generate_fallback_jobs
from jobagent.pipeline.progress import ProgressReporter, ProgressTracker
from jobagent.pipeline.scorer import clamp_score, score_relevance

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Remote/Any"

_SYSTEM_PROMPT = (
    "You are a job search agent. Generate realistic job listings based on the "
    "provided skills, query, and location."
)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def build_search_messages(query: str, location: str, skills: list[str]) -> list[Message]:
    """Assemble the system and user prompts for the listing request."""
    user_prompt = (
        f"Find relevant jobs for a candidate with these skills: {', '.join(skills)}.\n\n"
        f'Search query: "{query}"\n'
        f'Location: "{location or DEFAULT_LOCATION}"\n\n'
        "Generate 8-12 realistic job listings in JSON format:\n"
        "[\n"
        "  {\n"
        '    "id": "unique_id",\n'
        '    "title": "Job Title",\n'
        '    "company": "Company Name",\n'
        '    "location": "City, State/Country",\n'
        '    "description": "Detailed job description (200+ words)",\n'
        '    "salary": "$XX,XXX - $XX,XXX",\n'
        '    "url": "https://example.com/job/123",\n'
        '    "relevanceScore": 85,\n'
        '    "postedDate": "2024-01-15",\n'
        '    "requirements": ["requirement1", "requirement2"],\n'
        '    "benefits": ["benefit1", "benefit2"]\n'
        "  }\n"
        "]\n\n"
        "Make jobs realistic and relevant to the skills provided. "
        "Include a mix of experience levels."
    )
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def extract_job_array(raw_text: str) -> list[dict[str, Any]]:
    """Pull the ``[...]`` span out of the model's text and parse it.

    Non-object entries are dropped.

    Raises:
        MalformedResponseError: If no array is found or it is not valid JSON.
    """
    match = _JSON_ARRAY.search(raw_text)
    if match is None:
        msg = "No JSON array found in job search response"
        raise MalformedResponseError(msg)

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        msg = f"Failed to parse job listings as JSON: {e}"
        raise MalformedResponseError(msg) from e

    if not isinstance(data, list):
        msg = "Job search response is not a JSON array"
        raise MalformedResponseError(msg)

    items = [item for item in data if isinstance(item, dict)]
    if len(items) < len(data):
        logger.warning("Dropped %d non-object job entries", len(data) - len(items))
    return items


def resolve_score(item: dict[str, Any], skills: list[str]) -> int:
    """Keep a usable model score, otherwise compute one from the description.

    Absent, zero, non-numeric and non-finite (NaN, infinity) scores are
    recomputed. Scores outside [0, 100] are clamped and logged.
    """
    raw = item.get("relevanceScore")
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            raw = None
    if (
        isinstance(raw, bool)
        or not isinstance(raw, (int, float))
        or not raw
        or not math.isfinite(raw)
    ):
        description = item.get("description")
        return score_relevance(description if isinstance(description, str) else "", skills)

    score = clamp_score(raw)
    if score != raw:
        logger.warning(
            "Model score %r for '%s' outside [0, 100] or fractional - using %d",
            raw, item.get("title", ""), score,
        )
    return score


def build_listings(items: list[dict[str, Any]], skills: list[str]) -> list[JobListing]:
    """Validate raw entries into JobListings with a populated score."""
    listings: list[JobListing] = []
    for item in items:
        data = {**item, "relevanceScore": resolve_score(item, skills)}
        try:
            listings.append(JobListing.model_validate(data))
        except ValidationError:
            logger.warning("Skipping invalid job entry %r", item.get("id"), exc_info=True)
    return listings


def rank_listings(listings: list[JobListing]) -> list[JobListing]:
    """Sort by relevance descending (stable for ties)."""
    return sorted(listings, key=lambda job: job.relevance_score, reverse=True)


async def search_jobs(
    query: str,
    location: str,
    skills: list[str],
    client: CompletionClient,
    on_step: ProgressReporter | None = None,
    config: SearchStageConfig | None = None,
    sink: RecordSink | None = None,
) -> list[JobListing]:
    """Generate, score and rank job listings for ``query`` and ``skills``.

    Progress is reported through ``on_step`` with the full AgentStep value
    for every transition.

    Raises:
        TransportError: If the completion request fails. The in-flight step
            is reported as failed first. Errors raised while parsing and
            ranking, after step 5 completed, leave the steps untouched.
    """
    config = config or SearchStageConfig()
    tracker = ProgressTracker(on_step)

    try:
        tracker.advance("initialize", "completed")

        tracker.advance("search", "in_progress")
        raw = await client.complete(
            build_search_messages(query, location, skills),
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        tracker.advance("search", "completed")

        tracker.advance("analyze", "in_progress")
        await asyncio.sleep(config.analyze_delay_s)
        tracker.advance("analyze", "completed")

        tracker.advance("rank", "in_progress")
        await asyncio.sleep(config.rank_delay_s)
        tracker.advance("rank", "completed")

        tracker.advance("complete", "completed")
    except Exception as e:
        logger.error("Job search failed: %s", e)
        tracker.fail_current(details=str(e))
        raise

    # All steps are final from here on; errors propagate without a step update.
    try:
        jobs = build_listings(extract_job_array(raw), skills)
    except MalformedResponseError:
        logger.warning(
            "Job search response unusable - using fallback listings. "
            "Response starts with: %r",
            raw[:200],
            exc_info=True,
        )
        jobs = generate_fallback_jobs(query, location, skills)

    jobs = rank_listings(jobs)

    emit_record(sink, JOB_LISTINGS, {
        "query": query,
        "location": location,
        "skills": skills,
        "jobs": [job.to_wire() for job in jobs],
    })
    logger.info("Job search '%s': %d listings ranked", query, len(jobs))
    return jobs
