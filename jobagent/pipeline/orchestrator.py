"""Orchestrator: wires settings, completion client and record sink into the stages.

Typical session:
  1. parse_resume once per upload
  2. search_jobs with the record's skills
  3. generate_cover_letter per chosen job, any number of times

The pipeline holds no per-call state, so overlapping calls are independent.
"""

import logging
import sqlite3

from jobagent.core.config import Settings
from jobagent.core.db import RecordSink, SqliteRecordSink, init_db
from jobagent.core.schemas import CoverLetterOptions, JobListing, ResumeRecord
from jobagent.llm.base import CompletionClient
from jobagent.llm.openai import OpenAICompatibleClient
from jobagent.pipeline.cover_letter import generate_cover_letter
from jobagent.pipeline.job_search import search_jobs
from jobagent.pipeline.progress import ProgressReporter
from jobagent.pipeline.resume_parser import parse_resume

logger = logging.getLogger(__name__)


class JobAgentPipeline:
    """Entry point for the three stages.

    Raises ConfigurationError at construction when no client is injected and
    the API base URL or key is missing. Call ``aclose`` when done; it closes
    the client only if the pipeline created it.
    """

    def __init__(
        self,
        settings: Settings,
        client: CompletionClient | None = None,
        sink: RecordSink | None = None,
    ) -> None:
        self.settings = settings
        self._owns_client = client is None
        self.client = client if client is not None else OpenAICompatibleClient(settings.api)
        self.sink = sink

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def parse_resume(self, resume_text: str) -> ResumeRecord:
        return await parse_resume(resume_text, self.client, self.settings.budget, self.sink)

    async def search_jobs(
        self,
        query: str,
        resume: ResumeRecord,
        location: str = "",
        on_step: ProgressReporter | None = None,
    ) -> list[JobListing]:
        return await search_jobs(
            query,
            location,
            list(resume.skills),
            self.client,
            on_step=on_step,
            config=self.settings.search,
            sink=self.sink,
        )

    async def generate_cover_letter(
        self,
        job: JobListing | str,
        resume: ResumeRecord,
        options: CoverLetterOptions | None = None,
    ) -> str:
        description = job.description if isinstance(job, JobListing) else job
        return await generate_cover_letter(
            description,
            resume,
            options or CoverLetterOptions(),
            self.client,
            config=self.settings.cover_letter,
            sink=self.sink,
        )


def open_sink(settings: Settings) -> tuple[RecordSink | None, sqlite3.Connection | None]:
    """Open the SQLite sink when persistence is enabled."""
    if not settings.database.enabled:
        logger.debug("Persistence disabled")
        return None, None
    conn = init_db(settings.database.path)
    return SqliteRecordSink(conn), conn
