"""Tests for the job search stage."""

import asyncio
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from jobagent.core.config import SearchStageConfig
from jobagent.core.errors import MalformedResponseError, TransportError
from jobagent.core.schemas import AgentStep
from jobagent.llm.base import CompletionClient, Message
from jobagent.pipeline.job_search import (
    DEFAULT_LOCATION,
    build_listings,
    build_search_messages,
    extract_job_array,
    resolve_score,
    search_jobs,
)
from jobagent.pipeline.progress import FAILED_DESCRIPTION, StepBoard

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

_NO_DELAY = SearchStageConfig(analyze_delay_s=0, rank_delay_s=0)


def _load_sample_response() -> str:
    return (FIXTURES_DIR / "sample_jobs_response.txt").read_text()


class FakeClient(CompletionClient):
    """Returns queued responses (or raises queued exceptions) and records calls."""

    def __init__(self, *responses: str | Exception) -> None:
        self._responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    @property
    def model(self) -> str:
        return "fake"

    async def complete(self, messages: list[Message], *, max_tokens: int, temperature: float) -> str:
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _transitions(board: StepBoard) -> list[tuple[str, str]]:
    return [(s.id, s.status) for s in board.history]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


class TestExtractJobArray:
    def test_array_inside_prose(self) -> None:
        items = extract_job_array(_load_sample_response())
        assert [i["id"] for i in items] == ["job-1", "job-2", "job-3"]

    def test_no_array(self) -> None:
        with pytest.raises(MalformedResponseError, match="No JSON array"):
            extract_job_array("I couldn't find any jobs.")

    def test_invalid_json(self) -> None:
        with pytest.raises(MalformedResponseError, match="Failed to parse job listings"):
            extract_job_array('[{"id": "1", "title": }]')

    def test_drops_non_objects(self) -> None:
        assert extract_job_array('[{"id": "1"}, "junk", 3]') == [{"id": "1"}]

    def test_empty_array(self) -> None:
        assert extract_job_array("[]") == []


class TestResolveScore:
    def test_keeps_model_score(self) -> None:
        assert resolve_score({"relevanceScore": 72, "description": "Go"}, ["Go"]) == 72

    def test_missing_score_computed(self) -> None:
        assert resolve_score({"description": "Go and SQL"}, ["Go", "SQL"]) == 100

    def test_zero_score_computed(self) -> None:
        assert resolve_score({"relevanceScore": 0, "description": "nothing"}, ["Go"]) == 45

    def test_null_and_garbage_scores_computed(self) -> None:
        assert resolve_score({"relevanceScore": None, "description": ""}, ["Go"]) == 45
        assert resolve_score({"relevanceScore": "high", "description": ""}, ["Go"]) == 45

    def test_numeric_string_accepted(self) -> None:
        assert resolve_score({"relevanceScore": "88"}, []) == 88

    def test_out_of_range_clamped(self, caplog: pytest.LogCaptureFixture) -> None:
        assert resolve_score({"relevanceScore": 140, "title": "Dev"}, []) == 100
        assert resolve_score({"relevanceScore": -20, "title": "Dev"}, []) == 0
        assert "outside [0, 100]" in caplog.text

    def test_missing_description(self) -> None:
        assert resolve_score({}, ["Go"]) == 45

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf"), "nan", "Infinity"])
    def test_non_finite_score_computed(self, raw: object) -> None:
        assert resolve_score({"relevanceScore": raw, "description": "Go"}, ["Go"]) == 100

    def test_fractional_score_rounded(self, caplog: pytest.LogCaptureFixture) -> None:
        assert resolve_score({"relevanceScore": 72.6, "title": "Dev"}, []) == 73
        assert "fractional" in caplog.text


class TestBuildListings:
    def test_every_listing_scored(self) -> None:
        items = extract_job_array(_load_sample_response())
        listings = build_listings(items, ["Go", "SQL"])
        scores = {job.id: job.relevance_score for job in listings}
        assert scores["job-1"] == 72
        assert scores["job-2"] == 91
        # job-3 has no score: "Python" description matches neither skill
        assert scores["job-3"] == 45


class TestBuildSearchMessages:
    def test_location_default(self) -> None:
        messages = build_search_messages("Backend Engineer", "", ["Go", "SQL"])
        user = messages[1]["content"]
        assert f'Location: "{DEFAULT_LOCATION}"' in user
        assert "Go, SQL" in user
        assert '"Backend Engineer"' in user

    def test_location_given(self) -> None:
        messages = build_search_messages("Dev", "Lisbon", [])
        assert 'Location: "Lisbon"' in messages[1]["content"]


# ---------------------------------------------------------------------------
# Stage
# ---------------------------------------------------------------------------


class TestSearchJobs:
    @pytest.fixture(autouse=True)
    def _patch_sleep(self) -> Generator[AsyncMock, None, None]:
        """Patch asyncio.sleep to avoid real delays in tests."""
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep:
            yield mock_sleep

    async def test_progress_contract(self) -> None:
        board = StepBoard()
        client = FakeClient(_load_sample_response())

        await search_jobs("Backend Engineer", "", ["Go", "SQL"], client, on_step=board)

        assert _transitions(board) == [
            ("1", "completed"),
            ("2", "in_progress"),
            ("2", "completed"),
            ("3", "in_progress"),
            ("3", "completed"),
            ("4", "in_progress"),
            ("4", "completed"),
            ("5", "completed"),
        ]
        assert all(isinstance(s, AgentStep) for s in board.history)
        assert [s.step for s in board.steps] == ["initialize", "search", "analyze", "rank", "complete"]

    async def test_at_most_one_in_progress(self) -> None:
        board = StepBoard()
        in_progress_counts: list[int] = []

        def _reporter(step: AgentStep) -> None:
            board(step)
            in_progress_counts.append(sum(1 for s in board.steps if s.status == "in_progress"))

        await search_jobs("Dev", "", ["Go"], FakeClient(_load_sample_response()), on_step=_reporter)
        assert max(in_progress_counts) == 1

    async def test_sorted_by_relevance_desc(self) -> None:
        jobs = await search_jobs("Backend Engineer", "", ["Go", "SQL"], FakeClient(_load_sample_response()))
        assert [j.id for j in jobs] == ["job-2", "job-1", "job-3"]
        assert [j.relevance_score for j in jobs] == [91, 72, 45]

    async def test_request_parameters(self) -> None:
        client = FakeClient(_load_sample_response())
        await search_jobs("Dev", "Paris", ["Go"], client, config=_NO_DELAY)
        assert len(client.calls) == 1
        assert client.calls[0]["max_tokens"] == 4000
        assert client.calls[0]["temperature"] == 0.7

    async def test_delays_paced(self, _patch_sleep: AsyncMock) -> None:
        await search_jobs("Dev", "", ["Go"], FakeClient(_load_sample_response()))
        assert [c.args[0] for c in _patch_sleep.call_args_list] == [1.0, 0.8]

    async def test_unparseable_response_uses_fallback(self) -> None:
        board = StepBoard()
        jobs = await search_jobs(
            "Backend Engineer", "", ["Go", "SQL"], FakeClient("No jobs today, sorry."), on_step=board,
        )
        assert len(jobs) == 8
        assert [j.relevance_score for j in jobs] == [95, 87, 79, 71, 63, 55, 50, 50]
        assert all(s.status == "completed" for s in board.steps)

    async def test_broken_json_uses_fallback(self) -> None:
        jobs = await search_jobs("Dev", "Remote", ["Go"], FakeClient('[{"id": 1,, }]'))
        assert jobs[0].id == "fallback-0"

    async def test_empty_array_kept_empty(self) -> None:
        jobs = await search_jobs("Dev", "", ["Go"], FakeClient("[]"))
        assert jobs == []

    async def test_transport_failure_marks_step_failed(self) -> None:
        board = StepBoard()
        client = FakeClient(TransportError("Completion API error: 500 - oops", status_code=500))

        with pytest.raises(TransportError):
            await search_jobs("Backend Engineer", "", ["Go", "SQL"], client, on_step=board)

        last = board.history[-1]
        assert last.id == "2"
        assert last.status == "failed"
        assert last.description == FAILED_DESCRIPTION
        assert _transitions(board) == [("1", "completed"), ("2", "in_progress"), ("2", "failed")]

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e400", '"nan"'])
    async def test_non_finite_model_score_recomputed(self, literal: str) -> None:
        board = StepBoard()
        raw = f'[{{"id": "a", "title": "Dev", "description": "Go", "relevanceScore": {literal}}}]'

        jobs = await search_jobs("Dev", "", ["Go"], FakeClient(raw), on_step=board)

        assert [(j.id, j.relevance_score) for j in jobs] == [("a", 100)]
        assert all(s.status == "completed" for s in board.steps)

    async def test_error_after_completion_leaves_steps_completed(self) -> None:
        board = StepBoard()
        client = FakeClient(_load_sample_response())

        with (
            patch("jobagent.pipeline.job_search.build_listings", side_effect=RuntimeError("boom")),
            pytest.raises(RuntimeError, match="boom"),
        ):
            await search_jobs("Dev", "", ["Go"], client, on_step=board)

        assert _transitions(board)[-1] == ("5", "completed")
        assert all(s.status != "failed" for s in board.history)

    async def test_stores_batch(self) -> None:
        records: list[tuple[str, dict[str, Any]]] = []

        class Sink:
            def insert(self, table: str, record: dict[str, Any]) -> None:
                records.append((table, record))

        await search_jobs("Dev", "Remote", ["Go"], FakeClient(_load_sample_response()), sink=Sink())

        table, record = records[0]
        assert table == "job_listings"
        assert record["query"] == "Dev"
        assert record["skills"] == ["Go"]
        assert record["jobs"][0]["relevanceScore"] == 91

    async def test_failed_search_stores_nothing(self) -> None:
        records: list[str] = []

        class Sink:
            def insert(self, table: str, record: dict[str, Any]) -> None:
                records.append(table)

        with pytest.raises(TransportError):
            await search_jobs("Dev", "", [], FakeClient(TransportError("down")), sink=Sink())
        assert records == []
