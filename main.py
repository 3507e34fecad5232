"""CLI entry point for the job agent."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from jobagent.core.config import Settings
from jobagent.core.errors import JobAgentError
from jobagent.core.schemas import AgentStep, CoverLetterOptions, JobListing, ResumeRecord
from jobagent.pipeline.orchestrator import JobAgentPipeline, open_sink

_STATUS_MARKS = {"pending": " ", "in_progress": "~", "completed": "x", "failed": "!"}


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: environment variables only)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job agent - parse a resume, find matching jobs, write cover letters",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- parse-resume ---
    resume_parser = subparsers.add_parser(
        "parse-resume",
        help="Extract structured data from a resume (PDF or text)",
    )
    resume_parser.add_argument("--resume", required=True, help="Path to resume file")
    resume_parser.add_argument(
        "--output",
        default="data/resume.json",
        help="Output path for the parsed resume JSON (default: data/resume.json)",
    )
    _add_common_args(resume_parser)

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Search and rank jobs for a parsed resume")
    search_parser.add_argument("--resume-json", required=True, help="Parsed resume JSON")
    search_parser.add_argument("--query", required=True, help="Job search query")
    search_parser.add_argument("--location", default="", help="Preferred location")
    search_parser.add_argument(
        "--output",
        default="data/jobs.json",
        help="Output path for ranked jobs JSON (default: data/jobs.json)",
    )
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Also print results to stdout in this format",
    )
    _add_common_args(search_parser)

    # --- cover-letter ---
    letter_parser = subparsers.add_parser("cover-letter", help="Generate a cover letter")
    letter_parser.add_argument("--resume-json", required=True, help="Parsed resume JSON")
    source = letter_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--job-json", help="Ranked jobs JSON written by 'search'")
    source.add_argument("--job-description", help="Job description text")
    letter_parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Which job from --job-json to use (default: 0, the best match)",
    )
    letter_parser.add_argument("--tone", choices=["formal", "friendly"], default="formal")
    letter_parser.add_argument("--language", choices=["english", "french"], default="english")
    _add_common_args(letter_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def print_step(step: AgentStep) -> None:
    """Progress reporter for the terminal."""
    mark = _STATUS_MARKS[step.status]
    print(f"  [{mark}] {step.id}. {step.step:<10} {step.description}")


def _write_json(path: str | Path, data: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False))


def _read_json(path: str | Path) -> Any:
    path = Path(path)
    if not path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)
    return json.loads(path.read_text())


async def cmd_parse_resume(args: argparse.Namespace, pipeline: JobAgentPipeline) -> None:
    """Handle parse-resume subcommand."""
    from jobagent.profile.extractor import load_resume_text

    print(f"Reading resume from {args.resume}...")
    text = load_resume_text(args.resume)
    print(f"Extracted {len(text)} characters.")

    record = await pipeline.parse_resume(text)
    _write_json(args.output, record.to_wire())
    print(f"Parsed resume written to {args.output}")
    print(f"  Skills: {', '.join(record.skills) or '(none found)'}")
    print(f"  Positions: {len(record.work_experience)}")
    print(f"  Roles of interest: {', '.join(record.roles_of_interest) or '(none)'}")


async def cmd_search(args: argparse.Namespace, pipeline: JobAgentPipeline) -> None:
    """Handle search subcommand."""
    resume = ResumeRecord.model_validate(_read_json(args.resume_json))

    print(f"Searching '{args.query}' ({args.location or 'Remote/Any'})...")
    jobs = await pipeline.search_jobs(args.query, resume, args.location, on_step=print_step)

    wire = [job.to_wire() for job in jobs]
    _write_json(args.output, wire)

    top = sum(1 for job in jobs if job.relevance_score >= 80)
    print(f"\n{len(jobs)} jobs ranked, {top} strong matches (80+). Written to {args.output}")
    for job in jobs:
        print(f"  {job.relevance_score:>3}  {job.title} - {job.company} ({job.location})")

    if args.export == "json":
        print(f"\n{json.dumps(wire, indent=2, ensure_ascii=False)}")


async def cmd_cover_letter(args: argparse.Namespace, pipeline: JobAgentPipeline) -> None:
    """Handle cover-letter subcommand."""
    resume = ResumeRecord.model_validate(_read_json(args.resume_json))

    job: JobListing | str
    if args.job_json:
        jobs = _read_json(args.job_json)
        if not isinstance(jobs, list) or not 0 <= args.index < len(jobs):
            msg = f"--index {args.index} is out of range for {args.job_json}"
            raise ValueError(msg)
        job = JobListing.model_validate(jobs[args.index])
        print(f"Writing cover letter for {job.title} at {job.company}...")
    else:
        job = args.job_description

    options = CoverLetterOptions(tone=args.tone, language=args.language)
    letter = await pipeline.generate_cover_letter(job, resume, options)
    print(f"\n{letter}")


_COMMANDS = {
    "parse-resume": cmd_parse_resume,
    "search": cmd_search,
    "cover-letter": cmd_cover_letter,
}


async def run(args: argparse.Namespace, settings: Settings) -> None:
    sink, conn = open_sink(settings)
    try:
        pipeline = JobAgentPipeline(settings, sink=sink)
        try:
            await _COMMANDS[args.command](args, pipeline)
        finally:
            await pipeline.aclose()
    finally:
        if conn is not None:
            conn.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run(args, settings))
    except (JobAgentError, FileNotFoundError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
