"""Five-step progress model for a job search.

Each transition is reported with the full AgentStep value (not a delta), so
consumers upsert by ``id``.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from jobagent.core.schemas import AgentStep, StepStatus

logger = logging.getLogger(__name__)

ProgressReporter = Callable[[AgentStep], None]

FAILED_DESCRIPTION = "Job search failed. Please try again."

# (id, step, description)
SEARCH_STEPS: tuple[tuple[str, str, str], ...] = (
    ("1", "initialize", "Resume analysis complete"),
    ("2", "search", "Searching job databases..."),
    ("3", "analyze", "Analyzing job relevance"),
    ("4", "rank", "Ranking by compatibility"),
    ("5", "complete", "Results ready"),
)


class ProgressTracker:
    """Holds the current state of the five search steps and reports transitions.

    Usage::

        tracker = ProgressTracker(reporter)
        tracker.advance("search", "in_progress")
        ...
        tracker.fail_current()
    """

    def __init__(self, reporter: ProgressReporter | None = None) -> None:
        self._reporter = reporter
        self._steps: dict[str, AgentStep] = {
            step: AgentStep(id=step_id, step=step, description=description)
            for step_id, step, description in SEARCH_STEPS
        }

    @property
    def steps(self) -> list[AgentStep]:
        return list(self._steps.values())

    def get(self, step: str) -> AgentStep:
        return self._steps[step]

    def current(self) -> AgentStep | None:
        """The step currently in progress, if any."""
        for agent_step in self._steps.values():
            if agent_step.status == "in_progress":
                return agent_step
        return None

    def advance(
        self,
        step: str,
        status: StepStatus,
        *,
        description: str | None = None,
        details: str | None = None,
    ) -> AgentStep:
        """Set ``step`` to ``status`` and report the full new value."""
        update: dict[str, object] = {"status": status, "timestamp": datetime.now()}
        if description is not None:
            update["description"] = description
        if details is not None:
            update["details"] = details
        new_step = self._steps[step].model_copy(update=update)
        self._steps[step] = new_step
        logger.debug("Step %s (%s) -> %s", new_step.id, new_step.step, status)
        if self._reporter is not None:
            self._reporter(new_step)
        return new_step

    def fail_current(self, details: str | None = None) -> AgentStep:
        """Mark the in-progress step (``search`` if none) as failed."""
        in_flight = self.current()
        step = in_flight.step if in_flight is not None else "search"
        return self.advance(step, "failed", description=FAILED_DESCRIPTION, details=details)


class StepBoard:
    """Consumer-side view of reported steps: later reports replace earlier ones by id."""

    def __init__(self) -> None:
        self._by_id: dict[str, AgentStep] = {}
        self.history: list[AgentStep] = []

    def __call__(self, step: AgentStep) -> None:
        self.history.append(step)
        self._by_id[step.id] = step

    @property
    def steps(self) -> list[AgentStep]:
        """Latest value per id, in first-reported order."""
        return list(self._by_id.values())

    def latest(self, step_id: str) -> AgentStep | None:
        return self._by_id.get(step_id)
