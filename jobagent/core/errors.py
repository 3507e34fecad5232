"""Error taxonomy for the job agent pipeline.

Configuration, budget and transport errors always reach the caller.
MalformedResponseError is raised by the parsers and recovered inside the
resume and job search stages.
"""


class JobAgentError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(JobAgentError, ValueError):
    """API base URL or credential is missing."""


class TokenBudgetExceededError(JobAgentError, ValueError):
    """Request would exceed the model's context window even after truncation."""

    def __init__(self, total_units: int, limit: int, message: str | None = None) -> None:
        self.total_units = total_units
        self.limit = limit
        super().__init__(
            message or f"Total tokens ({total_units}) exceed API limit ({limit})"
        )


class TransportError(JobAgentError, RuntimeError):
    """The completion endpoint answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class MalformedResponseError(JobAgentError, ValueError):
    """Model output is not valid JSON or not the expected shape."""
