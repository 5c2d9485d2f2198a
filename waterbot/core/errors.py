"""
Application errors for turn processing and clean API error handling.

Each error carries a ``kind`` marker that survives conversion into a
``Failure`` result, so the request boundary can pick a status code without
inspecting messages.
"""


class AgentError(Exception):
    """Base class for faults raised while processing a turn."""

    kind = "internal"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ServiceUnavailableError(AgentError):
    """Raised when a required service (e.g. completion service) is unavailable or misconfigured."""

    kind = "upstream"


class UpstreamError(AgentError):
    """An external tool or the completion service failed after retries."""

    kind = "upstream"


class UpstreamTimeout(AgentError):
    """An external call or the whole turn ran past its deadline."""

    kind = "upstream_timeout"


class ClassificationError(AgentError):
    """Classifier output could not be repaired or validated. Recovered locally."""

    kind = "classification"


class LocationUnresolved(AgentError):
    kind = "location_unresolved"


class SpecialistFailure(AgentError):
    """
    A specialist agent failed during a water-shortage turn. A specialist that
    ran past its deadline keeps the ``upstream_timeout`` kind.
    """

    kind = "specialist_failure"

    def __init__(self, agent: str, message: str, kind: str | None = None) -> None:
        self.agent = agent
        super().__init__(f"{agent} failed: {message}")
        if kind == UpstreamTimeout.kind:
            self.kind = kind


class SynthesisParseError(AgentError):
    """Model output failed JSON repair or schema validation."""

    kind = "synthesis_parse"


class TurnAborted(AgentError):
    """Carries a component Failure out of the turn pipeline with its original kind."""

    def __init__(self, message: str, kind: str) -> None:
        super().__init__(message)
        self.kind = kind
