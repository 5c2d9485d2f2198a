"""
AgentResult: every specialist, synthesis, and turn call returns exactly one of
``Success`` or ``Failure``.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from waterbot.core.errors import AgentError, TurnAborted

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        data = self.data
        if hasattr(data, "model_dump"):
            data = data.model_dump(by_alias=True, exclude_none=True)
        return {"ok": True, "data": data}


@dataclass(frozen=True)
class Failure:
    error: str
    kind: str = "internal"

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error, "kind": self.kind}

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        """Build a Failure from any exception; AgentError keeps its kind."""
        if isinstance(exc, AgentError):
            return cls(error=exc.message, kind=exc.kind)
        if isinstance(exc, TimeoutError):
            return cls(error="The request timed out.", kind="upstream_timeout")
        return cls(error=str(exc) or exc.__class__.__name__, kind="internal")


AgentResult = Union[Success[T], Failure]


def unwrap(result: AgentResult) -> Any:
    """Return a Success's data or raise TurnAborted carrying the Failure."""
    if result.ok:
        return result.data
    raise TurnAborted(result.error, result.kind)
