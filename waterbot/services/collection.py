"""
Specialist fan-out: run independent specialists concurrently, each under its
own deadline, and join them according to a named failure policy.

ABORT   wait-all-or-first-failure: the first Failure (or timeout) cancels the
        remaining calls and raises SpecialistFailure.
DEGRADE wait for all; return every result, raising only if none succeeded.
"""

import asyncio
import logging
from enum import Enum

from waterbot.agent.specialists import Specialist
from waterbot.core.errors import SpecialistFailure, UpstreamTimeout
from waterbot.core.result import AgentResult, Failure

logger = logging.getLogger(__name__)


class SpecialistFailurePolicy(str, Enum):
    ABORT = "abort"
    DEGRADE = "degrade"

    @classmethod
    def from_setting(cls, value: str) -> "SpecialistFailurePolicy":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            logger.warning("[collection] unknown SPECIALIST_FAILURE_POLICY=%r; using abort", value)
            return cls.ABORT


async def run_with_deadline(agent: Specialist, location: str, timeout: float) -> AgentResult:
    """Run one specialist under ``timeout``; a timeout or stray exception becomes a Failure."""
    try:
        return await asyncio.wait_for(agent.run(location), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("[collection] %s timed out after %gs", agent.name, timeout)
        return Failure.from_exception(UpstreamTimeout(f"{agent.name} timed out after {timeout:g}s"))
    except Exception as e:
        # run() is not supposed to raise
        logger.exception("[collection] %s raised", agent.name)
        return Failure.from_exception(e)


async def collect(
    agents: list[Specialist],
    location: str,
    timeout: float,
    policy: SpecialistFailurePolicy = SpecialistFailurePolicy.ABORT,
) -> dict[str, AgentResult]:
    """Run ``agents`` concurrently for ``location``; return results keyed by agent name."""
    if not agents:
        raise ValueError("at least one specialist is required")
    logger.info("[collection] IN  agents=%s location=%r policy=%s", [a.name for a in agents], location, policy.value)
    tasks = {asyncio.create_task(run_with_deadline(a, location, timeout)): a.name for a in agents}
    results: dict[str, AgentResult] = {}
    pending = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                name = tasks[task]
                result = task.result()
                results[name] = result
                if not result.ok and policy is SpecialistFailurePolicy.ABORT:
                    raise SpecialistFailure(name, result.error, kind=result.kind)
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if not any(r.ok for r in results.values()):
        first = next(iter(results.items()))
        raise SpecialistFailure(first[0], first[1].error, kind=first[1].kind)
    logger.info("[collection] OUT %s", {name: r.ok for name, r in results.items()})
    return results
