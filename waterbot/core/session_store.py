"""
In-memory session registry. Keyed by session_id; each session owns one Orchestrator
(and with it the session's conversation memory).

Sessions idle for longer than SESSION_IDLE_TTL are evicted, and at most
SESSION_MAX_COUNT are kept (least recently used goes first).
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

from waterbot.core.config import SESSION_IDLE_TTL, SESSION_MAX_COUNT

logger = logging.getLogger(__name__)

# session_id -> (Orchestrator, last used), least recently used first
_sessions: "OrderedDict[str, tuple[Any, float]]" = OrderedDict()
_lock = threading.Lock()
_clock: Callable[[], float] = time.monotonic


def _evict(now: float) -> None:
    """Drop idle sessions, then the oldest ones beyond the cap. Caller holds _lock."""
    while _sessions:
        session_id, (_, last_used) = next(iter(_sessions.items()))
        if now - last_used <= SESSION_IDLE_TTL and len(_sessions) <= SESSION_MAX_COUNT:
            break
        _sessions.popitem(last=False)
        logger.info("[session_store:evict] session_id=%s idle=%.0fs", session_id[:16], now - last_used)


def get_orchestrator(session_id: str, factory: Callable[[], Any]) -> Any:
    """Return the session's orchestrator, creating it with ``factory`` on first use."""
    if not session_id or not isinstance(session_id, str):
        raise ValueError("session_id is required")
    with _lock:
        now = _clock()
        _evict(now)
        entry = _sessions.pop(session_id, None)
        if entry is None:
            orchestrator = factory()
            logger.info("[session_store:get_orchestrator] created session_id=%s", session_id[:16])
        else:
            orchestrator = entry[0]
        _sessions[session_id] = (orchestrator, now)
        _evict(now)
    return orchestrator


def find_orchestrator(session_id: str) -> Any | None:
    with _lock:
        entry = _sessions.get(session_id)
    return entry[0] if entry else None


def get_history(session_id: str) -> list[dict[str, Any]]:
    """Return the session's turns as dicts (empty for unknown sessions)."""
    orchestrator = find_orchestrator(session_id)
    if orchestrator is None:
        logger.info("[session_store:get_history] IN  session_id=%r -> empty", session_id)
        return []
    out = [t.to_dict() for t in orchestrator.memory.turns]
    logger.info("[session_store:get_history] IN  session_id=%s OUT turns=%d", session_id[:16], len(out))
    return out


def drop_session(session_id: str) -> bool:
    """Forget a session entirely. Returns False if it did not exist."""
    with _lock:
        existed = _sessions.pop(session_id, None) is not None
    logger.info("[session_store:drop_session] session_id=%s existed=%s", session_id[:16], existed)
    return existed


def clear_all() -> None:
    with _lock:
        _sessions.clear()
