"""
LLM budget tracking (in-memory).

Caps Gemini enrichment calls per user and globally per day. Counters live
in TTLCaches and reset on restart, which is fine for abuse prevention.
When the budget is spent, enrichment silently uses the heuristics.
"""

from __future__ import annotations

from typing import NamedTuple

from cachetools import TTLCache

from saveit.config import LLM_GLOBAL_DAILY_LIMIT, LLM_USER_DAILY_LIMIT
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter

logger = get_logger(__name__)

_DAY_SECONDS = 86400
_user_calls: TTLCache[str, int] = TTLCache(maxsize=10000, ttl=_DAY_SECONDS)
_global_counter: TTLCache[str, int] = TTLCache(maxsize=1, ttl=_DAY_SECONDS)
_GLOBAL_KEY = "__global__"


class BudgetStatus(NamedTuple):
    """Current budget status for a user."""

    user_calls_today: int
    user_limit: int
    global_calls_today: int
    global_limit: int
    is_allowed: bool
    reason: str | None


def check_budget(
    user_id: str,
    user_limit: int = LLM_USER_DAILY_LIMIT,
    global_limit: int = LLM_GLOBAL_DAILY_LIMIT,
) -> BudgetStatus:
    """
    Check if user is within budget for LLM calls.
    """
    user_calls = _user_calls.get(user_id, 0)
    global_calls = _global_counter.get(_GLOBAL_KEY, 0)

    reason = None
    if user_calls >= user_limit:
        reason = f"User daily limit exceeded ({user_calls}/{user_limit})"
    elif global_calls >= global_limit:
        reason = f"Global daily limit exceeded ({global_calls}/{global_limit})"

    return BudgetStatus(
        user_calls_today=user_calls,
        user_limit=user_limit,
        global_calls_today=global_calls,
        global_limit=global_limit,
        is_allowed=reason is None,
        reason=reason,
    )


def record_llm_call(user_id: str, call_type: str = "link_metadata") -> None:
    """
    Record an LLM call for budget tracking.
    """
    _user_calls[user_id] = _user_calls.get(user_id, 0) + 1
    _global_counter[_GLOBAL_KEY] = _global_counter.get(_GLOBAL_KEY, 0) + 1

    counter(f"llm.budget.call.{call_type}")
    logger.debug("Recorded LLM call: user=%s, type=%s", user_id, call_type)


def reset_budget() -> None:
    """Forget all counts (tests)."""
    _user_calls.clear()
    _global_counter.clear()
