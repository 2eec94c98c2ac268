"""
In-process caches used by the analysis endpoint (cachetools).

Two things are cached:
- the database context (students/jobs/companies snapshot + breakdowns),
  for context_cache_ttl_seconds
- answers to analysis queries, keyed by the normalized query text; AI
  answers live for ai_answer_ttl_seconds, rule-based ones for
  fallback_answer_ttl_seconds

Both caches are size-bounded, so distinct officer queries cannot grow
memory without limit. Write routes call invalidate_analysis_caches() so
officers never read stale numbers after an edit.
"""

import hashlib
import logging
import time
from typing import Any, Callable, Dict

from cachetools import TLRUCache, TTLCache

from campus_placement.core.config import get_settings

logger = logging.getLogger(__name__)

CONTEXT_CACHE_SIZE = 4
ANSWER_CACHE_SIZE = 256


def analysis_cache_key(query: str, analysis_type: str = "general") -> str:
    """Cache key for an analysis answer (case and whitespace insensitive)."""
    normalized = " ".join((query or "").lower().split())
    digest = hashlib.md5(f"{analysis_type}:{normalized}".encode()).hexdigest()
    return f"ai:analysis:{digest}"


def _answer_expiry(_key: str, answer: Dict[str, Any], now: float) -> float:
    settings = get_settings()
    if answer.get("type") == "ai_response":
        return now + settings.ai_answer_ttl_seconds
    return now + settings.fallback_answer_ttl_seconds


def make_context_cache(timer: Callable[[], float] = time.monotonic) -> TTLCache:
    return TTLCache(maxsize=CONTEXT_CACHE_SIZE, ttl=get_settings().context_cache_ttl_seconds, timer=timer)


def make_answer_cache(timer: Callable[[], float] = time.monotonic) -> TLRUCache:
    return TLRUCache(maxsize=ANSWER_CACHE_SIZE, ttu=_answer_expiry, timer=timer)


# Singletons shared by the analysis routes
context_cache = make_context_cache()
answer_cache = make_answer_cache()


def invalidate_analysis_caches() -> None:
    """Drop cached context and answers after a write to students/jobs/companies."""
    context_cache.clear()
    answer_cache.clear()
    logger.debug("Analysis caches invalidated")
