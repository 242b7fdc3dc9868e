"""
Concurrent loading of independent reads for a single request.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict

import structlog

logger = structlog.get_logger(__name__)

Fetch = Callable[[], Awaitable[Any]]


async def fetch_parallel(operations: Dict[str, Fetch]) -> Dict[str, Any]:
    """
    Run named read operations concurrently and collect their results.

    A ``None`` result is kept as a value; deciding whether absence matters is
    left to the caller. If any operation raises, the first exception to be
    raised propagates and no results are returned. The other operations are
    not cancelled.

    Args:
        operations: Mapping from name to a zero-argument coroutine function

    Returns:
        Mapping from each name to its operation's result
    """
    if not operations:
        return {}

    names = list(operations)
    try:
        results = await asyncio.gather(*(operations[name]() for name in names))
    except Exception as e:
        logger.error("Parallel fetch failed", operations=names, error=str(e))
        raise

    return dict(zip(names, results))
