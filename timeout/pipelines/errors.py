"""
Error mapping shared by the pipelines.
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Optional, TypeVar

from common.utils.exceptions import APIException, InternalException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def internal_errors(operation: str):
    """
    Let API exceptions through; turn anything else into InternalException.

    The original error is logged with its traceback and never reaches the
    caller.
    """
    try:
        yield
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Failed to {operation}: {e}", exc_info=True)
        raise InternalException(message=f"Failed to {operation}")


async def best_effort(step: str, awaitable: Awaitable[T]) -> Optional[T]:
    """
    Await a side effect, logging instead of raising on failure.

    Returns:
        The awaited result, or None if the step failed
    """
    try:
        return await awaitable
    except Exception as e:
        logger.warning(f"{step} failed: {e}")
        return None
