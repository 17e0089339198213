import asyncio
import logging
from typing import Awaitable, TypeVar

from tortoise.exceptions import IntegrityError, OperationalError

from secops.config import settings
from secops.errors import PersistenceError

T = TypeVar("T")
log = logging.getLogger(__name__)


async def bounded(awaitable: Awaitable[T], what: str, timeout: float | None = None) -> T:
    """Await a store call with a timeout; storage failures become PersistenceError.

    IntegrityError passes through so callers can resolve unique-key races.
    """
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except IntegrityError:
        raise
    except asyncio.TimeoutError as exc:
        log.warning("Store call timed out after %.1fs: %s", timeout, what)
        raise PersistenceError(f"Timed out while trying to {what}") from exc
    except (OperationalError, ConnectionError, OSError) as exc:
        log.error("Store call failed: %s: %s", what, exc)
        raise PersistenceError(f"Failed to {what}") from exc
