import asyncio
import logging
from typing import Optional

from tortoise import Tortoise

from secops.config import MODELS, settings

_logger = logging.getLogger("db")


def _tortoise_url(url: str) -> str:
    """Normalize a DATABASE_URL into the form Tortoise expects."""
    url = url.strip().strip('"').strip("'")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    if not url.startswith(("postgres://", "sqlite://")):
        raise ValueError("Unsupported DATABASE_URL; use postgres:// or sqlite://")
    return url


def build_tortoise_config(db_url: Optional[str] = None) -> dict:
    return {
        "connections": {"default": _tortoise_url(db_url or settings.DATABASE_URL)},
        "apps": {
            "models": {
                "models": MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


async def init_db(db_url: Optional[str] = None, max_retries: int = 3, delay_seconds: float = 0.5) -> None:
    """Initialize the ORM and create missing tables, retrying while the database comes up."""
    config = build_tortoise_config(db_url)
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except (OSError, ConnectionError) as exc:
            if attempt == max_retries:
                _logger.error("Database unavailable after %s attempts: %s", attempt, exc)
                raise
            _logger.info(
                "DB init failed (attempt %s/%s): %s; retrying in %.1fs",
                attempt,
                max_retries,
                exc,
                delay_seconds,
            )
            await asyncio.sleep(delay_seconds)


async def close_db() -> None:
    await Tortoise.close_connections()
