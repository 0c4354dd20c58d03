import asyncio
import logging
from typing import Optional
from tortoise import Tortoise
from facegroup.config import settings

_logger = logging.getLogger("facegroup.db")

MODELS = [
    "facegroup.models",
]


def _tortoise_url(url: Optional[str] = None) -> str:
    """Normalize database URL for Tortoise ORM."""
    url = (url or settings.DATABASE_URL).strip().strip('"').strip("'")
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgres://", 1)
    if not (url.startswith("postgres://") or url.startswith("sqlite://")):
        raise ValueError("Unsupported DATABASE_URL; use postgres:// or sqlite://")
    return url


def build_tortoise_config(url: Optional[str] = None) -> dict:
    return {
        "connections": {"default": _tortoise_url(url)},
        "apps": {
            "models": {
                "models": MODELS,
                "default_connection": "default",
            }
        },
        "use_tz": False,
        "timezone": "UTC",
    }


async def init_db(url: Optional[str] = None, max_retries: int = 3, delay_seconds: float = 0.5) -> None:
    """Initialize Tortoise in the current event loop, retrying transient failures."""
    config = build_tortoise_config(url)
    for attempt in range(1, max_retries + 1):
        try:
            await Tortoise.init(config=config)
            await Tortoise.generate_schemas(safe=True)
            _logger.info("Database initialized successfully")
            return
        except (OSError, ConnectionError) as exc:
            if attempt == max_retries:
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
    """Close database connections in the current event loop."""
    await Tortoise.close_connections()
