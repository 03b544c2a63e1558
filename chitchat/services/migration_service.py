import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from chitchat.core.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SQLITE_PREFIXES = ("sqlite+aiosqlite:///", "sqlite:///")


def sqlite_file_path(database_url: str) -> Path | None:
    """Path of the SQLite file behind the URL, or None for other databases and memory."""
    for prefix in SQLITE_PREFIXES:
        if database_url.startswith(prefix):
            raw_path = database_url[len(prefix):]
            if not raw_path or raw_path.startswith(":memory:"):
                return None
            return Path(raw_path)
    return None


def build_alembic_config(database_url: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url.replace("+aiosqlite", ""))
    # Keep the application's logging configuration intact
    config.attributes["configure_logger"] = False
    return config


async def run_migrations(database_url: str | None = None) -> None:
    """Upgrade the database to the latest alembic revision."""
    database_url = database_url or settings.DATABASE_URL
    logger.info("Running database migrations...")

    db_path = sqlite_file_path(database_url)
    if db_path is not None and not db_path.parent.exists():
        logger.info(f"Creating database directory: {db_path.parent}")
        db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        await asyncio.to_thread(
            command.upgrade, build_alembic_config(database_url), "head"
        )
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise RuntimeError("Database migration failed") from e
    logger.info("Migrations completed successfully")
