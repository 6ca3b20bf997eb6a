"""Apply Alembic migrations programmatically."""

from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config

from bronzeledger.core.config import settings
from bronzeledger.core.logging import get_logger

log = get_logger("migrations")

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def alembic_config(database_url: Optional[str] = None) -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", (database_url or settings.DATABASE_URL).replace("%", "%%"))
    return cfg


def run_migrations(database_url: Optional[str] = None, revision: str = "head") -> None:
    """Execute Alembic migrations up to ``revision``."""
    log.info(f"Running Alembic migrations to {revision}")
    command.upgrade(alembic_config(database_url), revision)
    log.info("Alembic migrations applied")
