# staffpunch/db/bootstrap.py
import logging
import os
from alembic import command
from alembic.config import Config

from staffpunch.db.session import SessionLocal, SQLALCHEMY_DATABASE_URL
from staffpunch.db.init_db import init_db

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def alembic_config(url: str = SQLALCHEMY_DATABASE_URL) -> Config:
    # explicit paths so this works regardless of the working directory
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return cfg


def run_migrations_and_seed(seed_demo: bool = False) -> None:
    command.upgrade(alembic_config(), "head")
    logger.info("Database schema at head")

    if seed_demo:
        with SessionLocal() as db:
            init_db(db)
