# migrations/env.py
from alembic import context
from sqlalchemy import engine_from_config, pool

# (1) load .env
from dotenv import load_dotenv
load_dotenv()

from staffpunch.db.base import Base
from staffpunch.db.session import SQLALCHEMY_DATABASE_URL
import staffpunch.models  # noqa: F401  (registers tables)

config = context.config

# (2) URL: explicit one from the caller (bootstrap), else DATABASE_URL / settings
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", SQLALCHEMY_DATABASE_URL.replace("%", "%%"))

target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True, render_as_batch=url.startswith("sqlite"))
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = engine_from_config(config.get_section(config.config_ini_section), prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
