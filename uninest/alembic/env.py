# Alembic environment for the UniNest schema.
# The target URL is `sqlalchemy.url` when set on the Alembic config (tests, one-off runs),
# otherwise DATABASE_URL through uninest.config.
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from uninest import config as app_config
from uninest import models  # noqa: F401  registers every table on Base.metadata
from uninest.db import Base

alembic_config = context.config

if alembic_config.config_file_name is not None:
    # Keep the application's own loggers alive when migrations run in-process
    fileConfig(alembic_config.config_file_name, disable_existing_loggers=False)


def database_url() -> str:
    return alembic_config.get_main_option("sqlalchemy.url") or app_config.DATABASE_URL


def _configure(url: str, **kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        compare_server_default=True,
        # SQLite cannot ALTER most constraints in place; batch mode rebuilds the table
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def migrate_offline(url: str) -> None:
    """Emit the migration SQL to stdout instead of touching a database."""
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def migrate_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(url, connection=connection)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_offline(database_url())
else:
    migrate_online(database_url())
