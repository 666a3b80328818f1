"""
============================================================
TARJETA CRC — alembic/env.py
============================================================
Responsibilities:
  - Correr migraciones online (engine) u offline (SQL a stdout).
  - Tomar la URL de Settings (DATABASE_URL / .env), igual que la app.

Collaborators:
  - bitacora.crosscutting.config.get_settings
  - SQLAlchemy (engine_from_config, driver psycopg 3)

Policy:
  - Sin ORM: target_metadata es None y las migraciones se escriben a mano.
============================================================
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from bitacora.crosscutting.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = None


def database_url() -> str:
    """DATABASE_URL con el dialecto psycopg 3 explícito para SQLAlchemy."""
    url = get_settings().database_url or config.get_main_option("sqlalchemy.url") or ""
    if not url:
        raise RuntimeError("DATABASE_URL no configurada: no hay dónde migrar.")
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
