from logging.config import fileConfig
from alembic import context
from sqlalchemy import create_engine, pool
import os
import sys

# Add base path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(BASE_DIR)

# Load project environment variables
from dotenv import load_dotenv
load_dotenv()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# DATABASE_URL from the environment wins over alembic.ini
from astex.core.config import normalize_database_url
DATABASE_URL = normalize_database_url(
    os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
)

# Import metadata AFTER path fixed
from astex.db.session import Base
from astex.db import models  # noqa: F401
target_metadata = Base.metadata


# -------------------------------------------------------------
# OFFLINE MODE
# -------------------------------------------------------------
def run_migrations_offline():
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


# -------------------------------------------------------------
# ONLINE MODE
# -------------------------------------------------------------
def run_migrations_online():
    connectable = create_engine(
        DATABASE_URL,
        poolclass=pool.NullPool,
        connect_args={"check_same_thread": False}
            if DATABASE_URL.startswith("sqlite") else {},
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


# -------------------------------------------------------------
# ENTRY
# -------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
