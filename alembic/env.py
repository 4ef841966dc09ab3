from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from app.core.config import settings
from app.database.database import Base

# Registrar todos los modelos en Base.metadata
import app.modules.auth.models  # noqa: F401
import app.modules.establishments.models  # noqa: F401
import app.modules.services.models  # noqa: F401
import app.modules.clients.models  # noqa: F401
import app.modules.schedulings.models  # noqa: F401
import app.modules.sales.models  # noqa: F401
import app.modules.commissions.models  # noqa: F401
import app.modules.expenses.models  # noqa: F401
import app.modules.plans.models  # noqa: F401
import app.modules.payments.models  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
