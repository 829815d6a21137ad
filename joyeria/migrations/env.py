from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from joyeria.app.core.config import settings
from joyeria.app.core.database import Base

# Import all models so Base.metadata knows every table
import joyeria.app.models.audit  # noqa: F401
import joyeria.app.models.customer  # noqa: F401
import joyeria.app.models.extra_income  # noqa: F401
import joyeria.app.models.inventory  # noqa: F401
import joyeria.app.models.receivable  # noqa: F401
import joyeria.app.models.register  # noqa: F401
import joyeria.app.models.sales  # noqa: F401
import joyeria.app.models.user  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
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
