from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from booking_cancellation.core.config import settings
from booking_cancellation.db.session import Base

# Every table must be imported for autogenerate to see it
from booking_cancellation.models.user import User  # noqa: F401
from booking_cancellation.models.partner import Partner  # noqa: F401
from booking_cancellation.models.offer import Offer, OfferVariant  # noqa: F401
from booking_cancellation.models.booking import Booking  # noqa: F401
from booking_cancellation.models.loyalty import LoyaltyAccount, LoyaltyTransaction  # noqa: F401
from booking_cancellation.models.email_log import EmailLog  # noqa: F401
from booking_cancellation.models.audit_log import AuditLog  # noqa: F401

config = context.config

# The runtime DATABASE_URL wins over alembic.ini, so migrations and the API hit the same database.
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
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # create_engine rather than engine_from_config: alembic.ini does not expand env vars.
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
