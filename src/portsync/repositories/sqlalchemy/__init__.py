"""SQLAlchemy repository implementations."""

from portsync.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_scoped_session,
    init_db_with_url,
    reset_database,
    Base,
)
from portsync.repositories.sqlalchemy.broker_account_repo import SqlAlchemyBrokerAccountRepository
from portsync.repositories.sqlalchemy.position_repo import (
    SqlAlchemyPositionRepository,
    SqlAlchemyHoldingRepository,
)
from portsync.repositories.sqlalchemy.sync_log_repo import SqlAlchemySyncLogRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_scoped_session",
    "init_db_with_url",
    "reset_database",
    "Base",
    "SqlAlchemyBrokerAccountRepository",
    "SqlAlchemyPositionRepository",
    "SqlAlchemyHoldingRepository",
    "SqlAlchemySyncLogRepository",
]
