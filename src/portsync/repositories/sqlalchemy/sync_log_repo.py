"""SQLAlchemy implementation of SyncLogRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from portsync.core.timezone import to_exchange
from portsync.domain.models import SyncLog, SyncStatus
from portsync.repositories.sqlalchemy.orm_models import SyncLogORM


class SqlAlchemySyncLogRepository:
    """SQLAlchemy-backed append-only sync log."""

    def __init__(self, db: Session):
        self._db = db

    def append(self, log: SyncLog) -> SyncLog:
        """Persist a new log record."""
        orm_log = SyncLogORM(
            log_id=log.log_id,
            account_id=log.account_id,
            user_id=log.user_id,
            broker=log.broker,
            started_at=log.started_at,
            finished_at=log.finished_at,
            status=log.status,
            message=log.message,
            error_detail=log.error_detail,
            expiry_reason=log.expiry_reason,
            positions_written=log.positions_written,
            holdings_written=log.holdings_written,
        )
        try:
            self._db.add(orm_log)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        self._db.refresh(orm_log)
        return self._to_domain(orm_log)

    def list_by_account(self, account_id: str, limit: int = 50) -> list[SyncLog]:
        """List an account's logs, newest first."""
        orm_logs = (
            self._db.query(SyncLogORM)
            .filter(SyncLogORM.account_id == account_id)
            .order_by(SyncLogORM.finished_at.desc(), SyncLogORM.started_at.desc())
            .limit(limit)
            .all()
        )
        return [self._to_domain(entry) for entry in orm_logs]

    def latest_for_user(
        self, user_id: str, status: Optional[SyncStatus] = None
    ) -> Optional[SyncLog]:
        """Most recent log across all of a user's accounts, optionally by status."""
        query = self._db.query(SyncLogORM).filter(SyncLogORM.user_id == user_id)
        if status is not None:
            query = query.filter(SyncLogORM.status == status)
        orm_log = query.order_by(SyncLogORM.finished_at.desc()).first()
        return self._to_domain(orm_log) if orm_log else None

    @staticmethod
    def _to_domain(orm: SyncLogORM) -> SyncLog:
        """Convert ORM log to domain model."""
        return SyncLog(
            log_id=orm.log_id,
            account_id=orm.account_id,
            user_id=orm.user_id,
            broker=orm.broker,
            started_at=to_exchange(orm.started_at),
            finished_at=to_exchange(orm.finished_at),
            status=orm.status,
            message=orm.message or "",
            error_detail=orm.error_detail,
            expiry_reason=orm.expiry_reason,
            positions_written=orm.positions_written or 0,
            holdings_written=orm.holdings_written or 0,
        )
