"""SQLAlchemy implementation of BrokerAccountRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from portsync.core.exceptions import NotFoundError
from portsync.core.timezone import to_exchange
from portsync.domain.models import BrokerAccount, ExpiryReason
from portsync.repositories.sqlalchemy.orm_models import BrokerAccountORM


class SqlAlchemyBrokerAccountRepository:
    """SQLAlchemy-backed broker account repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, account: BrokerAccount) -> BrokerAccount:
        """Persist a new broker account."""
        orm_account = BrokerAccountORM(
            account_id=account.account_id,
            user_id=account.user_id,
            broker=account.broker,
            is_active=account.is_active,
            access_token=account.access_token,
            token_expires_at=account.token_expires_at,
            expiry_reason=account.expiry_reason,
            last_successful_sync=account.last_successful_sync,
        )
        if account.created_at is not None:
            orm_account.created_at = account.created_at
        self._db.add(orm_account)
        self._db.commit()
        self._db.refresh(orm_account)
        return self._to_domain(orm_account)

    def get_by_id(self, account_id: str) -> Optional[BrokerAccount]:
        """Retrieve account by ID."""
        # Column values come from the row, not from the identity map
        orm_account = (
            self._db.query(BrokerAccountORM)
            .populate_existing()
            .filter(BrokerAccountORM.account_id == account_id)
            .first()
        )
        return self._to_domain(orm_account) if orm_account else None

    def list_by_user(self, user_id: str, active_only: bool = False) -> list[BrokerAccount]:
        """List a user's accounts."""
        query = self._db.query(BrokerAccountORM).filter(BrokerAccountORM.user_id == user_id)
        if active_only:
            query = query.filter(BrokerAccountORM.is_active == True)  # noqa: E712
        query = query.order_by(BrokerAccountORM.broker, BrokerAccountORM.account_id)
        return [self._to_domain(a) for a in query.all()]

    def list_active(self, offset: int = 0, limit: int = 100) -> list[BrokerAccount]:
        """List one page of active accounts, in stable account_id order."""
        orm_accounts = (
            self._db.query(BrokerAccountORM)
            .filter(BrokerAccountORM.is_active == True)  # noqa: E712
            .order_by(BrokerAccountORM.account_id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_domain(a) for a in orm_accounts]

    def update(self, account: BrokerAccount) -> BrokerAccount:
        """Update an existing account."""
        orm_account = self._get_orm(account.account_id)

        orm_account.is_active = account.is_active
        orm_account.access_token = account.access_token
        orm_account.token_expires_at = account.token_expires_at
        orm_account.expiry_reason = account.expiry_reason
        orm_account.last_successful_sync = account.last_successful_sync

        self._db.commit()
        self._db.refresh(orm_account)
        return self._to_domain(orm_account)

    def mark_synced(self, account_id: str, synced_at: datetime) -> None:
        """Set last_successful_sync only; other fields keep their stored values."""
        orm_account = self._get_orm(account_id)
        orm_account.last_successful_sync = synced_at
        self._db.commit()

    def flag_token(
        self,
        account_id: str,
        expiry_reason: ExpiryReason,
        deactivate: bool = False,
    ) -> None:
        """Store the token expiry reason and, if asked, deactivate the account."""
        orm_account = self._get_orm(account_id)
        orm_account.expiry_reason = expiry_reason
        if deactivate:
            orm_account.is_active = False
        self._db.commit()

    def _get_orm(self, account_id: str) -> BrokerAccountORM:
        orm_account = self._db.query(BrokerAccountORM).filter(
            BrokerAccountORM.account_id == account_id
        ).first()
        if not orm_account:
            raise NotFoundError("BrokerAccount", account_id)
        return orm_account

    @staticmethod
    def _to_domain(orm: BrokerAccountORM) -> BrokerAccount:
        """Convert ORM model to domain model."""
        return BrokerAccount(
            account_id=orm.account_id,
            user_id=orm.user_id,
            broker=orm.broker,
            is_active=bool(orm.is_active),
            access_token=orm.access_token,
            token_expires_at=to_exchange(orm.token_expires_at) if orm.token_expires_at else None,
            expiry_reason=orm.expiry_reason,
            last_successful_sync=(
                to_exchange(orm.last_successful_sync) if orm.last_successful_sync else None
            ),
            created_at=orm.created_at,
        )
