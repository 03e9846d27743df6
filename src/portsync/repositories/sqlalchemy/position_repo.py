"""SQLAlchemy implementations of PositionRepository and HoldingRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from portsync.core.timezone import to_exchange
from portsync.domain.models import CachedPosition, CachedHolding, PositionType
from portsync.repositories.sqlalchemy.orm_models import CachedPositionORM, CachedHoldingORM


def _decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class SqlAlchemyPositionRepository:
    """SQLAlchemy-backed cached position repository."""

    def __init__(self, db: Session):
        self._db = db

    def list_by_user(
        self,
        user_id: str,
        position_type: Optional[PositionType] = None,
    ) -> list[CachedPosition]:
        """List a user's positions, optionally filtered by classification."""
        query = self._db.query(CachedPositionORM).filter(CachedPositionORM.user_id == user_id)
        if position_type is not None:
            query = query.filter(CachedPositionORM.position_type == position_type)
        query = query.order_by(CachedPositionORM.symbol, CachedPositionORM.position_id)
        return [self._to_domain(p) for p in query.all()]

    def list_by_account(self, account_id: str) -> list[CachedPosition]:
        """List positions for one account."""
        orm_positions = (
            self._db.query(CachedPositionORM)
            .filter(CachedPositionORM.account_id == account_id)
            .order_by(CachedPositionORM.symbol, CachedPositionORM.position_id)
            .all()
        )
        return [self._to_domain(p) for p in orm_positions]

    def replace_for_account(self, account_id: str, positions: list[CachedPosition]) -> int:
        """Delete the account's rows and insert the new set in one transaction."""
        try:
            self._db.query(CachedPositionORM).filter(
                CachedPositionORM.account_id == account_id
            ).delete(synchronize_session=False)
            self._db.add_all(
                [
                    CachedPositionORM(
                        position_id=p.position_id,
                        account_id=account_id,
                        user_id=p.user_id,
                        broker=p.broker,
                        symbol=p.symbol,
                        quantity=p.quantity,
                        buy_price=p.buy_price,
                        position_type=p.position_type,
                        last_updated=p.last_updated,
                    )
                    for p in positions
                ]
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return len(positions)

    @staticmethod
    def _to_domain(orm: CachedPositionORM) -> CachedPosition:
        """Convert ORM position to domain model."""
        return CachedPosition(
            position_id=orm.position_id,
            account_id=orm.account_id,
            user_id=orm.user_id,
            broker=orm.broker,
            symbol=orm.symbol,
            quantity=_decimal(orm.quantity),
            buy_price=_decimal(orm.buy_price),
            position_type=orm.position_type,
            last_updated=to_exchange(orm.last_updated) if orm.last_updated else None,
        )


class SqlAlchemyHoldingRepository:
    """SQLAlchemy-backed cached holding repository."""

    def __init__(self, db: Session):
        self._db = db

    def list_by_user(self, user_id: str) -> list[CachedHolding]:
        """List a user's holdings."""
        orm_holdings = (
            self._db.query(CachedHoldingORM)
            .filter(CachedHoldingORM.user_id == user_id)
            .order_by(CachedHoldingORM.symbol, CachedHoldingORM.holding_id)
            .all()
        )
        return [self._to_domain(h) for h in orm_holdings]

    def list_by_account(self, account_id: str) -> list[CachedHolding]:
        """List holdings for one account."""
        orm_holdings = (
            self._db.query(CachedHoldingORM)
            .filter(CachedHoldingORM.account_id == account_id)
            .order_by(CachedHoldingORM.symbol, CachedHoldingORM.holding_id)
            .all()
        )
        return [self._to_domain(h) for h in orm_holdings]

    def replace_for_account(self, account_id: str, holdings: list[CachedHolding]) -> int:
        """Delete the account's rows and insert the new set in one transaction."""
        try:
            self._db.query(CachedHoldingORM).filter(
                CachedHoldingORM.account_id == account_id
            ).delete(synchronize_session=False)
            self._db.add_all(
                [
                    CachedHoldingORM(
                        holding_id=h.holding_id,
                        account_id=account_id,
                        user_id=h.user_id,
                        broker=h.broker,
                        symbol=h.symbol,
                        quantity=h.quantity,
                        average_buy_price=h.average_buy_price,
                        last_updated=h.last_updated,
                    )
                    for h in holdings
                ]
            )
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return len(holdings)

    @staticmethod
    def _to_domain(orm: CachedHoldingORM) -> CachedHolding:
        """Convert ORM holding to domain model."""
        return CachedHolding(
            holding_id=orm.holding_id,
            account_id=orm.account_id,
            user_id=orm.user_id,
            broker=orm.broker,
            symbol=orm.symbol,
            quantity=_decimal(orm.quantity),
            average_buy_price=_decimal(orm.average_buy_price),
            last_updated=to_exchange(orm.last_updated) if orm.last_updated else None,
        )
