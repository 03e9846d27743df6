"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    Index,
    Enum as SqlEnum,
)

from portsync.repositories.sqlalchemy.database import Base
from portsync.domain.models.enums import Broker, PositionType, SyncStatus, ExpiryReason


class BrokerAccountORM(Base):
    """SQLAlchemy model for BrokerAccount."""

    __tablename__ = "broker_accounts"

    account_id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    broker = Column(SqlEnum(Broker), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    access_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    expiry_reason = Column(SqlEnum(ExpiryReason), nullable=False, default=ExpiryReason.NONE)
    last_successful_sync = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class CachedPositionORM(Base):
    """SQLAlchemy model for CachedPosition."""

    __tablename__ = "cached_positions"
    __table_args__ = (Index("ix_cached_positions_user_symbol", "user_id", "symbol"),)

    position_id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("broker_accounts.account_id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    broker = Column(SqlEnum(Broker), nullable=False)
    symbol = Column(String(64), nullable=False)
    quantity = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    buy_price = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    position_type = Column(SqlEnum(PositionType), nullable=False)
    last_updated = Column(DateTime, nullable=True)


class CachedHoldingORM(Base):
    """SQLAlchemy model for CachedHolding."""

    __tablename__ = "cached_holdings"

    holding_id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("broker_accounts.account_id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    broker = Column(SqlEnum(Broker), nullable=False)
    symbol = Column(String(64), nullable=False)
    quantity = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    average_buy_price = Column(Numeric(precision=18, scale=4), nullable=False, default=Decimal("0"))
    last_updated = Column(DateTime, nullable=True)


class SyncLogORM(Base):
    """SQLAlchemy model for SyncLog (append-only audit trail)."""

    __tablename__ = "sync_logs"

    log_id = Column(String(36), primary_key=True)
    account_id = Column(String(36), ForeignKey("broker_accounts.account_id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    broker = Column(SqlEnum(Broker), nullable=True)
    started_at = Column(DateTime, nullable=False)
    finished_at = Column(DateTime, nullable=False)
    status = Column(SqlEnum(SyncStatus), nullable=False)
    message = Column(Text, nullable=False, default="")
    error_detail = Column(Text, nullable=True)
    expiry_reason = Column(SqlEnum(ExpiryReason), nullable=False, default=ExpiryReason.NONE)
    positions_written = Column(Integer, nullable=False, default=0)
    holdings_written = Column(Integer, nullable=False, default=0)
