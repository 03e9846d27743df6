"""Cached position and holding repository protocols."""

from typing import Optional, Protocol

from portsync.domain.models import CachedPosition, CachedHolding, PositionType


class PositionRepository(Protocol):
    """Interface for cached position data access."""

    def list_by_user(self, user_id: str, position_type: Optional[PositionType] = None) -> list[CachedPosition]:
        """List a user's positions, optionally filtered by classification."""
        ...

    def list_by_account(self, account_id: str) -> list[CachedPosition]:
        """List positions for one account."""
        ...

    def replace_for_account(self, account_id: str, positions: list[CachedPosition]) -> int:
        """
        Replace an account's position set in one transaction.

        Readers see either the old set or the new one, never a mixture.
        Returns the number of rows written.
        """
        ...


class HoldingRepository(Protocol):
    """Interface for cached holding data access."""

    def list_by_user(self, user_id: str) -> list[CachedHolding]:
        """List a user's holdings."""
        ...

    def list_by_account(self, account_id: str) -> list[CachedHolding]:
        """List holdings for one account."""
        ...

    def replace_for_account(self, account_id: str, holdings: list[CachedHolding]) -> int:
        """Replace an account's holding set in one transaction."""
        ...
