"""Portfolios and their weighted assets."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from fichart.portfolio.errors import AssetNotFoundError, InvalidWeightError

MAX_TOTAL_WEIGHT = 100.0


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PortfolioAsset:
    """One asset in a portfolio with its weight in percent."""

    asset_id: str
    weight: float


@dataclass
class Portfolio:
    """A user's named set of weighted assets."""

    id: str
    user_id: str
    name: str
    assets: list[PortfolioAsset] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def _total_weight(self, excluding: str | None = None) -> float:
        return sum(a.weight for a in self.assets if a.asset_id != excluding)

    def add_asset(self, asset_id: str, weight: float) -> None:
        """Add an asset; raise InvalidWeightError if the total would exceed 100."""
        weight = float(weight)
        if self._total_weight() + weight > MAX_TOTAL_WEIGHT:
            raise InvalidWeightError()
        self.assets.append(PortfolioAsset(asset_id, weight))
        self.updated_at = _now()

    def update_asset_weight(self, asset_id: str, weight: float) -> None:
        """Change an asset's weight.

        Raises AssetNotFoundError for an unknown asset and InvalidWeightError if
        the total would exceed 100.
        """
        weight = float(weight)
        target = next((a for a in self.assets if a.asset_id == asset_id), None)
        if target is None:
            raise AssetNotFoundError(asset_id)
        if self._total_weight(excluding=asset_id) + weight > MAX_TOTAL_WEIGHT:
            raise InvalidWeightError()
        target.weight = weight
        self.updated_at = _now()

    def remove_asset(self, asset_id: str) -> None:
        """Remove the first asset with the given id; raise AssetNotFoundError if absent."""
        for index, asset in enumerate(self.assets):
            if asset.asset_id == asset_id:
                del self.assets[index]
                self.updated_at = _now()
                return
        raise AssetNotFoundError(asset_id)

    def validate(self) -> None:
        """Raise InvalidWeightError if the asset weights sum to more than 100."""
        if self._total_weight() > MAX_TOTAL_WEIGHT:
            raise InvalidWeightError()


def new_portfolio(user_id: str, name: str) -> Portfolio:
    """Create an empty portfolio with a fresh id."""
    now = _now()
    return Portfolio(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        assets=[],
        created_at=now,
        updated_at=now,
    )


class PortfolioRepository(Protocol):
    """Stores portfolios."""

    def save(self, portfolio: Portfolio) -> None:
        """Store a new portfolio."""

    def find_by_id(self, portfolio_id: str) -> Portfolio:
        """Return the portfolio with the given id."""

    def update(self, portfolio: Portfolio) -> None:
        """Replace a stored portfolio."""

    def delete(self, portfolio_id: str) -> None:
        """Remove a stored portfolio."""

    def find_by_user_id(self, user_id: str) -> list[Portfolio]:
        """Return every portfolio of the given user."""