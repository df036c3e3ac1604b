"""Errors raised by the portfolio domain."""
from __future__ import annotations

from http import HTTPStatus


class PortfolioError(Exception):
    """Base class for portfolio domain errors."""

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "portfolio_error"


class PortfolioNotFoundError(PortfolioError):
    """No portfolio exists with the requested id."""

    status_code = HTTPStatus.NOT_FOUND
    code = "portfolio_not_found"

    def __init__(self, portfolio_id: str) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(f"portfolio not found: {portfolio_id}")


class PortfolioExistsError(PortfolioError):
    """A portfolio with the same id is already stored."""

    status_code = HTTPStatus.CONFLICT
    code = "portfolio_exists"

    def __init__(self, portfolio_id: str) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(f"portfolio already exists: {portfolio_id}")


class DuplicateAssetError(PortfolioError):
    """The asset is already part of the portfolio."""

    status_code = HTTPStatus.CONFLICT
    code = "duplicate_asset"

    def __init__(self, portfolio_id: str, asset_id: str) -> None:
        self.portfolio_id = portfolio_id
        self.asset_id = asset_id
        super().__init__(f"asset already exists: {asset_id} (portfolio: {portfolio_id})")


class TotalWeightExceededError(PortfolioError):
    """The total weight of the portfolio's assets would exceed 100%."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "total_weight_exceeded"

    def __init__(self, portfolio_id: str, total_weight: float) -> None:
        self.portfolio_id = portfolio_id
        self.total_weight = total_weight
        super().__init__(
            f"total weight exceeds 100%: {total_weight:.2f}% (portfolio: {portfolio_id})"
        )


class AssetNotFoundError(PortfolioError):
    """The asset is not part of the portfolio."""

    status_code = HTTPStatus.NOT_FOUND
    code = "asset_not_found"

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"asset not found: {asset_id}")


class InvalidWeightError(PortfolioError):
    """The sum of asset weights would exceed 100%."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "invalid_weight"

    def __init__(self, message: str = "the total of asset weights cannot exceed 100%") -> None:
        super().__init__(message)