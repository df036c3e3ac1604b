"""An in-memory portfolio store."""
from __future__ import annotations

import threading

from fichart.portfolio.errors import PortfolioExistsError, PortfolioNotFoundError
from fichart.portfolio.model import Portfolio


class MemoryPortfolioRepository:
    """Keeps portfolios in a dictionary guarded by a lock."""

    def __init__(self) -> None:
        self._portfolios: dict[str, Portfolio] = {}
        self._lock = threading.Lock()

    def save(self, portfolio: Portfolio) -> None:
        """Store a new portfolio; raise PortfolioExistsError if the id is taken."""
        with self._lock:
            if portfolio.id in self._portfolios:
                raise PortfolioExistsError(portfolio.id)
            self._portfolios[portfolio.id] = portfolio

    def find_by_id(self, portfolio_id: str) -> Portfolio:
        """Return the portfolio; raise PortfolioNotFoundError if absent."""
        with self._lock:
            try:
                return self._portfolios[portfolio_id]
            except KeyError:
                raise PortfolioNotFoundError(portfolio_id) from None

    def update(self, portfolio: Portfolio) -> None:
        """Replace a stored portfolio; raise PortfolioNotFoundError if absent."""
        with self._lock:
            if portfolio.id not in self._portfolios:
                raise PortfolioNotFoundError(portfolio.id)
            self._portfolios[portfolio.id] = portfolio

    def delete(self, portfolio_id: str) -> None:
        """Remove a portfolio; raise PortfolioNotFoundError if absent."""
        with self._lock:
            if self._portfolios.pop(portfolio_id, None) is None:
                raise PortfolioNotFoundError(portfolio_id)

    def find_by_user_id(self, user_id: str) -> list[Portfolio]:
        """Return every portfolio owned by the user, possibly none."""
        with self._lock:
            return [p for p in self._portfolios.values() if p.user_id == user_id]