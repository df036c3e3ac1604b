"""HTTP API for managing portfolios and their assets."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Any, Callable

from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from fichart.portfolio.errors import AssetNotFoundError, PortfolioError, PortfolioNotFoundError
from fichart.portfolio.model import Portfolio, PortfolioRepository, new_portfolio

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class _InvalidRequest(Exception):
    """The request body could not be decoded."""


def _format_time(moment: datetime) -> str:
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if offset is None or offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset >= timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def portfolio_to_dict(portfolio: Portfolio) -> dict[str, Any]:
    """The JSON representation of a portfolio."""
    return {
        "id": portfolio.id,
        "userId": portfolio.user_id,
        "name": portfolio.name,
        "assets": [
            {"assetId": asset.asset_id, "weight": asset.weight} for asset in portfolio.assets
        ],
        "createdAt": _format_time(portfolio.created_at),
        "updatedAt": _format_time(portfolio.updated_at),
    }


def _decode(request: Request, schema: dict[str, type]) -> dict[str, Any]:
    """Decode a JSON object body; absent or null fields take their zero value."""
    try:
        payload = json.loads(request.get_data(as_text=True))
    except ValueError as exc:
        raise _InvalidRequest(str(exc)) from None
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise _InvalidRequest("request body must be a JSON object")

    decoded: dict[str, Any] = {}
    for key, kind in schema.items():
        value = payload.get(key)
        if value is None:
            decoded[key] = kind()
        elif kind is float:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise _InvalidRequest(f"field {key} must be a number")
            decoded[key] = float(value)
        elif kind is str:
            if not isinstance(value, str):
                raise _InvalidRequest(f"field {key} must be a string")
            decoded[key] = value
    return decoded


def _json_response(payload: Any, status: int = HTTPStatus.OK) -> Response:
    body = json.dumps(payload, ensure_ascii=False) + "\n"
    return Response(body, status=int(status), content_type=JSON_CONTENT_TYPE)


def _error(message: str, status: int) -> Response:
    return Response(
        message + "\n",
        status=int(status),
        content_type=TEXT_CONTENT_TYPE,
        headers={"X-Content-Type-Options": "nosniff"},
    )


_CREATE_SCHEMA = {"userId": str, "name": str}
_ADD_ASSET_SCHEMA = {"assetId": str, "weight": float}
_WEIGHT_SCHEMA = {"weight": float}


class PortfolioApp:
    """A WSGI application exposing portfolio operations over a repository."""

    def __init__(
        self, repository: PortfolioRepository, logger: logging.Logger | None = None
    ) -> None:
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self._url_map = Map(
            [
                Rule("/portfolios", endpoint="create_portfolio", methods=["POST"]),
                Rule("/portfolios", endpoint="list_portfolios", methods=["GET"]),
                Rule("/portfolios/<portfolio_id>", endpoint="get_portfolio", methods=["GET"]),
                Rule("/portfolios/<portfolio_id>", endpoint="update_portfolio", methods=["PUT"]),
                Rule(
                    "/portfolios/<portfolio_id>", endpoint="delete_portfolio", methods=["DELETE"]
                ),
                Rule("/portfolios/<portfolio_id>/assets", endpoint="add_asset", methods=["POST"]),
                Rule(
                    "/portfolios/<portfolio_id>/assets/<asset_id>",
                    endpoint="update_asset_weight",
                    methods=["PUT"],
                ),
                Rule(
                    "/portfolios/<portfolio_id>/assets/<asset_id>",
                    endpoint="remove_asset",
                    methods=["DELETE"],
                ),
                Rule(
                    "/users/<user_id>/portfolios",
                    endpoint="list_user_portfolios",
                    methods=["GET"],
                ),
            ]
        )
        self._handlers: dict[str, Callable[..., Response]] = {
            "create_portfolio": self._create_portfolio,
            "list_portfolios": self._list_portfolios,
            "get_portfolio": self._get_portfolio,
            "update_portfolio": self._update_portfolio,
            "delete_portfolio": self._delete_portfolio,
            "add_asset": self._add_asset,
            "update_asset_weight": self._update_asset_weight,
            "remove_asset": self._remove_asset,
            "list_user_portfolios": self._list_user_portfolios,
        }

    def __call__(self, environ, start_response):
        request = Request(environ)
        adapter = self._url_map.bind_to_environ(environ)
        try:
            endpoint, arguments = adapter.match()
        except HTTPException as exc:
            return exc(environ, start_response)
        response = self._handlers[endpoint](request, **arguments)
        return response(environ, start_response)

    def _find(self, portfolio_id: str) -> Portfolio | None:
        try:
            return self.repository.find_by_id(portfolio_id)
        except Exception as exc:  # noqa: BLE001 - any lookup failure means not found
            self.logger.error("failed to find portfolio: %s", exc)
            return None

    def _store_update(self, portfolio: Portfolio) -> bool:
        try:
            self.repository.update(portfolio)
        except Exception as exc:  # noqa: BLE001 - reported as a server error
            self.logger.error("failed to update portfolio: %s", exc)
            return False
        return True

    def _decode_or_none(self, request: Request, schema: dict[str, type]) -> dict | None:
        try:
            return _decode(request, schema)
        except _InvalidRequest as exc:
            self.logger.error("failed to decode request: %s", exc)
            return None

    def _create_portfolio(self, request: Request) -> Response:
        body = self._decode_or_none(request, _CREATE_SCHEMA)
        if body is None:
            return _error("invalid request", HTTPStatus.BAD_REQUEST)

        portfolio = new_portfolio(body["userId"], body["name"])
        try:
            self.repository.save(portfolio)
        except Exception as exc:  # noqa: BLE001 - reported as a server error
            self.logger.error("failed to save portfolio: %s", exc)
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)

        return _json_response(portfolio_to_dict(portfolio), HTTPStatus.CREATED)

    def _get_portfolio(self, request: Request, portfolio_id: str) -> Response:
        portfolio = self._find(portfolio_id)
        if portfolio is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)
        return _json_response(portfolio_to_dict(portfolio))

    def _update_portfolio(self, request: Request, portfolio_id: str) -> Response:
        body = self._decode_or_none(request, _CREATE_SCHEMA)
        if body is None:
            return _error("invalid request", HTTPStatus.BAD_REQUEST)

        portfolio = self._find(portfolio_id)
        if portfolio is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)

        portfolio.name = body["name"]
        portfolio.updated_at = datetime.now(timezone.utc)

        if not self._store_update(portfolio):
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return _json_response(portfolio_to_dict(portfolio))

    def _delete_portfolio(self, request: Request, portfolio_id: str) -> Response:
        if self._find(portfolio_id) is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)
        try:
            self.repository.delete(portfolio_id)
        except Exception as exc:  # noqa: BLE001 - reported as a server error
            self.logger.error("failed to delete portfolio: %s", exc)
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return Response(status=HTTPStatus.NO_CONTENT)

    def _add_asset(self, request: Request, portfolio_id: str) -> Response:
        body = self._decode_or_none(request, _ADD_ASSET_SCHEMA)
        if body is None:
            return _error("invalid request", HTTPStatus.BAD_REQUEST)

        portfolio = self._find(portfolio_id)
        if portfolio is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)

        try:
            portfolio.add_asset(body["assetId"], body["weight"])
        except PortfolioError as exc:
            self.logger.error("failed to add asset: %s", exc)
            return _error(str(exc), HTTPStatus.BAD_REQUEST)

        if not self._store_update(portfolio):
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return _json_response(portfolio_to_dict(portfolio))

    def _update_asset_weight(self, request: Request, portfolio_id: str, asset_id: str) -> Response:
        body = self._decode_or_none(request, _WEIGHT_SCHEMA)
        if body is None:
            return _error("invalid request", HTTPStatus.BAD_REQUEST)

        portfolio = self._find(portfolio_id)
        if portfolio is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)

        try:
            portfolio.update_asset_weight(asset_id, body["weight"])
        except AssetNotFoundError as exc:
            self.logger.error("failed to update asset weight: %s", exc)
            return _error(str(exc), HTTPStatus.NOT_FOUND)
        except PortfolioError as exc:
            self.logger.error("failed to update asset weight: %s", exc)
            return _error(str(exc), HTTPStatus.BAD_REQUEST)

        if not self._store_update(portfolio):
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return _json_response(portfolio_to_dict(portfolio))

    def _remove_asset(self, request: Request, portfolio_id: str, asset_id: str) -> Response:
        portfolio = self._find(portfolio_id)
        if portfolio is None:
            return _error("portfolio not found", HTTPStatus.NOT_FOUND)

        try:
            portfolio.remove_asset(asset_id)
        except AssetNotFoundError as exc:
            self.logger.error("failed to remove asset: %s", exc)
            return _error(str(exc), HTTPStatus.NOT_FOUND)
        except PortfolioError as exc:
            self.logger.error("failed to remove asset: %s", exc)
            return _error(str(exc), HTTPStatus.BAD_REQUEST)

        if not self._store_update(portfolio):
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return Response(status=HTTPStatus.NO_CONTENT)

    def _list_user_portfolios(self, request: Request, user_id: str) -> Response:
        if not user_id:
            return _error("user ID is required", HTTPStatus.BAD_REQUEST)
        try:
            portfolios = self.repository.find_by_user_id(user_id)
        except PortfolioNotFoundError as exc:
            self.logger.error("failed to find portfolios: %s", exc)
            return _error("portfolios not found", HTTPStatus.NOT_FOUND)
        except Exception as exc:  # noqa: BLE001 - reported as a server error
            self.logger.error("failed to find portfolios: %s", exc)
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return _json_response([portfolio_to_dict(p) for p in portfolios])

    def _list_portfolios(self, request: Request) -> Response:
        user_id = request.args.get("userId", "")
        if not user_id:
            return _error("user ID is required", HTTPStatus.BAD_REQUEST)
        try:
            portfolios = self.repository.find_by_user_id(user_id)
        except Exception as exc:  # noqa: BLE001 - reported as a server error
            self.logger.error("failed to find portfolios: %s", exc)
            return _error("internal server error", HTTPStatus.INTERNAL_SERVER_ERROR)
        return _json_response([portfolio_to_dict(p) for p in portfolios])