import uuid
from datetime import datetime, timezone

import pytest
from werkzeug.test import Client

from fichart.portfolio.api import PortfolioApp, portfolio_to_dict
from fichart.portfolio.errors import PortfolioNotFoundError
from fichart.portfolio.model import new_portfolio
from fichart.portfolio.repository import MemoryPortfolioRepository


def create_valid_portfolio(portfolio_id="portfolio-123"):
    portfolio = new_portfolio("user-123", "Test Portfolio")
    portfolio.id = portfolio_id
    portfolio.add_asset("asset-123", 0.5)
    return portfolio


class FailingSaveRepository(MemoryPortfolioRepository):
    def save(self, portfolio):
        raise RuntimeError("storage down")


class FailingUpdateRepository(MemoryPortfolioRepository):
    def update(self, portfolio):
        raise RuntimeError("storage down")


class MissingUserRepository(MemoryPortfolioRepository):
    def find_by_user_id(self, user_id):
        raise PortfolioNotFoundError(user_id)


@pytest.fixture
def repo():
    return MemoryPortfolioRepository()


@pytest.fixture
def client(repo):
    return Client(PortfolioApp(repo))


@pytest.fixture
def stored(repo):
    portfolio = create_valid_portfolio()
    repo.save(portfolio)
    return portfolio


def test_create_portfolio_valid(client, repo):
    user_id = str(uuid.uuid4())
    resp = client.post("/portfolios", json={"userId": user_id, "name": "테스트 포트폴리오"})
    assert resp.status_code == 201
    assert resp.headers["Content-Type"] == "application/json"
    body = resp.get_json()
    assert body["userId"] == user_id
    assert body["name"] == "테스트 포트폴리오"
    assert body["assets"] == []
    assert repo.find_by_id(body["id"]).user_id == user_id


def test_create_portfolio_invalid_json(client):
    resp = client.post("/portfolios", data="invalid json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "invalid request\n"


def test_create_portfolio_wrong_field_type(client):
    resp = client.post("/portfolios", json={"userId": 5, "name": "x"})
    assert resp.status_code == 400


def test_create_portfolio_save_failure():
    client = Client(PortfolioApp(FailingSaveRepository()))
    resp = client.post("/portfolios", json={"userId": "u", "name": "n"})
    assert resp.status_code == 500


def test_get_existing_portfolio(client, stored):
    resp = client.get("/portfolios/" + stored.id)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["id"] == "portfolio-123"
    assert body["userId"] == "user-123"
    assert body["assets"] == [{"assetId": "asset-123", "weight": 0.5}]


def test_get_missing_portfolio(client):
    resp = client.get("/portfolios/" + str(uuid.uuid4()))
    assert resp.status_code == 404
    assert resp.get_data(as_text=True) == "portfolio not found\n"


def test_update_portfolio(client, repo, stored):
    resp = client.put("/portfolios/portfolio-123", json={"name": "업데이트된 포트폴리오"})
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "업데이트된 포트폴리오"
    assert repo.find_by_id("portfolio-123").name == "업데이트된 포트폴리오"


def test_update_missing_portfolio(client):
    resp = client.put("/portfolios/not-found", json={"name": "업데이트된 포트폴리오"})
    assert resp.status_code == 404


def test_update_failure_is_server_error():
    repo = FailingUpdateRepository()
    repo.save(create_valid_portfolio())
    client = Client(PortfolioApp(repo))
    resp = client.put("/portfolios/portfolio-123", json={"name": "n"})
    assert resp.status_code == 500


def test_delete_portfolio(client, repo, stored):
    resp = client.delete("/portfolios/" + stored.id)
    assert resp.status_code == 204
    with pytest.raises(PortfolioNotFoundError):
        repo.find_by_id(stored.id)


def test_delete_missing_portfolio(client):
    resp = client.delete("/portfolios/" + str(uuid.uuid4()))
    assert resp.status_code == 404


def test_list_user_portfolios(client, repo):
    user_id = str(uuid.uuid4())
    repo.save(new_portfolio(user_id, "a"))
    repo.save(new_portfolio(user_id, "b"))
    repo.save(new_portfolio("someone-else", "c"))
    resp = client.get(f"/users/{user_id}/portfolios")
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body) == 2
    assert {p["name"] for p in body} == {"a", "b"}


def test_list_user_portfolios_empty(client):
    resp = client.get(f"/users/{uuid.uuid4()}/portfolios")
    assert resp.status_code == 200
    assert resp.get_json() == []


def test_list_user_portfolios_not_found_error():
    client = Client(PortfolioApp(MissingUserRepository()))
    resp = client.get("/users/u1/portfolios")
    assert resp.status_code == 404
    assert resp.get_data(as_text=True) == "portfolios not found\n"


def test_list_portfolios_by_query(client, repo):
    user_id = str(uuid.uuid4())
    repo.save(new_portfolio(user_id, "a"))
    repo.save(new_portfolio(user_id, "b"))
    resp = client.get("/portfolios?userId=" + user_id)
    assert resp.status_code == 200
    assert len(resp.get_json()) == 2


def test_list_portfolios_requires_user(client):
    resp = client.get("/portfolios")
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "user ID is required\n"


def test_add_asset(client, repo, stored):
    asset_id = str(uuid.uuid4())
    resp = client.post(f"/portfolios/{stored.id}/assets", json={"assetId": asset_id, "weight": 0.5})
    assert resp.status_code == 200
    assets = resp.get_json()["assets"]
    assert [a["assetId"] for a in assets] == ["asset-123", asset_id]
    assert len(repo.find_by_id(stored.id).assets) == 2


def test_add_asset_missing_portfolio(client):
    resp = client.post("/portfolios/not-found/assets", json={"assetId": "a", "weight": 0.5})
    assert resp.status_code == 404


def test_add_asset_exceeding_weight(client, stored):
    resp = client.post(f"/portfolios/{stored.id}/assets", json={"assetId": "b", "weight": 100})
    assert resp.status_code == 400


def test_add_asset_non_numeric_weight(client, stored):
    resp = client.post(f"/portfolios/{stored.id}/assets", json={"assetId": "b", "weight": "x"})
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "invalid request\n"


def test_update_asset_weight(client, stored):
    resp = client.put(f"/portfolios/{stored.id}/assets/asset-123", json={"weight": 0.7})
    assert resp.status_code == 200
    assert resp.get_json()["assets"] == [{"assetId": "asset-123", "weight": 0.7}]


def test_update_asset_weight_missing_portfolio(client):
    resp = client.put("/portfolios/not-found/assets/asset-123", json={"weight": 0.7})
    assert resp.status_code == 404


def test_update_asset_weight_unknown_asset(client, stored):
    resp = client.put(f"/portfolios/{stored.id}/assets/nope", json={"weight": 0.7})
    assert resp.status_code == 404


def test_update_asset_weight_exceeding(client, stored):
    resp = client.put(f"/portfolios/{stored.id}/assets/asset-123", json={"weight": 100.5})
    assert resp.status_code == 400


def test_remove_asset(client, repo, stored):
    resp = client.delete(f"/portfolios/{stored.id}/assets/asset-123")
    assert resp.status_code == 204
    assert repo.find_by_id(stored.id).assets == []


def test_remove_asset_missing_portfolio(client):
    resp = client.delete("/portfolios/not-found/assets/asset-123")
    assert resp.status_code == 404


def test_remove_unknown_asset(client, stored):
    resp = client.delete(f"/portfolios/{stored.id}/assets/nope")
    assert resp.status_code == 404


def test_wrong_method_not_allowed(client):
    resp = client.patch("/portfolios/portfolio-123")
    assert resp.status_code == 405


def test_portfolio_to_dict():
    portfolio = create_valid_portfolio()
    moment = datetime(2024, 1, 2, 3, 4, 5, 500000, tzinfo=timezone.utc)
    portfolio.created_at = moment
    portfolio.updated_at = moment.replace(microsecond=0)
    data = portfolio_to_dict(portfolio)
    assert data == {
        "id": "portfolio-123",
        "userId": "user-123",
        "name": "Test Portfolio",
        "assets": [{"assetId": "asset-123", "weight": 0.5}],
        "createdAt": "2024-01-02T03:04:05.5Z",
        "updatedAt": "2024-01-02T03:04:05Z",
    }