from __future__ import annotations

from typing import Iterator

import pytest

pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from src.service.app import app  # noqa: E402
from src.user_cf.recommender import UserUserCFRecommender  # noqa: E402


@pytest.fixture()
def client() -> Iterator[TestClient]:
    # No `with` block: the lifespan (which loads config.yaml) is not run.
    app.state.user_cf = UserUserCFRecommender.load(
        [[5, 3, 4, 0], [4, 2, 3, 5], [1, 5, 3, 1]],
        user_ids=[11, 22, 33],
        item_ids=[101, 102, 103, 104],
        item_names=["Heat", "Jumanji", "Toy Story", "Casino"],
    )
    yield TestClient(app)
    app.state.user_cf = None


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "users": 3, "items": 4, "ratings": 11}


def test_recommend(client: TestClient) -> None:
    resp = client.post("/user_cf/recommend", json={"userId": 11, "n": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body["requested"] == 3
    assert body["available"] == 1
    assert body["results"][0]["itemId"] == 104
    assert body["results"][0]["title"] == "Casino"
    assert body["results"][0]["score"] == pytest.approx(5.0)


def test_string_ids_are_normalized(client: TestClient) -> None:
    resp = client.post("/user_cf/predict", json={"userId": "11", "itemId": "104"})
    assert resp.status_code == 200
    assert resp.json()["score"] == pytest.approx(5.0)


def test_unknown_ids_are_404(client: TestClient) -> None:
    assert client.post("/user_cf/recommend", json={"userId": 99, "n": 3}).status_code == 404
    resp = client.post("/user_cf/predict", json={"userId": 11, "itemId": 999})
    assert resp.status_code == 404
    assert "999" in resp.json()["detail"]
    assert client.post("/user_cf/similar_users", json={"userId": 99}).status_code == 404


def test_request_validation(client: TestClient) -> None:
    assert client.post("/user_cf/recommend", json={"userId": 11, "n": -1}).status_code == 422


def test_similar_users(client: TestClient) -> None:
    resp = client.post("/user_cf/similar_users", json={"userId": 11, "top_n": 2})
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [r["userId"] for r in results] == [22, 33]
    assert results[0]["similarity"] > 0 > results[1]["similarity"]


def test_rmse(client: TestClient) -> None:
    resp = client.get("/user_cf/rmse")
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "leave_one_out"
    assert body["count"] == 11
    assert body["rmse"] >= 0.0

    assert client.get("/user_cf/rmse", params={"mode": "in_sample"}).json()["mode"] == "in_sample"
    assert client.get("/user_cf/rmse", params={"mode": "bogus"}).status_code == 400


def test_uninitialized_service_is_503() -> None:
    app.state.user_cf = None
    assert TestClient(app).get("/health").status_code == 503
