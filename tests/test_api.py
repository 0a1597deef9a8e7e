import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import Settings
from store import CarStore

@pytest.fixture()
def client(store):
    with TestClient(create_app(store=store, settings=Settings())) as c:
        yield c

def test_random_car(client):
    resp = client.get("/api/random-car")
    assert resp.status_code == 200
    data = resp.json()
    assert data["listing_id"] in {"a1", "a2", "a3", "a4"}
    assert "title" in data
    assert isinstance(data["description"], list)

def test_guess_scores_and_echoes_truth(client):
    truth = {"title": "Toyota Camry", "price": 1000000}
    resp = client.post("/api/guess", json={
        "guess_price": 900000, "guess_model": "toyota camry", "correct": truth,
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["price_score"] == 3600
    assert data["model_score"] == 1000
    assert data["total_score"] == 4600
    assert data["error"] == pytest.approx(0.1)
    assert data["correct"] == truth

def test_guess_without_price_truth(client):
    resp = client.post("/api/guess", json={
        "guess_price": 5, "guess_model": "cam", "correct": {"title": "Toyota Camry"},
    })
    data = resp.json()
    assert resp.status_code == 200
    assert data["price_score"] == 0
    assert data["error"] is None
    assert data["model_score"] == 500

def test_guess_with_garbage_does_not_fail(client):
    resp = client.post("/api/guess", json={"guess_price": "lots", "guess_model": 7, "correct": [1, 2]})
    assert resp.status_code == 200
    assert resp.json()["total_score"] == 0

def test_guess_roundtrip_with_served_car(client):
    car = client.get("/api/random-car").json()
    price = car["price"] if car["price"] is not None else car["initial_price_rub"]
    resp = client.post("/api/guess", json={
        "guess_price": price, "guess_model": car["title"], "correct": car,
    })
    assert resp.json()["total_score"] == 5000

def test_search_models(client):
    assert client.get("/api/search-models", params={"q": "toyota"}).json() == ["Toyota Camry"]
    assert client.get("/api/search-models", params={"q": ""}).json() == []
    assert client.get("/api/search-models").json() == []

def test_search_models_literal_parenthesis(client):
    resp = client.get("/api/search-models", params={"q": "granta (21"})
    assert resp.status_code == 200
    assert resp.json() == ["Lada Granta (2190)"]

def test_search_models_unexpected_error(client, monkeypatch):
    def boom(q):
        raise KeyError(q)
    monkeypatch.setattr(client.app.state.store, "search_titles", boom)
    resp = client.get("/api/search-models", params={"q": "bmw"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}

def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok", "cars": 4, "priced": 4}

def test_unavailable_store_returns_503(tmp_path):
    app = create_app(store=CarStore(str(tmp_path / "missing.json")), settings=Settings())
    with TestClient(app) as c:
        assert c.get("/api/random-car").status_code == 503
        assert c.get("/api/health").status_code == 503
        assert c.get("/api/search-models", params={"q": "x5"}).status_code == 503
        # scoring does not need the store
        assert c.post("/api/guess", json={"guess_price": 1, "guess_model": "x"}).status_code == 200
