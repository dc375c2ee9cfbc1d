import pytest
from fastapi.testclient import TestClient

import api_client
import main
from api_client import PredictionClient
from pricing import estimate_price_range_from_text


@pytest.fixture
def client() -> TestClient:
    return TestClient(main.app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_predict_price_on_empty_conversation(client):
    response = client.post("/predict-price", json={"client_messages": "", "freelancer_messages": ""})

    assert response.status_code == 200
    assert response.json() == {"min_price": 563, "max_price": 938, "confidence": 0.5}


def test_prediction_client_against_service_matches_local(client, monkeypatch: pytest.MonkeyPatch):
    base_url = "http://negotiator.test"

    def _route_to_app(url, json, headers, timeout):
        return client.post(url[len(base_url):], json=json, headers=headers)

    monkeypatch.setattr(api_client.requests, "post", _route_to_app)
    texts = ("Need an experienced dev asap, budget $2,000", "I can finish in 3 weeks")

    remote = PredictionClient(base_url).predict_price(*texts)

    assert remote == estimate_price_range_from_text(*texts)


def test_analyze_negotiation_with_both_amounts(client):
    response = client.post(
        "/analyze-negotiation",
        json={
            "client_messages": "I can pay $1,000 for a custom dashboard",
            "freelancer_messages": "I was thinking $1,080, delivered soon",
        },
    )
    body = response.json()

    assert response.status_code == 200
    assert "aligned" in body["gap_analysis"]
    assert "$1,040.00" in body["recommendation"]
    assert body["urgency_level"] == 2
    assert body["complexity_score"] == 3


def test_analyze_negotiation_without_amounts(client):
    response = client.post(
        "/analyze-negotiation",
        json={"client_messages": "a simple blog", "freelancer_messages": ""},
    )
    body = response.json()

    assert response.status_code == 200
    assert "fair range" in body["recommendation"]
    assert body["urgency_level"] == 1
    assert body["complexity_score"] == 1


def test_analyze_offers(client):
    response = client.post("/analyze-offers", json={"client_offer": 1000, "freelancer_offer": 1250})

    assert response.status_code == 200
    assert response.json() == {"gap": 250.0, "midpoint": 1125.0, "range": [1000.0, 1250.0], "tier": "progressing"}


def test_analyze_offers_rejects_negative(client):
    response = client.post("/analyze-offers", json={"client_offer": -1, "freelancer_offer": 1250})

    assert response.status_code == 422


def test_session_lifecycle(client):
    created = client.post("/sessions")
    assert created.status_code == 201
    thread_id = created.json()["thread_id"]

    message = client.post(f"/sessions/{thread_id}/messages", json={"text": "Expert needed, urgent"})
    assert message.status_code == 200
    assert message.json()["active_role"] == "freelancer"
    assert message.json()["price_range"] == list(
        estimate_price_range_from_text("Expert needed, urgent", "").as_tuple(),
    )

    client.put(f"/sessions/{thread_id}/offers/client", json={"amount": 1000})
    offered = client.put(f"/sessions/{thread_id}/offers/freelancer", json={"amount": 1600})
    assert offered.json()["offer_analysis"]["tier"] == "wide"

    accepted = client.post(f"/sessions/{thread_id}/accept")
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["final_price"] == 1600

    closed = client.post(f"/sessions/{thread_id}/messages", json={"text": "wait"})
    assert closed.status_code == 409

    history = client.get(f"/sessions/{thread_id}/history.csv")
    assert history.status_code == 200
    assert history.headers["content-type"].startswith("text/csv")
    assert "negotiation_chat_" in history.headers["content-disposition"]
    assert history.text.startswith("Timestamp,Role,Message\n")


def test_blank_message_is_unprocessable(client):
    thread_id = client.post("/sessions").json()["thread_id"]

    response = client.post(f"/sessions/{thread_id}/messages", json={"text": "   "})

    assert response.status_code == 422


def test_unknown_role_is_unprocessable(client):
    thread_id = client.post("/sessions").json()["thread_id"]

    response = client.put(f"/sessions/{thread_id}/offers/bot", json={"amount": 10})

    assert response.status_code == 422


def test_unknown_session(client):
    assert client.get("/sessions/missing").status_code == 404
    assert client.post("/sessions/missing/end").status_code == 404


def test_analyze_negotiation_ignores_durations_next_to_prices(client):
    response = client.post(
        "/analyze-negotiation",
        json={
            "client_messages": "I can pay $1,000",
            "freelancer_messages": "I'd do it for $1,050 in 2 weeks",
        },
    )
    body = response.json()

    assert response.status_code == 200
    assert body["gap_analysis"] == "The latest amounts differ by $50.00 (aligned)."
    assert "$1,025.00" in body["recommendation"]
