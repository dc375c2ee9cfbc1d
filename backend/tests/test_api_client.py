import pytest
import requests

import api_client
from api_client import ANALYSIS_UNAVAILABLE_MESSAGE, PredictionClient
from errors import InvalidInputError
from models import PriceRange
from pricing import estimate_price_range_from_text


BASE_URL = "http://prediction.test"

CLIENT_TEXT = "Need an expert for a landing page, budget $800"
FREELANCER_TEXT = "I can deliver in 2 weeks"


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, body_error=None):
        self.status_code = status_code
        self._payload = payload
        self._body_error = body_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._body_error is not None:
            raise self._body_error
        return self._payload


def _install_post(monkeypatch, outcome):
    calls = []

    def _fake_post(url, **kwargs):
        calls.append({"url": url, **kwargs})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(api_client.requests, "post", _fake_post)
    return calls


def test_without_base_url_uses_local_formula(monkeypatch: pytest.MonkeyPatch):
    calls = _install_post(monkeypatch, _FakeResponse(payload={}))

    result = PredictionClient().predict_price(CLIENT_TEXT, FREELANCER_TEXT)

    assert result == estimate_price_range_from_text(CLIENT_TEXT, FREELANCER_TEXT)
    assert calls == []


def test_remote_success(monkeypatch: pytest.MonkeyPatch):
    calls = _install_post(
        monkeypatch,
        _FakeResponse(payload={"min_price": 800.4, "max_price": 1200.5, "confidence": 0.8}),
    )

    result = PredictionClient(BASE_URL + "/", timeout=2.5).predict_price(CLIENT_TEXT, FREELANCER_TEXT)

    assert result == PriceRange(min_price=800, max_price=1201)
    assert len(calls) == 1
    assert calls[0]["url"] == f"{BASE_URL}/predict-price"
    assert calls[0]["json"] == {"client_messages": CLIENT_TEXT, "freelancer_messages": FREELANCER_TEXT}
    assert calls[0]["timeout"] == 2.5


@pytest.mark.parametrize(
    "outcome",
    [
        requests.Timeout("timed out"),
        requests.ConnectionError("refused"),
        _FakeResponse(status_code=503, payload={"detail": "down"}),
        _FakeResponse(body_error=ValueError("not json")),
        _FakeResponse(payload={"min_price": 100}),
        _FakeResponse(payload={"min_price": 900, "max_price": 100, "confidence": 0.5}),
        _FakeResponse(payload={"min_price": -5, "max_price": 100, "confidence": 0.5}),
    ],
)
def test_any_remote_failure_falls_back_once(monkeypatch: pytest.MonkeyPatch, outcome):
    calls = _install_post(monkeypatch, outcome)

    result = PredictionClient(BASE_URL).predict_price(CLIENT_TEXT, FREELANCER_TEXT)

    assert result == estimate_price_range_from_text(CLIENT_TEXT, FREELANCER_TEXT)
    assert len(calls) == 1


def test_fallback_is_logged(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    _install_post(monkeypatch, requests.ConnectionError("refused"))

    with caplog.at_level("WARNING", logger="negotiator.api_client"):
        PredictionClient(BASE_URL).predict_price("", "")

    assert "using local estimate" in caplog.text


def test_invalid_text_is_not_masked_by_fallback(monkeypatch: pytest.MonkeyPatch):
    calls = _install_post(monkeypatch, _FakeResponse(payload={}))

    with pytest.raises(InvalidInputError):
        PredictionClient(BASE_URL).predict_price(None, "")
    assert calls == []


def test_client_is_callable_as_estimator(monkeypatch: pytest.MonkeyPatch):
    _install_post(monkeypatch, requests.Timeout("slow"))

    client = PredictionClient(BASE_URL)

    assert client(CLIENT_TEXT, FREELANCER_TEXT) == client.predict_price(CLIENT_TEXT, FREELANCER_TEXT)


def test_analyze_negotiation_success(monkeypatch: pytest.MonkeyPatch):
    calls = _install_post(
        monkeypatch,
        _FakeResponse(
            payload={
                "gap_analysis": "close",
                "recommendation": "Meet at $900.",
                "urgency_level": 2,
                "complexity_score": 1,
            },
        ),
    )

    assert PredictionClient(BASE_URL).analyze_negotiation("a", "b") == "Meet at $900."
    assert calls[0]["url"] == f"{BASE_URL}/analyze-negotiation"


@pytest.mark.parametrize(
    "outcome",
    [requests.ConnectionError("refused"), _FakeResponse(status_code=500), _FakeResponse(payload={"x": 1})],
)
def test_analyze_negotiation_failure_message(monkeypatch: pytest.MonkeyPatch, outcome):
    _install_post(monkeypatch, outcome)

    assert PredictionClient(BASE_URL).analyze_negotiation("a", "b") == ANALYSIS_UNAVAILABLE_MESSAGE


def test_from_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PREDICTION_API_URL", "http://remote:8000/")
    monkeypatch.setenv("PREDICTION_TIMEOUT_SECONDS", "1.5")

    client = PredictionClient.from_settings()

    assert client.base_url == "http://remote:8000"
    assert client.timeout == 1.5
