import pytest


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    import config

    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("PREDICTION_API_URL", raising=False)
    monkeypatch.delenv("PREDICTION_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setattr(config, "_SETTINGS", None)


@pytest.fixture
def local_graph():
    from graph import build_graph
    from pricing import estimate_price_range_from_text

    return build_graph(estimator=estimate_price_range_from_text)
