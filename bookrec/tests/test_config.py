from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from bookrec.app import create_app
from bookrec.config import AppConfig, load_config
from bookrec.recommendations.data_store import DEFAULT_CATALOG_PATH


def test_load_config_defaults(monkeypatch):
    for name in (
        "BOOKREC_HOST", "BOOKREC_PORT", "PORT", "BOOKREC_LOG_LEVEL",
        "BOOKREC_CATALOG_PATH", "BOOKREC_RECOMMENDATION_LIMIT", "BOOKREC_CORS_ORIGINS",
        "BOOKREC_ANALYTICS_MAX_EVENTS",
    ):
        monkeypatch.delenv(name, raising=False)
    config = load_config()
    assert config == AppConfig()
    assert config.port == 3000
    assert config.catalog_path == DEFAULT_CATALOG_PATH
    assert config.recommendation_limit == 5


def test_load_config_from_env(monkeypatch):
    monkeypatch.setenv("BOOKREC_PORT", "8080")
    monkeypatch.setenv("BOOKREC_LOG_LEVEL", "debug")
    monkeypatch.setenv("BOOKREC_CATALOG_PATH", "/tmp/books.csv")
    monkeypatch.setenv("BOOKREC_RECOMMENDATION_LIMIT", "3")
    monkeypatch.setenv("BOOKREC_CORS_ORIGINS", "http://a.test, http://b.test,")
    config = load_config()
    assert config.port == 8080
    assert config.log_level == "DEBUG"
    assert config.catalog_path == Path("/tmp/books.csv")
    assert config.recommendation_limit == 3
    assert config.cors_origins == ("http://a.test", "http://b.test")


def test_port_falls_back_to_port_variable(monkeypatch):
    monkeypatch.delenv("BOOKREC_PORT", raising=False)
    monkeypatch.setenv("PORT", "4000")
    assert load_config().port == 4000


def test_app_uses_configured_limit_and_catalog(tmp_path):
    path = tmp_path / "books.csv"
    path.write_text(
        "id,title,author,genre,pages,rating\n"
        "1,Emma,Jane Austen,romance,474,4.1\n"
        "2,Persuasion,Jane Austen,romance,249,4.2\n"
        "3,Dune,Frank Herbert,sci-fi,412,4.7\n"
    )
    client = TestClient(create_app(config=AppConfig(catalog_path=path, recommendation_limit=2)))
    assert client.get("/books").json()["count"] == 3
    body = client.post("/recommendations", json={}).json()
    assert [b["title"] for b in body["data"]] == ["Dune", "Persuasion"]
    assert body["totalCandidates"] == 3


def test_recommendation_limit_above_five_rejected():
    with pytest.raises(ValueError, match="limit"):
        create_app(config=AppConfig(recommendation_limit=10))


def test_analytics_cap_from_env(monkeypatch):
    monkeypatch.setenv("BOOKREC_ANALYTICS_MAX_EVENTS", "50")
    config = load_config()
    assert config.analytics_max_events == 50
    app = create_app(config=config)
    assert app.state.events.max_events == 50
