from __future__ import annotations

from sentiment_api.settings import load_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("SENTIMENT_MODEL_PATH", "PERSISTENCE_BACKEND", "CORS_ALLOWED_ORIGINS", "API_PORT"):
        monkeypatch.delenv(name, raising=False)

    s = load_settings()
    assert s.sentiment_model_path == "models/sentiment_model"
    assert s.persistence_backend == "sqlite"
    assert s.cors_allowed_origins == ["*"]
    assert s.api_port == 8080


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SENTIMENT_MODEL_PATH", "/opt/models/bert-pt")
    monkeypatch.setenv("PERSISTENCE_BACKEND", "kafka")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", '["https://app.example.com"]')
    monkeypatch.setenv("API_PORT", "9000")

    s = load_settings()
    assert s.sentiment_model_path == "/opt/models/bert-pt"
    assert s.persistence_backend == "kafka"
    assert s.cors_allowed_origins == ["https://app.example.com"]
    assert s.api_port == 9000
