"""Tests for settings and credential providers."""

from walk_groups.config import Settings, static_token


def test_defaults(monkeypatch):
    monkeypatch.delenv("WALK_GROUPS_API_BASE_URL", raising=False)
    settings = Settings()
    assert settings.base_url == "http://localhost:3000"
    assert settings.sync_mode == "refetch"
    assert settings.max_distance == 0.5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("WALK_GROUPS_API_BASE_URL", "https://walks.example.com/api/")
    monkeypatch.setenv("WALK_GROUPS_SYNC_MODE", "merge")
    monkeypatch.setenv("WALK_GROUPS_API_TOKEN", "abc")
    settings = Settings()
    assert settings.base_url == "https://walks.example.com/api"
    assert settings.sync_mode == "merge"
    assert settings.token_provider()() == "abc"


def test_token_file_is_read_on_each_call(tmp_path):
    token_file = tmp_path / "token"
    token_file.write_text("first\n", encoding="utf-8")
    provider = Settings(token_file=token_file, api_token="fallback").token_provider()

    assert provider() == "first"
    token_file.write_text("second", encoding="utf-8")
    assert provider() == "second"
    token_file.unlink()
    assert provider() == "fallback"


def test_no_token_configured(monkeypatch):
    monkeypatch.delenv("WALK_GROUPS_API_TOKEN", raising=False)
    monkeypatch.delenv("WALK_GROUPS_TOKEN_FILE", raising=False)
    assert Settings().token_provider()() is None


def test_static_token():
    assert static_token("t")() == "t"


def test_unknown_timezone_falls_back_to_utc():
    assert Settings(timezone="Nowhere/Special").today() is not None


def test_unreadable_token_file_falls_back(tmp_path):
    # A directory exists but cannot be read as text.
    provider = Settings(token_file=tmp_path, api_token="fallback").token_provider()
    assert provider() == "fallback"
