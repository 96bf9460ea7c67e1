"""Tests for CORS origin validation."""

import pytest

from web.cors import validate_cors_origins


class TestValidateCorsOrigins:
    """Tests for validate_cors_origins."""

    def test_development_allows_localhost(self):
        origins = validate_cors_origins("http://localhost:3000,http://127.0.0.1:5173", env="development")
        assert origins == ["http://localhost:3000", "http://127.0.0.1:5173"]

    def test_production_rejects_wildcard(self):
        with pytest.raises(ValueError):
            validate_cors_origins("https://app.example.in,*", env="production")

    def test_staging_rejects_wildcard(self):
        with pytest.raises(ValueError):
            validate_cors_origins("*", env="staging")

    @pytest.mark.parametrize(
        "origin",
        [
            "http://localhost:3000",
            "http://127.0.0.1",
            "http://[::1]:8080",
            "http://0.0.0.0",
            "http://localhost.attacker.com",
            "http://app.localhost",
        ],
    )
    def test_production_drops_localhost(self, origin):
        assert validate_cors_origins(f"https://app.example.in,{origin}", env="production") == [
            "https://app.example.in"
        ]

    @pytest.mark.parametrize("origin", ["http://localhost", "http://localhost:3000", "https://LOCALHOST:8443"])
    def test_staging_drops_localhost_with_or_without_port(self, origin):
        assert validate_cors_origins(f"{origin},https://app.example.in", env="staging") == [
            "https://app.example.in"
        ]

    def test_malformed_origins_dropped(self):
        origins = validate_cors_origins("app.example.in,https://ok.example.in/", env="production")
        assert origins == ["https://ok.example.in"]

    def test_blank_entries_ignored(self):
        assert validate_cors_origins(" , ,", env="testing") == []

    def test_env_defaults_to_environment(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        assert validate_cors_origins("http://localhost:3000") == []
