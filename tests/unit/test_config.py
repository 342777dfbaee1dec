"""Tests for renderflow.config module."""

from pathlib import Path

import pytest

from renderflow.config import ConfigError, Settings


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GATEWAY_API_KEY", raising=False)

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.GATEWAY_API_KEY is None
        assert settings.GATEWAY_MAX_ATTEMPTS == 1
        assert settings.MAX_STYLE_REFERENCES == 3
        assert (settings.MASK_WIDTH, settings.MASK_HEIGHT) == (1024, 576)
        assert settings.DEFAULT_ASPECT_RATIO == "16:9"
        assert settings.LOG_FORMAT == "console"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEWAY_API_KEY", "gw-test-key")
        monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "45")
        monkeypatch.setenv("MAX_STYLE_REFERENCES", "5")

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.GATEWAY_API_KEY == "gw-test-key"
        assert settings.GENERATION_TIMEOUT_SECONDS == 45.0
        assert settings.MAX_STYLE_REFERENCES == 5

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GATEWAY_RPM", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("GATEWAY_RPM=7\n", encoding="utf-8")

        settings = Settings(_env_file=env_file)  # type: ignore[call-arg]

        assert settings.GATEWAY_RPM == 7


class TestRequireGatewayKey:
    """Tests for require_gateway_key."""

    def test_returns_key(self) -> None:
        settings = Settings(GATEWAY_API_KEY="abc", _env_file=None)  # type: ignore[call-arg]
        assert settings.require_gateway_key() == "abc"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_key_raises(self, value: str | None) -> None:
        settings = Settings(GATEWAY_API_KEY=value, _env_file=None)  # type: ignore[call-arg]

        with pytest.raises(ConfigError) as exc_info:
            settings.require_gateway_key()

        assert exc_info.value.env_var == "GATEWAY_API_KEY"
        assert "GATEWAY_API_KEY" in str(exc_info.value)
