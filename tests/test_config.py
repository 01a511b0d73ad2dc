"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from wagateway.config import (
    DEFAULT_TRANSPORT_FACTORY,
    GatewayConfig,
    load_config,
)

ENV_VARS = [
    "PORT",
    "HOST",
    "WEBHOOK_URL",
    "WEBHOOK_SECRET",
    "WEBHOOK_TIMEOUT",
    "RECONNECT_DELAY",
    "AUTH_DIR",
    "DEFAULT_SESSION",
    "TRANSPORT_FACTORY",
    "LOG_LEVEL",
    "LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so variables set by load_dotenv are restored afterwards
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestGatewayConfig:
    def test_defaults(self, clean_env):
        config = GatewayConfig.from_env()
        assert config.port == 3000
        assert config.webhook_url is None
        assert config.webhook_secret is None
        assert config.webhook_timeout == 5.0
        assert config.reconnect_delay == 3.0
        assert config.auth_dir == Path("auth_info")
        assert config.default_session is True
        assert config.transport_factory == DEFAULT_TRANSPORT_FACTORY

    def test_from_env(self, clean_env):
        clean_env.setenv("PORT", "8081")
        clean_env.setenv("WEBHOOK_URL", "https://hooks.test/in")
        clean_env.setenv("WEBHOOK_SECRET", "k")
        clean_env.setenv("RECONNECT_DELAY", "0.5")
        clean_env.setenv("AUTH_DIR", "/var/lib/gw")
        clean_env.setenv("DEFAULT_SESSION", "false")

        config = GatewayConfig.from_env()
        assert config.port == 8081
        assert config.webhook_url == "https://hooks.test/in"
        assert config.webhook_secret == "k"
        assert config.reconnect_delay == 0.5
        assert config.auth_dir == Path("/var/lib/gw")
        assert config.default_session is False

    def test_empty_secret_means_unsigned(self, clean_env):
        clean_env.setenv("WEBHOOK_SECRET", "")
        assert GatewayConfig.from_env().webhook_secret is None

    def test_bad_number(self, clean_env):
        clean_env.setenv("WEBHOOK_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="WEBHOOK_TIMEOUT"):
            GatewayConfig.from_env()

    def test_reload(self, clean_env):
        config = GatewayConfig.from_env()
        clean_env.setenv("PORT", "9000")
        config.reload()
        assert config.port == 9000


class TestLoadConfig:
    def test_env_file_does_not_override_environment(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PORT=7000\nWEBHOOK_URL=https://from-file.test\n")
        clean_env.setenv("PORT", "7001")

        config = load_config(env_file)
        assert config.port == 7001
        assert config.webhook_url == "https://from-file.test"
