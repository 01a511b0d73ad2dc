"""
Process configuration, read from the environment (and an optional .env file).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_DIR = Path(__file__).resolve().parent.parent.parent

DEFAULT_PORT = 3000
DEFAULT_WEBHOOK_TIMEOUT = 5.0
DEFAULT_RECONNECT_DELAY = 3.0
DEFAULT_TRANSPORT_FACTORY = "wagateway.transport.loopback:LoopbackTransport"
DEFAULT_SESSION_ID = "default"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class GatewayConfig:
    """Settings recognized by the gateway."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None
    webhook_timeout: float = DEFAULT_WEBHOOK_TIMEOUT
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    auth_dir: Path = field(default_factory=lambda: Path("auth_info"))
    default_session: bool = True
    transport_factory: str = DEFAULT_TRANSPORT_FACTORY
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build a config from environment variables."""
        port = os.getenv("PORT")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(port) if port else DEFAULT_PORT,
            webhook_url=os.getenv("WEBHOOK_URL") or None,
            webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
            webhook_timeout=_env_float("WEBHOOK_TIMEOUT", DEFAULT_WEBHOOK_TIMEOUT),
            reconnect_delay=_env_float("RECONNECT_DELAY", DEFAULT_RECONNECT_DELAY),
            auth_dir=Path(os.getenv("AUTH_DIR", "auth_info")),
            default_session=_env_bool("DEFAULT_SESSION", True),
            transport_factory=os.getenv("TRANSPORT_FACTORY")
            or DEFAULT_TRANSPORT_FACTORY,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )

    def reload(self) -> None:
        """Re-read the environment in place."""
        fresh = GatewayConfig.from_env()
        self.__dict__.update(fresh.__dict__)


def load_config(env_file: Optional[Path] = None) -> GatewayConfig:
    """Load .env (without overriding the real environment) and build a config."""
    load_dotenv(env_file or PROJECT_DIR / ".env", override=False)
    return GatewayConfig.from_env()
