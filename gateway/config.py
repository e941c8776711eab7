from pydantic import BaseModel, ValidationError
import os
import logging
from pathlib import Path
from typing import Literal, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PATH = Path(__file__).resolve().parent.parent / ".env"


def load_dotenv(path: Path = ENV_PATH) -> None:
    """Load KEY=VALUE lines into os.environ. Existing env vars take precedence."""
    if not path.exists():
        return
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key not in os.environ:
                    os.environ[key] = value


def _default_transport(env: Mapping[str, str]) -> str:
    # Hosted deployments (Render) serve HTTP; local runs speak stdio to the agent
    if env.get("RENDER") or env.get("APP_ENV", "").lower() == "production":
        return "http"
    return "stdio"


class Settings(BaseModel):
    service_name: str = "workflow-mcp-gateway"

    # Network
    host: str = "0.0.0.0"
    port: int = 3000
    transport: Literal["stdio", "http", "proxy"] = "stdio"

    # n8n backend
    n8n_url: str = "http://localhost:5678"
    n8n_api_key: str = ""
    n8n_basic_auth_user: str = ""
    n8n_basic_auth_password: str = ""
    n8n_read_timeout: float = 10.0
    n8n_execute_timeout: float = 60.0
    health_timeout: float = 5.0

    # Proxy mode: forward stdio requests to a deployed gateway's POST /mcp
    remote_url: str = ""
    remote_timeout: float = 90.0

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        values = {
            "host": env.get("HOST", "0.0.0.0"),
            "port": env.get("PORT", "3000"),
            "transport": (env.get("MCP_TRANSPORT") or _default_transport(env)).lower(),
            "n8n_url": env.get("N8N_URL", "http://localhost:5678"),
            "n8n_api_key": env.get("N8N_API_KEY", ""),
            "n8n_basic_auth_user": env.get("N8N_BASIC_AUTH_USER", ""),
            "n8n_basic_auth_password": env.get("N8N_BASIC_AUTH_PASSWORD", ""),
            "n8n_read_timeout": env.get("N8N_READ_TIMEOUT", "10"),
            "n8n_execute_timeout": env.get("N8N_EXECUTE_TIMEOUT", "60"),
            "health_timeout": env.get("HEALTH_TIMEOUT", "5"),
            "remote_url": env.get("MCP_REMOTE_URL", ""),
            "remote_timeout": env.get("MCP_REMOTE_TIMEOUT", "90"),
            "log_level": env.get("LOG_LEVEL", "INFO").upper(),
        }
        try:
            settings = cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
        if settings.transport == "proxy" and not settings.remote_url:
            raise ConfigurationError("MCP_TRANSPORT=proxy requires MCP_REMOTE_URL")
        return settings


def mask_secret(value: str) -> str:
    return "***" + value[-4:] if len(value) > 4 else ("***" if value else "EMPTY")


def log_settings(settings: Settings) -> None:
    auth = "api-key" if settings.n8n_api_key else ("basic" if settings.n8n_basic_auth_user else "none")
    logger.info(f"Config: transport={settings.transport}, port={settings.port}")
    logger.info(
        f"Config: n8n → {settings.n8n_url} (auth={auth}, key={mask_secret(settings.n8n_api_key)}, "
        f"timeouts read={settings.n8n_read_timeout:g}s execute={settings.n8n_execute_timeout:g}s)"
    )
    if settings.transport == "proxy":
        logger.info(f"Config: proxy → {settings.remote_url}")
