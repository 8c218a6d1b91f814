"""Config management for mock-oauth-server."""
import json
import os
from pathlib import Path
from typing import Optional


DEFAULTS = {
    "host": "0.0.0.0",
    "port": 3001,
    "default_redirect_uri": "http://localhost:5173/challenge/senior-16-oauth-flows",
    "resume_url": "/challenge/senior-16-oauth-flows",
    "cors_origins": "*",
    "log_level": "INFO",
    "log_format": "plain",
}

# Environment variable -> config key
ENV_VARS = {
    "OAUTH_HOST": "host",
    "OAUTH_PORT": "port",
    "OAUTH_DEFAULT_REDIRECT_URI": "default_redirect_uri",
    "OAUTH_RESUME_URL": "resume_url",
    "OAUTH_CORS_ORIGINS": "cors_origins",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
}


class Config:
    """Configuration container."""

    def __init__(self, data: dict = None):
        self.data = {**DEFAULTS, **(data or {})}

    @property
    def host(self) -> str:
        return self.data["host"]

    @property
    def port(self) -> int:
        return int(self.data["port"])

    @property
    def default_redirect_uri(self) -> str:
        return self.data["default_redirect_uri"]

    @property
    def resume_url(self) -> str:
        return self.data["resume_url"]

    @property
    def cors_origins(self) -> list[str]:
        origins = self.data["cors_origins"]
        if isinstance(origins, str):
            origins = origins.split(",")
        return [origin.strip() for origin in origins if origin.strip()]

    @property
    def log_level(self) -> str:
        return str(self.data["log_level"]).upper()

    @property
    def json_logs(self) -> bool:
        return str(self.data["log_format"]).lower() == "json"


def _load_file(path: Path) -> dict:
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(config_file: Optional[str] = None) -> Config:
    """Load config from an optional JSON file, then environment variables.

    Environment variables win over the file; unset keys keep their defaults.
    """
    config_file = config_file or os.getenv("OAUTH_CONFIG_FILE")
    data = {}
    if config_file:
        data.update({key: value for key, value in _load_file(Path(config_file)).items() if key in DEFAULTS})

    for env_var, key in ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            data[key] = value

    return Config(data)
