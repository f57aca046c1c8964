import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early so env vars are available for YAML interpolation
# Use explicit path to handle subprocess spawning (hypercorn workers)
_env_file = Path(__file__).parent.parent / ".env"
load_dotenv(_env_file)

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

ENV_VAR_NAME = "QUIRE_ENV"

_config_path_override: Path | None = None


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def set_config_path(path: Path | str | None) -> None:
    """Force a specific config file, bypassing environment-based resolution."""
    global _config_path_override
    _config_path_override = Path(path) if path is not None else None


def get_config_path() -> Path:
    """Resolve the YAML config file.

    An explicit override wins, then ``app.{QUIRE_ENV}.yaml``, then ``app.yaml``.
    """
    if _config_path_override is not None:
        return _config_path_override

    env = os.environ.get(ENV_VAR_NAME, "").strip()
    if env and env != "production":
        return Path.cwd() / f"app.{env}.yaml"
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse the YAML config with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"{config_path.name} not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///./app.db"
    pool_size: int = 5
    pool_overflow: int = 10
    pool_timeout: int = 30
    pool_pre_ping: bool = True
    echo: bool = False


class SessionConfig(BaseModel):
    """Cookie session configuration."""

    max_age: int = 60 * 60 * 24 * 7
    cookie_domain: str | None = None


class LogfireConfig(BaseModel):
    """Pydantic Logfire configuration."""

    enabled: bool = False
    service_name: str = "quire"
    environment: str | None = None
    sample_rate: float = 1.0
    console: bool = False


class OrderingConfig(BaseModel):
    """Ordering engine configuration."""

    # Maximum pins per (team, collection) scope; home pins use collection None
    max_pins: int = 8
    # Take a row lock on the scope marker before the cap check and edge lookup
    lock_scope: bool = True


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    debug: bool = False
    secret_key: str

    db: DatabaseConfig = DatabaseConfig()
    session: SessionConfig = SessionConfig()
    logfire: LogfireConfig = LogfireConfig()
    ordering: OrderingConfig = OrderingConfig()


_SECTIONS = {
    "db": DatabaseConfig,
    "session": SessionConfig,
    "logfire": LogfireConfig,
    "ordering": OrderingConfig,
}


@lru_cache
def get_settings() -> Settings:
    """Load settings from .env and the YAML config file."""
    # First create base settings from .env
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    if environment := app_config.get("environment"):
        os.environ[ENV_VAR_NAME] = str(environment)

    # Merge YAML config with settings
    updates = {}

    if "debug" in app_config:
        updates["debug"] = bool(app_config["debug"])

    for key, model in _SECTIONS.items():
        if key in app_config:
            updates[key] = model(**(app_config[key] or {}))

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() call reloads them."""
    get_settings.cache_clear()
