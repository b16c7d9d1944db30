"""
Server configuration.

Sources, lowest precedence first:
1. Built-in defaults
2. JSON config file ($STRONGBOX_CONFIG, or ./config.json when present)
3. Environment variables (a .env file is loaded without overriding
   variables that are already set)

The signing secret and the field-cipher key have no defaults; startup
fails with ConfigError when either is missing.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .storage import BACKENDS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# env var -> (section, key) in the JSON file
ENV_BINDINGS = {
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
    "STORAGE_BACKEND": ("storage", "backend"),
    "DB_PATH": ("storage", "path"),
    "JWT_SECRET": ("jwt", "secret"),
    "CRYPTO_KEY": ("crypto", "key"),
    "BCRYPT_ROUNDS": ("crypto", "bcrypt_rounds"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_DIR": ("logging", "dir"),
}


@dataclass
class StrongboxConfig:
    """Validated server settings."""
    jwt_secret: str
    crypto_key: str
    host: str = "localhost"
    port: int = 8080
    storage_backend: str = "sqlite"
    database_path: Path = field(default_factory=lambda: Path("data/strongbox.db"))
    bcrypt_rounds: int = 12
    log_level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path("./audit_logs"))

    def __repr__(self) -> str:
        # secrets stay out of logs and tracebacks
        return (
            f"StrongboxConfig(host={self.host!r}, port={self.port}, "
            f"storage_backend={self.storage_backend!r}, database_path={str(self.database_path)!r}, "
            f"log_level={self.log_level!r})"
        )


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return data


def _to_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> StrongboxConfig:
    """
    Build and validate the server configuration.

    Args:
        config_path: JSON file; defaults to $STRONGBOX_CONFIG or ./config.json
        environ: Environment mapping (os.environ when omitted)
        use_dotenv: Load .env into os.environ first

    Raises:
        ConfigError: missing secrets or invalid values
    """
    if use_dotenv and environ is None:
        if load_dotenv(override=False):
            logger.info("Loaded environment from .env")
    env = os.environ if environ is None else environ

    sections: Dict[str, Dict[str, Any]] = {}
    path = Path(config_path or env.get("STRONGBOX_CONFIG", DEFAULT_CONFIG_FILE))
    if path.exists():
        sections = _read_config_file(path)
    elif config_path is not None:
        raise ConfigError(f"Config file not found: {path}")

    values: Dict[str, Any] = {}
    for env_name, (section, key) in ENV_BINDINGS.items():
        file_value = (sections.get(section) or {}).get(key)
        value = env.get(env_name) or file_value
        if value not in (None, ""):
            values[env_name] = value

    if not values.get("JWT_SECRET"):
        raise ConfigError("JWT_SECRET is not set")
    if not values.get("CRYPTO_KEY"):
        raise ConfigError("CRYPTO_KEY is not set")

    config = StrongboxConfig(jwt_secret=str(values["JWT_SECRET"]), crypto_key=str(values["CRYPTO_KEY"]))

    if "SERVER_HOST" in values:
        config.host = str(values["SERVER_HOST"])
    if "SERVER_PORT" in values:
        config.port = _to_int("SERVER_PORT", values["SERVER_PORT"])
        if not 1 <= config.port <= 65535:
            raise ConfigError(f"SERVER_PORT must be between 1 and 65535, got {config.port}")
    if "STORAGE_BACKEND" in values:
        config.storage_backend = str(values["STORAGE_BACKEND"]).lower()
    if config.storage_backend not in BACKENDS:
        raise ConfigError(
            f"Unknown STORAGE_BACKEND '{config.storage_backend}'. Must be one of: {BACKENDS}"
        )
    if "DB_PATH" in values:
        config.database_path = Path(values["DB_PATH"])
    if "BCRYPT_ROUNDS" in values:
        config.bcrypt_rounds = _to_int("BCRYPT_ROUNDS", values["BCRYPT_ROUNDS"])
        if not 4 <= config.bcrypt_rounds <= 31:
            raise ConfigError(f"BCRYPT_ROUNDS must be between 4 and 31, got {config.bcrypt_rounds}")
    if "LOG_LEVEL" in values:
        config.log_level = str(values["LOG_LEVEL"]).upper()
        if config.log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {values['LOG_LEVEL']!r}")
    if "LOG_DIR" in values:
        config.log_dir = Path(values["LOG_DIR"])

    return config
