import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from loguru import logger

from .errors import ConfigError

DEFAULT_PORT = 3000


@dataclass(frozen=True)
class Settings:
    database_url: str
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    knowledge_base_path: str = "data.xml"
    log_level: str = "INFO"


def load_config(path: str) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if config_path.suffix.lower() in {".json"}:
        with config_path.open("r", encoding="utf-8") as f:
            return json.load(f)

    if config_path.suffix.lower() in {".yml", ".yaml"}:
        import yaml

        with config_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    raise ValueError(f"Unsupported config format: {config_path.suffix}")


def load_settings(config_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from an optional config file overridden by the environment.

    ``.env`` is loaded into the process environment unless an explicit ``env``
    mapping is given. ``DATABASE_URL`` is mandatory.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    file_cfg: Dict[str, Any] = {}
    if config_path:
        try:
            file_cfg = load_config(config_path)
        except (OSError, ValueError) as exc:
            raise ConfigError(str(exc)) from exc

    database_url = env.get("DATABASE_URL") or file_cfg.get("database_url") or ""
    if not database_url.strip():
        raise ConfigError("DATABASE_URL is not set. Define it in the environment or a .env file.")

    raw_port = env.get("PORT") or file_cfg.get("port") or DEFAULT_PORT
    try:
        port = int(raw_port)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid port: {raw_port!r}") from exc

    return Settings(
        database_url=database_url.strip(),
        port=port,
        host=env.get("HOST") or file_cfg.get("host") or "0.0.0.0",
        knowledge_base_path=env.get("KNOWLEDGE_BASE_PATH") or file_cfg.get("knowledge_base") or "data.xml",
        log_level=(env.get("LOG_LEVEL") or file_cfg.get("log_level") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
