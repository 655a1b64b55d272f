"""
Runtime configuration.

Values come from environment variables. A ``.env`` file in the project root
(or the working directory) is loaded first when present.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5000
DEFAULT_RATE_LIMIT_REQUESTS = 120
DEFAULT_RATE_LIMIT_WINDOW = 60
MAX_RATE_LIMIT_REQUESTS = 10000
MAX_RATE_LIMIT_WINDOW = 3600

STORAGE_BACKENDS = ("dynamodb", "memory")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    storage_backend: str = "dynamodb"
    table_name: str = "highscores"
    document_id: str = "global"
    aws_region: str = "us-east-1"
    aws_endpoint_url: Optional[str] = None
    create_table: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit_enabled: bool = True
    rate_limit_requests: int = DEFAULT_RATE_LIMIT_REQUESTS
    rate_limit_window_seconds: int = DEFAULT_RATE_LIMIT_WINDOW
    trust_forwarded_for: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_env_file() -> None:
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        # utf-8-sig tolerates a BOM written by some editors
        load_dotenv(env_path, encoding="utf-8-sig")
    else:
        load_dotenv()


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _bounded_int(
    env: Mapping[str, str], name: str, default: int, maximum: Optional[int] = None
) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid {name} value: {raw}. Error: {e}. Using default: {default}")
        return default
    if value <= 0:
        logger.warning(f"Invalid {name} value: {raw}. Must be positive. Using default: {default}")
        return default
    if maximum is not None and value > maximum:
        logger.warning(
            f"{name} value {value} exceeds maximum ({maximum}). Using default: {default}"
        )
        return default
    return value


def _origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ["*"]
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ

    backend = env.get("STORAGE_BACKEND", "dynamodb").strip().lower()
    if backend not in STORAGE_BACKENDS:
        logger.warning(f"Unknown STORAGE_BACKEND '{backend}'. Using default: dynamodb")
        backend = "dynamodb"

    return Settings(
        host=env.get("HOST", "0.0.0.0"),
        port=_bounded_int(env, "PORT", DEFAULT_PORT, maximum=65535),
        storage_backend=backend,
        table_name=env.get("DDB_TABLE_HIGHSCORES", "highscores"),
        document_id=env.get("HIGHSCORES_DOCUMENT_ID", "global"),
        aws_region=env.get("AWS_REGION", env.get("AWS_DEFAULT_REGION", "us-east-1")),
        aws_endpoint_url=env.get("AWS_ENDPOINT_URL") or None,
        create_table=_flag(env, "DDB_CREATE_TABLE"),
        cors_origins=_origins(env.get("CORS_ORIGINS")),
        rate_limit_enabled=not _flag(env, "DISABLE_RATE_LIMIT"),
        rate_limit_requests=_bounded_int(
            env, "RATE_LIMIT_REQUESTS", DEFAULT_RATE_LIMIT_REQUESTS, MAX_RATE_LIMIT_REQUESTS
        ),
        rate_limit_window_seconds=_bounded_int(
            env, "RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW, MAX_RATE_LIMIT_WINDOW
        ),
        trust_forwarded_for=_flag(env, "TRUST_FORWARDED_FOR"),
        log_level=env.get("LOG_LEVEL", "INFO"),
        log_file=env.get("LOG_FILE") or None,
    )
