from pathlib import Path
import logging
from typing import Optional

# Numeric verbosity accepted alongside level names
_VERBOSITY = {
    "0": logging.WARNING,
    "1": logging.INFO,
    "2": logging.DEBUG,
}


def resolve_level(raw: Optional[str]) -> int:
    if raw is None:
        return logging.INFO
    value = raw.strip()
    if value in _VERBOSITY:
        return _VERBOSITY[value]
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: Optional[str] = "INFO", log_file: Optional[str] = None) -> None:
    resolved = resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(resolved)

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.touch()
        handler = logging.FileHandler(log_path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)
    handler.setLevel(resolved)
    root_logger.addHandler(handler)
