from __future__ import annotations

import logging

import uvicorn

from .config import load_env_file, load_settings
from .index import create_app
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_app():
    load_env_file()
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    return create_app(settings)


def main() -> None:
    app = build_app()
    settings = app.state.settings
    logger.info(f"Server running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
