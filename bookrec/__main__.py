from __future__ import annotations

import logging

import uvicorn

from .config import load_config

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def main() -> None:
    """Run the API under uvicorn; SIGINT/SIGTERM trigger a graceful shutdown."""
    config = load_config()
    configure_logging(config.log_level)

    # Imported after logging is configured so startup messages are emitted
    from .app import create_app

    logger.info("Book Recommendation API listening on %s:%d", config.host, config.port)
    uvicorn.run(
        create_app(config=config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    main()
