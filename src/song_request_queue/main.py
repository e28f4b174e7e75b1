#!/usr/bin/env python3
"""Main entry point for the song request queue service."""

from __future__ import annotations

import asyncio
import json
import logging
import logging.config
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from song_request_queue.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from song_request_queue.config.container import Container

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.warning("Could not load %s, falling back to basic config", _LOGGING_CONFIG_PATH)

    logging.getLogger().setLevel(resolved_level)


async def serve(container: Container, stop_event: asyncio.Event | None = None) -> None:
    """Initialize the container and run until SIGINT/SIGTERM or ``stop_event`` is set."""
    stop = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            pass  # not supported on this platform/loop

    await container.initialize()
    logger.info(LogTemplates.APP_READY)
    try:
        await stop.wait()
    finally:
        logger.info(LogTemplates.APP_STOPPING)
        await container.shutdown()


def main() -> int:
    from song_request_queue.config.container import create_container
    from song_request_queue.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info(LogTemplates.APP_STARTING, settings.environment)
    container = create_container(settings)

    try:
        asyncio.run(serve(container))
        return 0
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
