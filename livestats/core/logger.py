# livestats/core/logger.py

import logging
import sys


def setup_logging(level: int | str = logging.INFO):
    """
    Sets up the central logging configuration for the poller and scripts.
    Call this ONCE at the start of an entry point (e.g., main.py).
    """
    # Example: 2026-02-22 12:49:55 | INFO     | livestats.platforms.bilibili.poller | Room 123 went LIVE.
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Prevents duplicate lines if setup_logging is accidentally called twice
    if not root_logger.handlers:
        root_logger.addHandler(console_handler)

    # Silence noisy third-party libraries
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.client").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger.info("Centralized logging initialized.")
    return root_logger
