"""Centralized logging configuration for the assistant backend."""

import logging
import sys

import config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

# The SDK's HTTP client logs every request at INFO
for noisy in ("httpx", "httpcore", "openai"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    base_level = logging.DEBUG if config.DEBUG_MODE else logging.INFO
    if name is None:
        root_logger = logging.getLogger()
        root_logger.setLevel(base_level)
        return root_logger
    logger = logging.getLogger(name)
    logger.setLevel(base_level)
    return logger
