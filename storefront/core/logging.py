# storefront/core/logging.py
import logging
import sys
from typing import Optional

import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Third-party loggers that flood DEBUG output with driver internals
QUIET_LOGGERS = ("pymongo", "motor", "asyncio")


def configure_logging(level: Optional[int] = None, debug: bool = False) -> None:
    """
    Install a single coloured stdout handler on the root logger.
    `level` wins over `debug`; `debug=True` means DEBUG, otherwise INFO.
    """
    if level is None:
        level = logging.DEBUG if debug else logging.INFO

    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # uvicorn follows the app level, its own config would otherwise reset it
    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
