"""
Process-wide logging setup.

Library modules only create loggers (``logging.getLogger(__name__)``);
the entry point calls setup_logging() once to attach a handler.
"""

import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger and the httpchain logger level."""
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    logging.getLogger("httpchain").setLevel(numeric)
