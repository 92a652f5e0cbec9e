"""Logging configuration for the tasktray command line."""

import logging
import sys


def setup_logging(console_level: int = logging.WARNING) -> None:
    """Send log records to stderr at the given level.

    Call this once, before the first log call. Pre-existing root handlers
    are removed to avoid duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(console_level)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(console_level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    logging.captureWarnings(True)
