"""Logging configuration for cmsdev."""

import logging
import sys
from typing import Optional


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration for the CLI.

    Args:
        verbose: Enable verbose/debug logging
        log_file: Optional log file path
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Avoid stacking handlers when the CLI is invoked repeatedly in one process
    for handler in list(root_logger.handlers):
        if getattr(handler, "_cmsdev", False):
            root_logger.removeHandler(handler)

    console_handler._cmsdev = True
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler._cmsdev = True
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("watchdog").setLevel(logging.WARNING)
