"""
Logging setup for SuREViz.
"""

from __future__ import annotations

import logging
from typing import Optional

from sureviz.config import SureVizConfig, get_config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%d/%m/%Y %H:%M:%S"


def setup_logging(config: Optional[SureVizConfig] = None) -> logging.Logger:
    """Configure the ``sureviz`` logger from configuration.

    Safe to call more than once; handlers are replaced, not duplicated.
    """
    config = config or get_config()
    root = logging.getLogger("sureviz")
    root.setLevel(config.log_level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
