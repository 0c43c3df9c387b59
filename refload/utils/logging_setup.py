"""
Logging setup for scripts and actions.

Library modules only create loggers (``logging.getLogger(__name__)``) and never
install handlers; entry points call ``configure_logging`` once at startup.
"""

import logging
from typing import Optional

from refload.config.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Send ``refload`` log records to stderr at ``level``.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to REFLOAD_LOG_LEVEL.
    """
    if level is None:
        level = get_settings().loader.log_level

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("refload").setLevel(level.upper())
