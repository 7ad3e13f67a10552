"""Logging setup for the store and the migration tooling."""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecole_manager.core.config import Settings


def setup_logging(settings: "Settings") -> None:
    """Configure stdlib logging at the level named by ``settings.log_level``."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # SQL echo goes through the sqlalchemy logger when enabled
    for logger_name in ["sqlalchemy", "aiosqlite", "asyncio"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("ecole_manager").setLevel(log_level)
