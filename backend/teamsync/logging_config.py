"""
Logging setup for the API process.
"""
import logging

from teamsync.config import settings


def configure_logging(level: str = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # SQLAlchemy echo is controlled by settings.debug
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
