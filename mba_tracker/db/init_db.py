import logging

import mba_tracker.models  # noqa: F401
from mba_tracker.core.config import settings
from mba_tracker.core.logging import configure_logging
from mba_tracker.db.base import Base
from mba_tracker.db.session import engine

logger = logging.getLogger(__name__)


def init_db(create_tables: bool = False) -> None:
    """Configure logging and, for local SQLite/dev setups, create the schema.

    Real deployments run ``alembic upgrade head`` instead of ``create_tables``.
    """
    configure_logging(settings.LOG_LEVEL)
    if create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("schema created on %s", engine.url.render_as_string(hide_password=True))
