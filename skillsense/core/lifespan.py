from contextlib import asynccontextmanager
import logging

from skillsense.db.store import close_db, init_db, purge_expired_sessions
from skillsense.storage.files import init_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    init_db()
    purge_expired_sessions()
    init_storage()
    logger.info("skillsense_started title=%s", app.title)
    yield
    close_db()
