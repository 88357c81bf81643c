import logging

from app.db.session import engine, Base
from app.models import *  # noqa: F401,F403  register every model with the metadata

logger = logging.getLogger(__name__)

def init_db():
    """Initialize database tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

if __name__ == "__main__":
    from app.core.logging import setup_logging

    setup_logging()
    init_db()
