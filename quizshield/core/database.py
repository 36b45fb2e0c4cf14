import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from ..config.settings import DATABASE_URL

logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL):
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI serves requests from a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_db_and_tables(bind=None):
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind or engine, checkfirst=True)
    logger.info("Database tables ready")
