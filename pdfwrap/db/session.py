import logging

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from pdfwrap.core.config import PdfWrapConfig
from pdfwrap.db.models import Literal

logger = logging.getLogger(__name__)


def get_engine(config: PdfWrapConfig) -> Engine:
    return create_engine(config.sqlalchemy_url(), pool_pre_ping=True)


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )


def check_database(db: Session) -> bool:
    """Probe the literals table; False when the database cannot be queried."""
    try:
        count = db.execute(select(func.count()).select_from(Literal)).scalar_one()
        db.commit()
    except SQLAlchemyError as exc:
        logger.error("Database check failed: %s", exc)
        db.rollback()
        return False
    logger.debug("Count(tliterals)=%d", count)
    return True
