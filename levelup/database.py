import logging
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from levelup.constants import DATABASE_URL
from levelup.exceptions import DatabaseException

logger = logging.getLogger("levelup.database")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db: Session, operation: str) -> None:
    """
    Commit the current transaction.

    On failure the transaction is rolled back and DatabaseException is
    raised; nothing is retried.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database {operation} failed: {e}")
        raise DatabaseException(operation, str(e)) from e
