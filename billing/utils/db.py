from contextlib import contextmanager
from datetime import datetime, timezone
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from billing.services.exceptions import ServiceError, StorageError
from models import db


@contextmanager
def transactional(message="DB transaction failed"):
    """Context manager to wrap a database transaction.

    Commits when the block completes and always rolls back otherwise.
    Database errors surface as ``StorageError``; service errors pass through.
    """
    try:
        yield db.session
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        logging.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise StorageError(message) from e
    except Exception as e:
        logging.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise


def db_now() -> datetime:
    """Current time according to the database, as naive UTC."""
    value = db.session.execute(select(func.current_timestamp())).scalar()
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
