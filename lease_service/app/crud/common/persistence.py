import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core.exceptions import (
    ConcurrentModification,
    LedgerError,
    OperationCancelled,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)


def check_deadline(deadline: Optional[datetime], operation: str):
    if deadline is None:
        return
    if datetime.now(deadline.tzinfo) >= deadline:
        logger.warning("%s cancelled: deadline %s passed", operation, deadline)
        raise OperationCancelled(operation)


@contextmanager
def storage_guard(db: Session, operation: str):
    """Translate driver failures during reads into StorageUnavailable."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", operation, e)
        raise StorageUnavailable(f"{operation} failed", cause=e) from e


@contextmanager
def ledger_transaction(db: Session, operation: str, deadline: Optional[datetime] = None,
                       kind: Optional[str] = None, entity_id: Any = None):
    """
    Run the block as one unit of work and commit it.

    Anything raised inside rolls the whole unit back. Version conflicts
    surface as ConcurrentModification, other SQLAlchemy errors as
    StorageUnavailable, and a passed ``deadline`` as OperationCancelled.
    """
    check_deadline(deadline, operation)
    try:
        yield
        check_deadline(deadline, operation)
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except StaleDataError as e:
        db.rollback()
        logger.info("%s lost a version race on %s %s", operation, kind, entity_id)
        raise ConcurrentModification(kind or "Record", entity_id) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed, rolled back: %s", operation, e)
        raise StorageUnavailable(f"{operation} failed", cause=e) from e
    except BaseException:
        db.rollback()
        raise
