"""
Unit of work for compound stock and order operations

The outermost ``@transactional`` call owns the session transaction: it commits
on success and rolls back on any exception. Nested decorated calls join the
caller's unit of work, so a reservation made while confirming an order is
committed or discarded together with the order change.

Version conflicts (``StaleDataError``), lock contention reported by the
database, and unique-key collisions from two requests inserting the same row
are retried with linear backoff; once the budget is spent the caller gets
``ConcurrencyConflict``.
"""

from functools import wraps
import logging
import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from inventory_fulfillment.database import db
from inventory_fulfillment.errors import ConcurrencyConflict, InvariantViolation

logger = logging.getLogger(__name__)

_DEPTH_KEY = 'inventory_fulfillment.transaction_depth'

_LOCK_MARKERS = ('deadlock', 'lock wait timeout', 'database is locked', 'could not obtain lock')

# Unique-key races on first insert; check constraint failures are not retried
_UNIQUE_MARKERS = ('unique constraint', 'duplicate entry', 'duplicate key')


def is_retryable(error: Exception) -> bool:
    """Whether a database failure is a transient concurrency conflict"""
    if isinstance(error, StaleDataError):
        return True
    if isinstance(error, (OperationalError, IntegrityError)):
        message = str(error.orig if error.orig is not None else error).lower()
        markers = _LOCK_MARKERS if isinstance(error, OperationalError) else _UNIQUE_MARKERS
        return any(marker in message for marker in markers)
    return False


def in_transaction() -> bool:
    return db.session.info.get(_DEPTH_KEY, 0) > 0


def transactional(operation: str = None):
    """Run the decorated callable as one atomic, retried unit of work"""

    def decorator(func):
        name = operation or func.__qualname__

        @wraps(func)
        def wrapper(*args, **kwargs):
            session = db.session
            depth = session.info.get(_DEPTH_KEY, 0)
            if depth:
                session.info[_DEPTH_KEY] = depth + 1
                try:
                    return func(*args, **kwargs)
                finally:
                    session.info[_DEPTH_KEY] = depth

            max_attempts = max(1, int(current_app.config.get('TRANSACTION_MAX_ATTEMPTS', 3)))
            backoff_ms = int(current_app.config.get('TRANSACTION_RETRY_BACKOFF_MS', 25))

            for attempt in range(1, max_attempts + 1):
                session.info[_DEPTH_KEY] = 1
                try:
                    result = func(*args, **kwargs)
                    session.commit()
                    return result
                except (StaleDataError, OperationalError, IntegrityError) as e:
                    session.rollback()
                    if not is_retryable(e):
                        logger.error(f"Database error in {name}: {str(e)}")
                        raise
                    logger.warning(
                        f"Concurrent update in {name} (attempt {attempt}/{max_attempts}): {str(e)}"
                    )
                    if attempt < max_attempts and backoff_ms > 0:
                        time.sleep(backoff_ms * attempt / 1000.0)
                except InvariantViolation as e:
                    session.rollback()
                    logger.critical(
                        f"INVARIANT VIOLATION in {name}: {e.message}",
                        extra={'invariant_details': e.details}
                    )
                    raise
                except Exception:
                    session.rollback()
                    raise
                finally:
                    session.info.pop(_DEPTH_KEY, None)

            logger.error(f"{name} gave up after {max_attempts} conflicting attempts")
            raise ConcurrencyConflict(name, max_attempts)

        return wrapper

    return decorator
