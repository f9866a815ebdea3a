"""
Ledger gateway - transactional access to the clinic database.

Every session-ledger operation runs its body inside one database transaction
through `LedgerGateway.run`. The body must perform all of its reads before
any writes. Rows that the ledger mutates (clients, appointments) carry a
version counter, so a concurrent commit that invalidates a read makes the
flush fail with StaleDataError and the whole transaction rolls back.

The gateway is injected into the services so tests (or another storage
backend) can swap the session factory.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ...config import PAYMENT_RETRY_BACKOFF_SECONDS
from ...shared.exceptions import ConcurrencyConflictError, LedgerError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures that abort an attempt but may succeed when the transaction is replayed
TRANSIENT_ERRORS = (StaleDataError, OperationalError)


class LedgerGateway:
    """Runs transaction bodies with all-or-nothing semantics and bounded retry"""

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        backoff_seconds: float = PAYMENT_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session whose work is committed on exit or rolled back on error"""
        db = self.session_factory()
        # Results handed back to callers stay readable after the session closes
        db.expire_on_commit = False
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def run(
        self,
        operation: str,
        body: Callable[[Session], T],
        *,
        retries: int = 0,
        error_cls: type[LedgerError] = ConcurrencyConflictError,
        message: Optional[str] = None,
    ) -> T:
        """
        Run `body` in a fresh transaction, replaying it up to `retries` more times
        on transient failure with linear backoff (backoff_seconds * attempt).

        Domain errors raised by the body roll the transaction back and propagate
        unchanged without a retry. When the attempts are exhausted, `error_cls`
        is raised with `message`.
        """
        attempt = 0
        while True:
            try:
                with self.transaction() as db:
                    return body(db)
            except TRANSIENT_ERRORS as e:
                if attempt >= retries:
                    logger.error(f"❌ {operation} failed after {attempt + 1} attempt(s): {e}")
                    raise error_cls(
                        message or f"{operation} could not be completed, please try again",
                        details={"operation": operation, "attempts": attempt + 1},
                    ) from e
                attempt += 1
                delay = self.backoff_seconds * attempt
                logger.warning(
                    f"🔄 {operation} attempt {attempt} aborted ({type(e).__name__}), retrying in {delay:.2f}s"
                )
                self.sleep(delay)
