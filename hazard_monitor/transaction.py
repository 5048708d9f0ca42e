"""Transaction runner with retry on transient storage failures.

A unit of work is a callable that receives a StoreSession and performs all
of its reads and writes through it. The runner opens a transaction, calls
the unit of work, and commits. When the attempt fails with an error the
classifier marks as transient, the whole unit of work is replayed from
scratch in a fresh transaction. Any other error propagates immediately.

A transient error can be reported after the store already applied the
commit (a timeout, a dropped connection). Units of work therefore choose
the IDs of everything they insert before the first attempt, and stores
only create documents under those IDs, so a replay cannot insert twice.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from hazard_monitor.core.config import RetryConfig
from hazard_monitor.core.errors import InvalidArgumentError, NotFoundError
from hazard_monitor.shell.storage import Store, StoreSession


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a unit of work.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay_seconds: Delay before the first retry
        max_delay_seconds: Upper bound for a single delay
    """
    max_attempts: int = 3
    base_delay_seconds: float = 0.1
    max_delay_seconds: float = 2.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, config.max_attempts),
            base_delay_seconds=config.base_delay_seconds,
            max_delay_seconds=config.max_delay_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        """Exponential backoff delay after the given failed attempt (1-based)."""
        return min(self.base_delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)


def run_in_transaction(
    store: Store,
    work: Callable[[StoreSession], T],
    policy: RetryPolicy | None = None,
    is_transient: Callable[[BaseException], bool] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a unit of work atomically, retrying transient failures.

    Args:
        store: Storage port providing transactions
        work: Unit of work; must only touch storage through the session
        policy: Retry policy (defaults to RetryPolicy())
        is_transient: Error classifier (defaults to store.is_transient)
        sleep: Function used to wait between attempts

    Returns:
        Whatever the unit of work returned on the committed attempt

    Raises:
        Exception: The first non-transient error, or the last transient
            error once all attempts are used up
    """
    policy = policy or RetryPolicy()
    classify = is_transient or store.is_transient

    attempt = 1
    while True:
        try:
            with store.transaction() as session:
                result = work(session)
            if attempt > 1:
                logger.info("Transaction committed on attempt %d", attempt)
            return result

        except (InvalidArgumentError, NotFoundError):
            raise

        except Exception as e:
            if not classify(e) or attempt >= policy.max_attempts:
                if attempt > 1:
                    logger.error(
                        "Transaction failed after %d attempts: %s", attempt, e
                    )
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                "Transient storage error (attempt %d/%d), retrying in %.2fs: %s",
                attempt,
                policy.max_attempts,
                delay,
                e,
            )
            sleep(delay)
            attempt += 1
