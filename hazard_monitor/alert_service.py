"""Manual alert creation.

Operators can raise alerts directly (e.g. from a field report) in addition
to the ones generated by sensor rules. Manual alerts are validated more
strictly since their fields come straight from a request.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from hazard_monitor.core.errors import InternalError, InvalidArgumentError
from hazard_monitor.core.models import Alert, AlertDraft
from hazard_monitor.core.validation import validate_alert
from hazard_monitor.ingestion import new_id, utc_now
from hazard_monitor.shell.storage import Store, StoreSession
from hazard_monitor.transaction import RetryPolicy, run_in_transaction


logger = logging.getLogger(__name__)


class AlertService:
    """Creates validated alerts."""

    def __init__(
        self,
        store: Store,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.clock = clock

    def create_alert(self, draft: AlertDraft) -> Alert:
        """Validate and persist an alert.

        A draft without a timestamp is stamped with the current time.

        Args:
            draft: Alert fields supplied by the caller

        Returns:
            The stored alert with its ID

        Raises:
            InvalidArgumentError: If any field is invalid
            InternalError: Storage failure, including exhausted retries
        """
        now = self.clock()
        if draft.timestamp is None:
            draft = replace(draft, timestamp=now)

        validate_alert(draft, now)
        pending = draft.to_alert(new_id())

        def unit_of_work(session: StoreSession) -> Alert:
            return session.alerts.add(pending)

        try:
            alert = run_in_transaction(self.store, unit_of_work, self.retry_policy)
        except InvalidArgumentError:
            raise
        except Exception as e:
            logger.exception("Failed to store manual %s alert", draft.type.value)
            raise InternalError("Failed to create alert") from e

        logger.info(
            "Created %s alert %s (severity %d)",
            alert.type.value,
            alert.id,
            alert.severity,
        )
        return alert
