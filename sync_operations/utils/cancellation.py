"""
Cancellation Utilities

A cancellation token that export and import check between steps. A step
that is already running always runs to completion.
"""

import logging
import threading
from typing import Optional

from ..exceptions import OperationCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Thread-safe flag that can be set from a signal handler or another thread.

    Example:
        ```python
        token = CancellationToken()
        manager.export(cancellation=token)

        # elsewhere
        token.cancel("operator requested stop")
        ```
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation at the next step boundary."""
        self.reason = reason
        self._event.set()
        logger.info(f"Cancellation requested{': ' + reason if reason else ''}")

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self, next_step: str, secret: Optional[str] = None) -> None:
        """
        Raise if cancellation was requested.

        Args:
            next_step: Name of the step that would run next
            secret: Secret of the running transaction

        Raises:
            OperationCancelledError: If the token was cancelled
        """
        if self.is_cancelled:
            raise OperationCancelledError(
                f"Operation cancelled before step '{next_step}'",
                secret=secret,
                context={"reason": self.reason} if self.reason else None
            )
