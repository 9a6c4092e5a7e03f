"""Notification emitter that writes challenge notifications to the audit log."""

from typing import Any, Dict, List, Optional

import structlog

from ..utils.logging import get_challenge_logger


class LogNotificationEmitter:
    """NotificationEmitter that records each notification as a structured log line.

    The last few notifications are kept in memory for inspection
    (e.g. in tests).
    """

    def __init__(
        self, audit_logger: Optional[structlog.BoundLogger] = None, keep_last: int = 50
    ) -> None:
        self._audit = audit_logger or get_challenge_logger("challenge_notifications")
        self._keep_last = keep_last
        self.recent: List[Dict[str, Any]] = []

    async def emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        self._audit.info("notification", event_type=event_type, **payload)
        self.recent.append({"event_type": event_type, **payload})
        del self.recent[: -self._keep_last]
