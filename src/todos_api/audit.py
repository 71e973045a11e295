from __future__ import annotations

from typing import Any, Optional

import structlog

from .models import AuditEvent, AuditOperation

logger = structlog.get_logger(__name__)

DEFAULT_LOG_CHANNEL = "log_channel"


# PUBLIC_INTERFACE
class AuditPublisher:
    """
    Best-effort publisher of audit events to a Redis pub/sub channel.

    ``publish`` never raises: when the remote tier is down, lacks a publish
    capability, or the publish call fails, the event is dropped and logged.
    """

    def __init__(self, remote: Optional[Any], channel: str = DEFAULT_LOG_CHANNEL) -> None:
        self._remote = remote
        self._channel = channel

    @property
    def channel(self) -> str:
        return self._channel

    async def publish(self, op_name: AuditOperation, username: str, todo_id: int) -> None:
        event = AuditEvent(op_name=op_name, username=username, todo_id=todo_id)
        remote = self._remote
        publish = getattr(remote, "publish", None)
        if remote is None or not callable(publish) or not remote.available:
            logger.debug("audit_event_dropped", op=event.op_name.value, todo_id=todo_id)
            return

        try:
            result = await publish(self._channel, event.to_json())
        except Exception:
            logger.warning("audit_publish_failed", op=event.op_name.value, todo_id=todo_id, exc_info=True)
            return
        if not result.ok:
            logger.warning(
                "audit_publish_failed",
                op=event.op_name.value,
                todo_id=todo_id,
                error=repr(result.error),
            )
