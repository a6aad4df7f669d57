"""Email Notifier — renders transfer confirmations and hands them to the log transport.

Invariants:
    - notify() is fire-and-forget from the caller's perspective; the orchestrator
      swallows anything it raises
    - Disabled notifiers accept events and drop them

Design Decisions:
    - Log transport: delivery is an external concern, the rendered envelope is
      logged in full so operators can wire a real mail relay later
"""

import logging

from transfer_engine.core.format_notification import (
    SUBJECT, TransferNotification, format_notification_body,
)

logger = logging.getLogger(__name__)


class LoggingEmailNotifier:
    """NotificationSink that renders an email and writes it to the log."""

    def __init__(self, sender: str, enabled: bool = True):
        self.sender = sender
        self.enabled = enabled

    async def notify(self, recipient_email: str, event: TransferNotification) -> None:
        if not self.enabled:
            logger.debug(
                "Notifications disabled, dropping event",
                extra={"transfer_id": str(event.transfer_id)},
            )
            return
        body = format_notification_body(event)
        logger.info(
            f"EMAIL to={recipient_email} from={self.sender} "
            f"subject={SUBJECT!r}\n{body}",
            extra={**event.to_dict(), "address": event.sender},
        )


# Singleton (initialized on startup)
notifier: LoggingEmailNotifier | None = None


def init_notifier(sender: str, enabled: bool = True) -> LoggingEmailNotifier:
    global notifier
    notifier = LoggingEmailNotifier(sender, enabled)
    return notifier


def get_notifier() -> LoggingEmailNotifier:
    """FastAPI dependency for the notification sink."""
    if not notifier:
        raise RuntimeError("Notifier not initialized")
    return notifier
