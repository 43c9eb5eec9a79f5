import logging

logger = logging.getLogger(__name__)


class LogOnlyNotificationService:
    """
    Notification sender that logs instead of delivering e-mail.
    Used when no mail transport is configured.
    """

    async def send(self, to_emails, subject: str, body: str) -> None:
        recipients = list(to_emails or [])
        if not recipients:
            logger.info("Notify: no recipients, skipping send (subject=%r)", subject[:80])
            return
        logger.info("Notify: would send to %d recipients (subject=%r)", len(recipients), subject[:80])
        logger.debug("Notify recipients: %s", recipients)
        logger.debug("Notify body (first 500 chars): %s", body[:500])
