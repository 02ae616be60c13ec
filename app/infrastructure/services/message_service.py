"""Message delivery for the send_message workflow action."""

from __future__ import annotations

import logging

from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class LogOnlyMessageService:
    """IMessageService implementation that logs instead of sending.

    Used when no delivery channel is wired in. Production swaps in the CRM's
    email service (SMTP, provider API) behind the same interface.
    """

    async def send_message(
        self,
        *,
        organization_id: str,
        from_address: str,
        to: list[str],
        subject: str,
        body: str | None,
    ) -> None:
        """Log the message; nothing is delivered."""
        recipients = list(to or [])
        subject_preview = (subject or "")[:80]
        if not recipients:
            logger.info(
                "Workflow message: no recipients, skipping send (organization_id=%s, subject=%r)",
                organization_id,
                subject_preview,
            )
            return
        logger.info(
            "Workflow message: would send to %d recipients from %s (organization_id=%s, subject=%r)",
            len(recipients),
            from_address,
            organization_id,
            subject_preview,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Workflow message recipients: %s (at %s)",
                recipients,
                utc_now().isoformat(),
            )
        logger.debug("Workflow message body (first 500 chars): %s", (body or "")[:500])
