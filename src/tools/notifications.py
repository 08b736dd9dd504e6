"""Fire-and-forget SMS tools: photo upload link and escalation callback.

Both always report success to the voice agent.  Delivery failures are
logged with their traceback and go no further.
"""

from __future__ import annotations

import logging

from src.api.schemas import EscalationArgs, PhotoLinkArgs
from src.services.notification_gateway import NotificationGateway

logger = logging.getLogger(__name__)

PHOTO_LINK_TEMPLATE = (
    "Here’s the photo upload link for your virtual estimate: {link}\n"
    "We’ll text confirmations & reminders. Reply STOP to opt-out."
)
ESCALATION_TEMPLATE = "Callback request: {name} {phone}\nWhen: {window}\nReason: {reason}"


def _send_best_effort(gateway: NotificationGateway, to_number: str, message: str) -> None:
    try:
        gateway.send(to_number, message)
    except Exception:
        logger.exception("SMS to %s failed; continuing", to_number)


class PhotoLinkNotifier:
    def __init__(self, gateway: NotificationGateway):
        self._gateway = gateway

    def notify(self, args: PhotoLinkArgs) -> None:
        message = PHOTO_LINK_TEMPLATE.format(link=args.form_url)
        _send_best_effort(self._gateway, args.to_number, message)


class EscalationNotifier:
    """Texts a callback request to the on-call number, if one is configured."""

    def __init__(self, gateway: NotificationGateway, escalation_number: str = ""):
        self._gateway = gateway
        self._escalation_number = escalation_number

    def notify(self, args: EscalationArgs) -> None:
        if not self._escalation_number:
            logger.info("Escalation for %s not sent: no escalation number", args.caller_name)
            return
        message = ESCALATION_TEMPLATE.format(
            name=args.caller_name,
            phone=args.caller_phone,
            window=args.callback_window,
            reason=args.reason or "n/a",
        )
        _send_best_effort(self._gateway, self._escalation_number, message)
