"""
Notification Service - WhatsApp messages through Twilio.

Notifications are best-effort side effects: send() never raises. A failed
message must not fail (or roll back) the state change that triggered it,
so errors are logged and None is returned.
"""

import logging
from typing import Optional

from twilio.rest import Client

from startupteam.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def format_whatsapp_address(phone: str) -> str:
    """'+91 98765-43210' / '919876543210' -> 'whatsapp:+919876543210'"""
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"whatsapp:+{digits}"


def application_accepted_message(startup_name: str, founder_contact: str) -> str:
    return (
        f"🎉 Congratulations!\n\n"
        f"Your application to {startup_name} has been ACCEPTED!\n\n"
        f"The founder will contact you at: {founder_contact}\n\n"
        f"Good luck with your new venture!\n\n- StartupTeam"
    )


def role_match_message(startup_name: str, role_title: str) -> str:
    return (
        f"🚀 New Role Match!\n\n"
        f"{startup_name} is looking for:\n{role_title}\n\n"
        f"This matches your profile! Check it out now on StartupTeam."
    )


class WhatsAppNotifier:
    """
    Thin wrapper over the Twilio messages API.
    Without credentials it stays disabled and only logs what it would send.
    """

    def __init__(self, settings: Settings = None, client: Client = None):
        self.settings = settings or get_settings()
        self.from_number = self.settings.twilio_whatsapp_number
        self.client = client
        if self.client is None and self.settings.twilio_enabled:
            self.client = Client(self.settings.twilio_account_sid, self.settings.twilio_auth_token)
        if self.client is None:
            logger.warning("Twilio credentials not configured. WhatsApp notifications are disabled.")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def send(self, phone: Optional[str], body: str) -> Optional[str]:
        """Send a message; returns the Twilio message SID or None."""
        if not self.enabled:
            logger.info("WhatsApp notification skipped: Twilio not configured")
            return None
        if not phone:
            logger.info("WhatsApp notification skipped: recipient has no phone number")
            return None

        from_address = self.from_number
        if not from_address.startswith("whatsapp:"):
            from_address = format_whatsapp_address(from_address)

        try:
            message = self.client.messages.create(
                from_=from_address,
                to=format_whatsapp_address(phone),
                body=body,
            )
        except Exception as e:
            logger.error("WhatsApp send error: %s", e)
            return None

        logger.info("WhatsApp message sent: %s", message.sid)
        return message.sid

    def send_application_accepted(self, phone: Optional[str], startup_name: str, founder_contact: str) -> Optional[str]:
        return self.send(phone, application_accepted_message(startup_name, founder_contact))

    def send_role_match(self, phone: Optional[str], startup_name: str, role_title: str) -> Optional[str]:
        return self.send(phone, role_match_message(startup_name, role_title))


# Singleton instance
_notifier: WhatsAppNotifier = None


def get_notifier() -> WhatsAppNotifier:
    """Get or create the notifier (singleton pattern)"""
    global _notifier
    if _notifier is None:
        _notifier = WhatsAppNotifier()
    return _notifier
