"""Messaging provider adapter for Telegram, WhatsApp and email."""

import logging
from dataclasses import dataclass

import httpx
import resend
from twilio.rest import Client

from sentinel.config import Settings, get_settings
from sentinel.models.enums import NotificationChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """What the provider said about one message."""

    success: bool
    provider_message_id: str | None = None
    error: str | None = None


class MessagingService:
    """Sends ``{address, channel, text}`` tuples through the configured providers.

    Unconfigured or failing channels return a failed DeliveryResult instead of
    raising, so one bad delivery never stops a sweep.
    """

    def __init__(self, settings: Settings | None = None, http_client: httpx.Client | None = None):
        self.settings = settings or get_settings()
        self._http = http_client
        self._twilio_client = None
        self._init_twilio()
        self._init_resend()

    def _init_twilio(self) -> None:
        """Initialize Twilio client if credentials are available."""
        if (
            self.settings.twilio_account_sid
            and self.settings.twilio_auth_token
            and self.settings.twilio_whatsapp_number
        ):
            self._twilio_client = Client(
                self.settings.twilio_account_sid,
                self.settings.twilio_auth_token,
            )
            logger.info("Twilio client initialized")
        else:
            logger.info("Twilio credentials not configured, WhatsApp disabled")

    def _init_resend(self) -> None:
        if self.settings.email_enabled:
            resend.api_key = self.settings.resend_api_key
        else:
            logger.info("RESEND_API_KEY not configured, email disabled")

    def send(self, channel: NotificationChannel | str, address: str, text: str) -> DeliveryResult:
        channel = NotificationChannel(channel)
        if channel == NotificationChannel.TELEGRAM:
            return self.send_telegram(address, text)
        if channel == NotificationChannel.WHATSAPP:
            return self.send_whatsapp(address, text)
        if channel == NotificationChannel.EMAIL:
            return self.send_email(address, text)
        return DeliveryResult(success=False, error=f"{channel.value} is not an external channel")

    def send_telegram(self, chat_id: str, text: str) -> DeliveryResult:
        """Send a message through the Telegram Bot API."""
        token = self.settings.telegram_bot_token
        if not token:
            logger.warning("Telegram bot token not configured, cannot send")
            return DeliveryResult(success=False, error="Telegram not configured")

        url = f"{self.settings.telegram_api_url}/bot{token}/sendMessage"
        try:
            if self._http is not None:
                response = self._http.post(url, json={"chat_id": chat_id, "text": text})
            else:
                with httpx.Client(timeout=15.0) as client:
                    response = client.post(url, json={"chat_id": chat_id, "text": text})
            data = response.json()
        except Exception as e:
            logger.error(f"Failed to send Telegram message to {chat_id}: {e}")
            return DeliveryResult(success=False, error=str(e))

        if not data.get("ok"):
            description = data.get("description", "Telegram API error")
            logger.error(f"Telegram rejected message to {chat_id}: {description}")
            return DeliveryResult(success=False, error=description)

        message_id = str(data.get("result", {}).get("message_id", "")) or None
        logger.info(f"Telegram message sent to {chat_id}, id: {message_id}")
        return DeliveryResult(success=True, provider_message_id=message_id)

    def send_whatsapp(self, phone_number: str, text: str) -> DeliveryResult:
        """Send a WhatsApp message via Twilio."""
        if not self.settings.twilio_whatsapp_enabled:
            logger.info("WhatsApp disabled via TWILIO_WHATSAPP_ENABLED setting")
            return DeliveryResult(success=False, error="WhatsApp disabled")

        if not self._twilio_client:
            logger.warning("Twilio not available, cannot send WhatsApp message")
            return DeliveryResult(success=False, error="WhatsApp not configured")

        try:
            message = self._twilio_client.messages.create(
                body=text,
                from_=f"whatsapp:{self.settings.twilio_whatsapp_number}",
                to=f"whatsapp:{phone_number}",
            )
        except Exception as e:
            logger.error(f"Failed to send WhatsApp message to {phone_number}: {e}")
            return DeliveryResult(success=False, error=str(e))

        logger.info(f"WhatsApp message sent to {phone_number}, SID: {message.sid}")
        return DeliveryResult(success=True, provider_message_id=message.sid)

    def send_email(self, to_email: str, text: str, subject: str | None = None) -> DeliveryResult:
        """Send a plain-text email through Resend."""
        if not self.settings.email_enabled:
            logger.warning(f"Email sending disabled, message for {to_email} not sent")
            return DeliveryResult(success=False, error="Email not configured")

        subject = subject or (text.splitlines()[0] if text else "Reminder")
        try:
            response = resend.Emails.send(
                {
                    "from": self.settings.email_from,
                    "to": [to_email],
                    "subject": subject[:200],
                    "text": text,
                }
            )
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return DeliveryResult(success=False, error=str(e))

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.info(f"Email sent to {to_email}, id: {message_id}")
        return DeliveryResult(success=True, provider_message_id=message_id)


def get_messaging_service(settings: Settings | None = None) -> MessagingService:
    """Get a messaging service instance."""
    return MessagingService(settings)
