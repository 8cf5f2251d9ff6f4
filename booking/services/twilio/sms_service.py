# booking/services/twilio/sms_service.py
"""SMS / WhatsApp delivery through Twilio"""
import logging
from functools import lru_cache
from typing import Optional

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from booking.config.settings import Settings, get_settings
from booking.scheduling.errors import DeliveryError

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"


def as_whatsapp_address(phone: str) -> str:
    return phone if phone.startswith(WHATSAPP_PREFIX) else f"{WHATSAPP_PREFIX}{phone}"


class MessagingService:
    """
    Sends text messages over SMS or WhatsApp.

    In mock mode (USE_MOCK_MESSAGING, or no Twilio account configured)
    messages are only logged and always succeed.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Client] = None):
        self.settings = settings or get_settings()
        self.mock = client is None and self.settings.messaging_is_mocked
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.settings.TWILIO_ACCOUNT_SID, self.settings.TWILIO_AUTH_TOKEN)
        return self._client

    def send(self, channel: str, to_phone: str, message_body: str) -> dict:
        if channel == "sms":
            return self.send_sms(to_phone, message_body)
        if channel == "whatsapp":
            return self.send_whatsapp(to_phone, message_body)
        raise DeliveryError(f"Unsupported reminder channel: {channel}")

    def send_sms(self, to_phone: str, message_body: str) -> dict:
        if self.mock:
            logger.info(f"[MOCK SMS] to {to_phone}: {message_body}")
            return {"success": True, "message_sid": None}

        if not self.settings.TWILIO_PHONE_NUMBER:
            raise DeliveryError("Twilio phone number not configured")

        return self._create_message(
            from_=self.settings.TWILIO_PHONE_NUMBER,
            to=to_phone,
            body=message_body,
        )

    def send_whatsapp(self, to_phone: str, message_body: str) -> dict:
        if self.mock:
            logger.info(f"[MOCK WhatsApp] to {to_phone}: {message_body}")
            return {"success": True, "message_sid": None}

        if not self.settings.TWILIO_WHATSAPP_NUMBER:
            raise DeliveryError("Twilio WhatsApp number not configured")

        return self._create_message(
            from_=as_whatsapp_address(self.settings.TWILIO_WHATSAPP_NUMBER),
            to=as_whatsapp_address(to_phone),
            body=message_body,
        )

    def _create_message(self, from_: str, to: str, body: str) -> dict:
        try:
            twilio_message = self.client.messages.create(body=body, from_=from_, to=to)
        except TwilioException as e:
            logger.error(f"Twilio error sending message to {to}: {str(e)}")
            raise DeliveryError(f"Twilio error: {e}", cause=e)

        logger.info(f"Message sent successfully to {to}: {twilio_message.sid}")
        return {"success": True, "message_sid": twilio_message.sid}


@lru_cache()
def get_messaging_service() -> MessagingService:
    return MessagingService()
