import logging
from typing import Protocol

from twilio.base.exceptions import TwilioException
from twilio.rest import Client
from twilio.twiml.voice_response import VoiceResponse

logger = logging.getLogger(__name__)

DEFAULT_CALL_TEXT = "A fall has been detected. Please check on them immediately."


class NotifyCapability(Protocol):
    def send_message(self, contact: str, text: str) -> bool: ...
    def place_call(self, contact: str, text: str | None = None) -> bool: ...


def call_twiml(text: str, loop: int = 2) -> str:
    """TwiML for an outbound call that reads `text` aloud."""
    response = VoiceResponse()
    response.say(text, loop=loop)
    return str(response)


class TwilioNotifier(NotifyCapability):
    """SMS and voice-call delivery through Twilio.

    One API request per call; failures are logged and reported through the
    return value, never retried here.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        enabled: bool = True,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.enabled = enabled
        self._client: Client | None = None

    def send_message(self, contact: str, text: str) -> bool:
        if not self.enabled:
            logger.warning(f"Notifier disabled, SMS to {contact} not sent")
            return False

        logger.info(f"Sending SMS to {contact}: {text[:50]}...")
        try:
            message = self._get_client().messages.create(
                body=text, from_=self.from_number, to=contact
            )
        except TwilioException as e:
            logger.error(f"Twilio SMS to {contact} failed: {e}")
            return False
        except Exception as e:
            logger.error(f"Twilio SMS error: {e}")
            return False

        logger.info(f"Twilio SMS accepted for {contact} (sid={message.sid})")
        return True

    def place_call(self, contact: str, text: str | None = None) -> bool:
        if not self.enabled:
            logger.warning(f"Notifier disabled, call to {contact} not placed")
            return False

        logger.info(f"Placing call to {contact}")
        try:
            call = self._get_client().calls.create(
                twiml=call_twiml(text or DEFAULT_CALL_TEXT), from_=self.from_number, to=contact
            )
        except TwilioException as e:
            logger.error(f"Twilio call to {contact} failed: {e}")
            return False
        except Exception as e:
            logger.error(f"Twilio call error: {e}")
            return False

        logger.info(f"Twilio call queued for {contact} (sid={call.sid})")
        return True

    def _get_client(self) -> Client:
        # built on first use so missing credentials only fail a delivery
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client
