# utils/twilio_client.py

import re

from requests.exceptions import RequestException
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client as TwilioClient

from ..errors import GatewayError
from .logger import get_logger

logger = get_logger("twilio_client")


def build_client(settings) -> TwilioClient:
    """
    Build an authenticated Twilio client from Settings.
    """
    client = TwilioClient(settings.twilio_sid, settings.twilio_auth_token)
    logger.info("Twilio client initialized successfully")
    return client


class SmsSender:
    """
    Sends a single SMS from the configured number.

    ``send`` returns the Twilio message SID. Anything Twilio raises, HTTP
    errors and authentication failures included, comes out as GatewayError.
    """

    def __init__(self, client, from_phone: str):
        self.client = client
        # Numbers pasted from the console often carry spaces.
        self.from_phone = re.sub(r"\s+", "", from_phone)

    @classmethod
    def from_settings(cls, settings) -> "SmsSender":
        return cls(build_client(settings), settings.twilio_phone)

    def send(self, to: str, body: str) -> str:
        try:
            resp = self.client.messages.create(
                from_=self.from_phone,
                to=to,
                body=body,
            )
        except TwilioRestException as e:
            logger.error(
                "twilio.send_failed",
                extra={"to": to, "status": e.status, "code": e.code, "error": e.msg},
            )
            raise GatewayError(str(e.msg), code=e.code) from e
        except (TwilioException, RequestException) as e:
            logger.error("twilio.send_failed", extra={"to": to, "error": str(e)})
            raise GatewayError(str(e)) from e

        sid = getattr(resp, "sid", None)
        logger.info("twilio.sent", extra={"sid": sid, "to": to})
        return sid
