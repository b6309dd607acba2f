"""SMS transport using Twilio.

Outbound notifications go through the Twilio REST API; replies to inbound
messages are returned to Twilio as TwiML documents from the webhook.

Author: Road Closure Alerts contributors
License: MIT
"""

import logging
from typing import Optional, Sequence

from twilio.base.exceptions import TwilioException
from twilio.twiml.messaging_response import MessagingResponse

from .config import Config


def _mask(number: str) -> str:
    return number[-4:].rjust(len(number), '*')


class TwilioTransport:
    """Send notification batches and build webhook replies."""

    def __init__(self, account_sid: Optional[str] = None, auth_token: Optional[str] = None,
                 from_number: Optional[str] = None, client=None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self._client = client

    @classmethod
    def from_config(cls, config: Config) -> 'TwilioTransport':
        return cls(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN, config.TWILIO_FROM_NUMBER)

    @property
    def client(self):
        """Lazy-load Twilio client."""
        if self._client is None:
            from twilio.rest import Client
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def is_configured(self) -> bool:
        if self._client is not None:
            return bool(self.from_number)
        return all([self.account_sid, self.auth_token, self.from_number])

    def send_batch(self, messages: Sequence[str], recipients: Sequence[str]) -> int:
        """Deliver every message to every recipient, best effort.

        Failures are logged per message and never raised.

        Returns:
            int: Number of messages accepted by Twilio
        """
        if not messages or not recipients:
            logging.info("SMS: nothing to send")
            return 0
        if not self.is_configured():
            logging.error("SMS: Twilio credentials not configured, dropping batch")
            return 0

        sent = 0
        for message in messages:
            for number in recipients:
                try:
                    self.client.messages.create(body=message, from_=self.from_number, to=number)
                    sent += 1
                except (TwilioException, OSError) as e:
                    logging.error(f"SMS failed to {_mask(number)}: {e}")
        logging.info(f"SMS: sent {sent} of {len(messages) * len(recipients)} messages")
        return sent

    def reply(self, text: str) -> str:
        twiml = MessagingResponse()
        twiml.message(text)
        return str(twiml)
