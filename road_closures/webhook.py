"""
SMS registration webhook.

Twilio posts every inbound text to ``POST /register``. The sender is
signed up, renewed, told about an existing subscription, or removed, and
the reply goes back to Twilio as TwiML. The HTTP status is always 200;
problems are reported to the texter in the reply.

Author: Road Closure Alerts contributors
License: MIT
"""

import argparse
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from flask import Flask, Response, request

from .analytics import AnalyticsStore, hash_number
from .config import Config, setup_logging
from .errors import MalformedPayload
from .models import InboundMessage, format_timestamp
from .sms import TwilioTransport
from .storage import RosterStore
from .subscriptions import ContactAction, ContactOutcome, handle_contact

MALFORMED_REPLY = "Sorry, we could not process your message. Please try again."
ERROR_REPLY = "Sorry, something went wrong on our end. Please try again later."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RegistrationHandler:
    """Applies one inbound message to the stored roster.

    Events are serialised: each one reads the roster, applies the
    lifecycle transition, saves, and records analytics before the next
    event is looked at.
    """
    roster_store: RosterStore
    analytics: Optional[AnalyticsStore] = None
    subscription_days: int = 1
    tz_name: str = "America/Denver"
    clock: Callable[[], datetime] = utc_now

    def __post_init__(self):
        self._lock = threading.Lock()

    def handle(self, message: InboundMessage) -> ContactOutcome:
        with self._lock:
            now = self.clock()
            roster = self.roster_store.load()
            if roster is None:
                logging.info("Creating roster file")
            outcome = handle_contact(roster, message.sender, message.body, now,
                                     days=self.subscription_days, tz_name=self.tz_name)
            if outcome.changed:
                self.roster_store.save(outcome.roster)
            self._log(outcome, now)
            self._record(message.sender, outcome)
        return outcome

    def _log(self, outcome: ContactOutcome, now: datetime):
        total = len(outcome.roster)
        stamp = format_timestamp(now)
        if outcome.action is ContactAction.SIGNUP:
            logging.info(f"{stamp}: subscribing user until {format_timestamp(outcome.subscriber.expires_at)} - total: {total}")
        elif outcome.action is ContactAction.UNSUBSCRIBE:
            logging.info(f"{stamp}: unsubscribed user - total: {total}")
        else:
            logging.info(f"{stamp}: duplicate signup - total: {total}")

    def _record(self, number: str, outcome: ContactOutcome):
        if self.analytics is None:
            return
        payload = {'message': outcome.reply}
        if outcome.action is ContactAction.SIGNUP:
            payload['count'] = len(outcome.roster)
        try:
            self.analytics.record(hash_number(number), outcome.action.value, payload)
        except Exception as e:
            logging.error(f"Analytics write failed for {outcome.action.value}: {e}")


def create_app(config: Optional[Config] = None, handler: Optional[RegistrationHandler] = None,
               transport: Optional[TwilioTransport] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Optional Config, read from the environment when omitted
        handler: Optional pre-built RegistrationHandler (used by tests)
        transport: Optional transport used to render replies

    Returns:
        Configured Flask application
    """
    if config is None:
        config = Config.from_env()
    if handler is None:
        handler = RegistrationHandler(
            roster_store=RosterStore(config.ROSTER_PATH),
            analytics=AnalyticsStore(config.ANALYTICS_DB_PATH),
            subscription_days=config.SUBSCRIPTION_DAYS,
            tz_name=config.LOCAL_TIMEZONE,
        )
    if transport is None:
        transport = TwilioTransport.from_config(config)

    app = Flask(__name__)
    app.registration_handler = handler

    @app.route('/register', methods=['POST'])
    def register():
        try:
            message = InboundMessage.from_form(request.form)
        except MalformedPayload as e:
            logging.warning(f"Rejected webhook payload: {e}")
            text = MALFORMED_REPLY
        else:
            try:
                text = handler.handle(message).reply
            except OSError as e:
                logging.error(f"Could not update roster: {e}")
                text = ERROR_REPLY
        return Response(transport.reply(text), status=200, mimetype='text/xml')

    return app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve the SMS registration webhook.")
    parser.add_argument('--env-file', default=None, help="Path to a .env file")
    args = parser.parse_args(argv)

    config = Config.from_env(args.env_file)
    setup_logging(config)
    app = create_app(config)
    logging.info(f"Server running on http://{config.WEBHOOK_HOST}:{config.WEBHOOK_PORT}")
    app.run(host=config.WEBHOOK_HOST, port=config.WEBHOOK_PORT)


if __name__ == "__main__":
    main()
