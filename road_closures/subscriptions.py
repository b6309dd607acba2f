"""
Subscription lifecycle for SMS registrations.

A phone number is Unregistered until it first texts in, Active while its
expiration is in the future, and Expired afterwards. Any non-keyword
message from an Unregistered or Expired number (re)subscribes it for one
day; an Active number just gets told when its subscription ends. An
unsubscribe keyword removes the number whatever its state.

Everything in this module is pure: rosters are passed in and new rosters
are returned, leaving persistence to the caller.

Author: Road Closure Alerts contributors
License: MIT
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

from .formatting import DEFAULT_TIMEZONE, format_expiration
from .models import Subscriber

UNSUBSCRIBE_KEYWORDS = frozenset(["STOP", "STOPALL", "UNSUBSCRIBE", "CANCEL", "END", "QUIT"])

SIGNUP_MESSAGE = (
    "You are all set, we will keep you up to date on any road closures for the next day. "
    "Check existing conditions here: cotrip.org/travelAlerts.htm"
)
UNSUBSCRIBE_MESSAGE = (
    "You have been unsubscribed from road closure notifications. "
    'If you would like to join again reply with "START"'
)
DUPLICATE_SIGNUP_TEMPLATE = (
    "You are already signed up until {expiration}, we will notify you with any road closures."
)


class ContactAction(str, Enum):
    SIGNUP = "SIGNUP"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    DUPLICATE_SIGNUP = "DUPLICATE_SIGNUP"


@dataclass(frozen=True)
class ContactOutcome:
    """Result of one inbound contact.

    ``roster`` is the roster to persist when ``changed`` is true; when it
    is false the caller must leave the stored roster alone.
    """
    action: ContactAction
    reply: str
    roster: List[Subscriber]
    changed: bool
    subscriber: Optional[Subscriber] = None


def is_unsubscribe(body: str) -> bool:
    return (body or "").strip().upper() in UNSUBSCRIBE_KEYWORDS


def find_subscriber(roster: Sequence[Subscriber], number: str) -> Optional[Subscriber]:
    for subscriber in roster:
        if subscriber.number == number:
            return subscriber
    return None


def active_subscribers(roster: Optional[Sequence[Subscriber]], now: datetime) -> List[Subscriber]:
    """Return subscribers still valid at ``now`` (``expires_at > now``)."""
    return [subscriber for subscriber in roster or [] if subscriber.expires_at > now]


def handle_contact(roster: Optional[Sequence[Subscriber]], number: str, body: str,
                   now: datetime, days: int = 1,
                   tz_name: str = DEFAULT_TIMEZONE) -> ContactOutcome:
    """Apply one inbound message to the roster.

    Args:
        roster: The current roster, or None if none has been saved yet
        number (str): The sender's phone number
        body (str): The message text
        now (datetime): Timezone-aware processing time
        days (int): Subscription length granted by a signup or renewal
        tz_name (str): Timezone used to render the expiration in replies

    Returns:
        ContactOutcome: The action taken, the reply text, and the new roster
    """
    roster = list(roster or [])
    existing = find_subscriber(roster, number)

    if is_unsubscribe(body):
        if existing is None:
            return ContactOutcome(ContactAction.UNSUBSCRIBE, UNSUBSCRIBE_MESSAGE, roster, changed=False)
        remaining = [s for s in roster if s.number != number]
        return ContactOutcome(ContactAction.UNSUBSCRIBE, UNSUBSCRIBE_MESSAGE, remaining, changed=True)

    if existing is not None and existing.is_active(now):
        reply = DUPLICATE_SIGNUP_TEMPLATE.format(
            expiration=format_expiration(existing.expires_at, tz_name)
        )
        return ContactOutcome(ContactAction.DUPLICATE_SIGNUP, reply, roster,
                              changed=False, subscriber=existing)

    # Unregistered or expired: both end up with a fresh one-period subscription
    subscriber = Subscriber(number=number, expires_at=now + timedelta(days=days))
    updated = [s for s in roster if s.number != number]
    updated.append(subscriber)
    return ContactOutcome(ContactAction.SIGNUP, SIGNUP_MESSAGE, updated,
                          changed=True, subscriber=subscriber)
