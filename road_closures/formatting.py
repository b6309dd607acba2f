"""
Text rendering for closure notifications and subscription replies.

Every function here is plain string construction with fixed English
templates, so message content can be checked without any transport.

Author: Road Closure Alerts contributors
License: MIT
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from .models import Alert, FULL_CLOSURE_CODE

DEFAULT_SOURCE_NAME = "CODOT"
DEFAULT_TIMEZONE = "America/Denver"
MERIDIEM = {"AM": "a.m.", "PM": "p.m."}


def direction_clause(alert: Alert) -> str:
    if alert.both_directions:
        return "in both directions"
    return f"going {alert.direction}"


def extent_clause(alert: Alert) -> str:
    if alert.end_mile_marker:
        return f"from mile marker {alert.start_mile_marker} to {alert.end_mile_marker}"
    return f"at mile marker {alert.start_mile_marker}"


def location_suffix(alert: Alert) -> str:
    description = (alert.location_description or "").strip()
    return f" ({description})" if description else ""


def severity_qualifier(alert: Alert, full_code: str = FULL_CLOSURE_CODE) -> str:
    return f"({alert.closure_kind(full_code)})"


def format_closure(alert: Alert, source: str = DEFAULT_SOURCE_NAME,
                   full_code: str = FULL_CLOSURE_CODE) -> str:
    """Render the notification for a newly reported closure.

    Args:
        alert (Alert): The closure that appeared in the feed
        source (str): Label of the feed the description is quoted from
        full_code (str): Closure-type code that marks a full closure

    Returns:
        str: e.g. ``New (partial) closure on I-70 going East at mile
        marker 205 (Silverthorne). From CODOT: Right lane closed``
    """
    return (
        f"New {severity_qualifier(alert, full_code)} closure on {alert.road_name} "
        f"{direction_clause(alert)} {extent_clause(alert)}{location_suffix(alert)}. "
        f"From {source}: {alert.description}"
    )


def format_opening(alert: Alert) -> str:
    """Render the notification for a closure that has cleared."""
    return (
        f"Road reopened on {alert.road_name} "
        f"{direction_clause(alert)} {extent_clause(alert)}{location_suffix(alert)}."
    )


def format_expiration(expires_at: datetime, tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Render an expiration in local time as ``M/D at H:MM a.m.``."""
    local = expires_at.astimezone(ZoneInfo(tz_name))
    # strftime zero-pads month, day and hour; the text drops the padding
    date_str = "/".join(part.lstrip("0") for part in local.strftime('%m/%d').split("/"))
    time_str = local.strftime('%I:%M').lstrip("0")
    period = MERIDIEM.get(local.strftime('%p').upper(), "a.m." if local.hour < 12 else "p.m.")
    return f"{date_str} at {time_str} {period}"
