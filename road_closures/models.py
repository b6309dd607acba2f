"""
Domain records for closure alerts and SMS subscribers.

Alerts are parsed from the feed's JSON shape (PascalCase keys such as
``AlertId`` and ``RoadName``) and written back in that same shape, so a
saved snapshot or archive file looks like the feed it came from.

Author: Road Closure Alerts contributors
License: MIT
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import MalformedPayload

FULL_CLOSURE_CODE = "4"


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float

    @classmethod
    def from_dict(cls, data: Any) -> Optional['Location']:
        """Parse a feed ``Location`` object; unusable coordinates yield None."""
        if not isinstance(data, dict):
            return None
        try:
            return cls(float(data['Latitude']), float(data['Longitude']))
        except (KeyError, TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, str]:
        return {'Latitude': str(self.latitude), 'Longitude': str(self.longitude)}


@dataclass(frozen=True)
class Alert:
    """One roadway closure or advisory record from the feed.

    ``id`` is the identity key: two alerts with the same id are the same
    closure, whatever their other fields say.
    """
    id: str
    road_name: str = ""
    description: str = ""
    location_description: str = ""
    direction: str = ""
    both_directions: bool = False
    start_mile_marker: Optional[str] = None
    end_mile_marker: Optional[str] = None
    closure_type_id: Optional[str] = None
    location: Optional[Location] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    def closure_kind(self, full_code: str = FULL_CLOSURE_CODE) -> str:
        return "full" if self.is_full_closure(full_code) else "partial"

    def is_full_closure(self, full_code: str = FULL_CLOSURE_CODE) -> bool:
        return self.closure_type_id == full_code

    @classmethod
    def from_dict(cls, data: Any) -> 'Alert':
        """Build an Alert from one feed-shaped dictionary.

        Args:
            data (dict): A single entry of the feed's ``Alerts.Alert`` list

        Returns:
            Alert: The validated alert

        Raises:
            MalformedPayload: If the entry is not an object or has no AlertId
        """
        if not isinstance(data, dict):
            raise MalformedPayload(f"Alert entry is not an object: {data!r}")
        alert_id = data.get('AlertId')
        if alert_id is None or str(alert_id).strip() == "":
            raise MalformedPayload(f"Alert entry has no AlertId: {data!r}")

        return cls(
            id=str(alert_id).strip(),
            road_name=_text(data, 'RoadName'),
            description=_text(data, 'Description'),
            location_description=_text(data, 'LocationDescription'),
            direction=_text(data, 'Direction'),
            both_directions=_text(data, 'IsBothDirectionFlg').strip().lower() == "true",
            start_mile_marker=_optional_text(data, 'StartMileMarker'),
            end_mile_marker=_optional_text(data, 'EndMileMarker'),
            closure_type_id=_optional_text(data, 'RoadwayClosureId'),
            location=Location.from_dict(data.get('Location')),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Feed-shaped dictionary for saving.

        An alert parsed from the feed is written back exactly as it was
        received, every field included. Alerts built in code are rendered
        from their parsed fields.
        """
        if self.raw:
            return dict(self.raw)
        data: Dict[str, Any] = {
            'AlertId': self.id,
            'RoadName': self.road_name,
            'Description': self.description,
            'LocationDescription': self.location_description,
            'Direction': self.direction,
            'IsBothDirectionFlg': "true" if self.both_directions else "false",
        }
        if self.start_mile_marker is not None:
            data['StartMileMarker'] = self.start_mile_marker
        if self.end_mile_marker is not None:
            data['EndMileMarker'] = self.end_mile_marker
        if self.closure_type_id is not None:
            data['RoadwayClosureId'] = self.closure_type_id
        if self.location is not None:
            data['Location'] = self.location.to_dict()
        return data


def parse_feed(payload: Any) -> List[Alert]:
    """Validate a feed response body and return its alerts.

    The feed wraps its records as ``{"Alerts": {"Alert": [...]}}``. An
    ``Alerts`` object with no ``Alert`` key (or a null one) means no open
    closures. A lone object in place of the list is accepted as a
    one-element list.

    Raises:
        MalformedPayload: If the envelope or any entry is unusable
    """
    if not isinstance(payload, dict) or 'Alerts' not in payload:
        raise MalformedPayload("Feed response has no 'Alerts' envelope")
    envelope = payload['Alerts']
    if envelope is None:
        return []
    if not isinstance(envelope, dict):
        raise MalformedPayload("Feed 'Alerts' envelope is not an object")
    entries = envelope.get('Alert')
    if entries is None:
        return []
    if isinstance(entries, dict):
        entries = [entries]
    if not isinstance(entries, list):
        raise MalformedPayload("Feed 'Alerts.Alert' is not a list")
    return [Alert.from_dict(entry) for entry in entries]


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str) or not value:
        raise MalformedPayload(f"Invalid expiration: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedPayload(f"Invalid expiration: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace("+00:00", "Z")


@dataclass(frozen=True)
class Subscriber:
    """One phone number registration, valid while ``now < expires_at``."""
    number: str
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at

    @classmethod
    def from_dict(cls, data: Any) -> 'Subscriber':
        if not isinstance(data, dict):
            raise MalformedPayload(f"Subscriber entry is not an object: {data!r}")
        number = data.get('number')
        if not isinstance(number, str) or not number.strip():
            raise MalformedPayload(f"Subscriber entry has no number: {data!r}")
        return cls(number=number.strip(), expires_at=_parse_timestamp(data.get('expiration')))

    def to_dict(self) -> Dict[str, str]:
        return {'number': self.number, 'expiration': format_timestamp(self.expires_at)}


@dataclass(frozen=True)
class InboundMessage:
    """The fields of an inbound SMS webhook the registration flow relies on."""
    sender: str
    body: str

    @classmethod
    def from_form(cls, form: Any) -> 'InboundMessage':
        """Validate a webhook form body (``From`` and ``Body`` are required).

        Raises:
            MalformedPayload: If either field is missing or ``From`` is blank
        """
        if form is None:
            raise MalformedPayload("Webhook body is empty")
        sender = form.get('From')
        body = form.get('Body')
        if not isinstance(sender, str) or not sender.strip():
            raise MalformedPayload("Webhook body has no 'From' number")
        if not isinstance(body, str):
            raise MalformedPayload("Webhook body has no 'Body' text")
        return cls(sender=sender.strip(), body=body)
