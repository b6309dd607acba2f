"""Exceptions raised by the road closure alerts service.

Author: Road Closure Alerts contributors
License: MIT
"""


class RoadClosureError(Exception):
    """Base class for errors raised by this package."""


class FetchError(RoadClosureError):
    """The upstream closure feed could not be fetched or parsed."""


class MalformedPayload(RoadClosureError):
    """An inbound payload (feed response, webhook body, stored record) is missing required fields."""


class CycleInProgressError(RoadClosureError):
    """A poll cycle was started while another one was still running."""
