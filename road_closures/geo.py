"""Regional bounding-box filter for closure alerts.

Author: Road Closure Alerts contributors
License: MIT
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

from .config import Config
from .models import Alert


@dataclass(frozen=True)
class GeoFilter:
    """Selects alerts whose coordinates fall inside a fixed region.

    All four bounds are inclusive. Alerts without coordinates are
    excluded rather than passed through.
    """
    south: float
    north: float
    west: float
    east: float

    @classmethod
    def from_config(cls, config: Config) -> 'GeoFilter':
        return cls(
            south=config.SOUTH_BOUND,
            north=config.NORTH_BOUND,
            west=config.WEST_BOUND,
            east=config.EAST_BOUND,
        )

    def includes(self, alert: Alert) -> bool:
        if alert is None or alert.location is None:
            return False
        lat = alert.location.latitude
        lon = alert.location.longitude
        return self.south <= lat <= self.north and self.west <= lon <= self.east

    def apply(self, alerts: Iterable[Alert]) -> List[Alert]:
        alerts = list(alerts)
        selected = [alert for alert in alerts if self.includes(alert)]
        logging.info(f"Geo filter kept {len(selected)} of {len(alerts)} alerts")
        return selected
