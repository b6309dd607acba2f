"""HTTP client for the upstream lane closure feed.

Author: Road Closure Alerts contributors
License: MIT
"""

import logging
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import Config
from .errors import FetchError, MalformedPayload
from .models import Alert, parse_feed

USER_AGENT = 'road-closure-alerts/1.0 (+https://www.cotrip.org)'


class FeedFetcher:
    """Fetches the current statewide list of closure alerts.

    One request per call. Transport-level retries are off unless
    MAX_RETRIES is configured above zero.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.url = config.FEED_URL
        self.timeout = config.REQUEST_TIMEOUT

        # Set up HTTP session with user agent and retry mechanism
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT, 'Accept': 'application/json'})
        if session is None:
            retry = Retry(total=config.MAX_RETRIES, backoff_factor=config.BACKOFF_FACTOR,
                          status_forcelist=[500, 502, 503, 504])
            adapter = HTTPAdapter(max_retries=retry)
            self.session.mount('https://', adapter)
            self.session.mount('http://', adapter)

    def fetch_current_alerts(self) -> List[Alert]:
        """Fetches and validates the feed.

        Returns:
            List[Alert]: Every alert in the feed, unfiltered

        Raises:
            FetchError: On network failure, an error status, or a body that
                        is not the expected JSON shape
        """
        logging.info(f"Fetching closure alerts from {self.url}...")
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request to {self.url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"Response from {self.url} is not valid JSON: {e}") from e

        try:
            alerts = parse_feed(payload)
        except MalformedPayload as e:
            raise FetchError(f"Unexpected feed format from {self.url}: {e}") from e
        logging.info(f"Fetched {len(alerts)} alerts")
        return alerts
