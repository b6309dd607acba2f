"""
Configuration and logging setup for the road closure alerts service.

Both the poller and the registration webhook build a Config from the
environment (optionally seeded from a .env file) and pass it down to the
components they wire together.

Author: Road Closure Alerts contributors
License: MIT
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


@dataclass
class Config:
    """Configuration settings for the road closure alerts service.

    This class centralizes the parameters used by the poller and the
    webhook: timing settings, file paths, the regional bounding box,
    and transport credentials. Default values are provided, but can be
    overridden via environment variables.
    """
    POLL_INTERVAL: int = 180  # Seconds between feed checks
    REQUEST_TIMEOUT: int = 60  # Timeout in seconds for the feed request
    MAX_RETRIES: int = 0  # Transport-level retries for the feed request
    BACKOFF_FACTOR: float = 1  # Backoff factor used when MAX_RETRIES > 0
    FEED_URL: str = "https://www.cotrip.org/roadConditions/getLaneClosureAlerts.do"
    FEED_SOURCE_NAME: str = "CODOT"  # Label used in closure messages

    SNAPSHOT_PATH: str = "roaddata.json"
    ARCHIVE_DIR: str = "archive"
    ROSTER_PATH: str = "numbers.json"
    ANALYTICS_DB_PATH: str = "analytics.db"
    LOG_FILE: Optional[str] = "road_closures.log"
    LOG_LEVEL: str = "INFO"

    # Regional bounding box, inclusive on every side
    NORTH_BOUND: float = 40.517692
    SOUTH_BOUND: float = 39.084296
    WEST_BOUND: float = -107.399081
    EAST_BOUND: float = -105.128684

    FULL_CLOSURE_CODE: str = "4"
    SUBSCRIPTION_DAYS: int = 1
    LOCAL_TIMEZONE: str = "America/Denver"

    WEBHOOK_HOST: str = "localhost"
    WEBHOOK_PORT: int = 3000

    # Twilio settings - these should be provided via environment variables
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_FROM_NUMBER: Optional[str] = None

    # Optional Twitter broadcast of every notification batch
    TWITTER_BEARER_TOKEN: Optional[str] = None
    TWITTER_CONSUMER_KEY: Optional[str] = None
    TWITTER_CONSUMER_SECRET: Optional[str] = None
    TWITTER_ACCESS_TOKEN: Optional[str] = None
    TWITTER_ACCESS_TOKEN_SECRET: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'Config':
        """Create Config instance from environment variables.

        Loads environment variables from a .env file (the given path, or
        the nearest one found by python-dotenv) and creates a Config
        instance with values from the environment, falling back to
        defaults where a variable is not set.

        Args:
            env_file (str, optional): Explicit path to a .env file

        Returns:
            Config: A Config instance populated from the environment
        """
        load_dotenv(env_file)
        defaults = cls()
        log_file = os.getenv('LOG_FILE', defaults.LOG_FILE)
        return cls(
            POLL_INTERVAL=_env_int('POLL_INTERVAL', defaults.POLL_INTERVAL),
            REQUEST_TIMEOUT=_env_int('REQUEST_TIMEOUT', defaults.REQUEST_TIMEOUT),
            MAX_RETRIES=_env_int('MAX_RETRIES', defaults.MAX_RETRIES),
            BACKOFF_FACTOR=_env_float('BACKOFF_FACTOR', defaults.BACKOFF_FACTOR),
            FEED_URL=os.getenv('FEED_URL', defaults.FEED_URL),
            FEED_SOURCE_NAME=os.getenv('FEED_SOURCE_NAME', defaults.FEED_SOURCE_NAME),
            SNAPSHOT_PATH=os.getenv('SNAPSHOT_PATH', defaults.SNAPSHOT_PATH),
            ARCHIVE_DIR=os.getenv('ARCHIVE_DIR', defaults.ARCHIVE_DIR),
            ROSTER_PATH=os.getenv('ROSTER_PATH', defaults.ROSTER_PATH),
            ANALYTICS_DB_PATH=os.getenv('ANALYTICS_DB_PATH', defaults.ANALYTICS_DB_PATH),
            LOG_FILE=log_file or None,
            LOG_LEVEL=os.getenv('LOG_LEVEL', defaults.LOG_LEVEL),
            NORTH_BOUND=_env_float('NORTH_BOUND', defaults.NORTH_BOUND),
            SOUTH_BOUND=_env_float('SOUTH_BOUND', defaults.SOUTH_BOUND),
            WEST_BOUND=_env_float('WEST_BOUND', defaults.WEST_BOUND),
            EAST_BOUND=_env_float('EAST_BOUND', defaults.EAST_BOUND),
            FULL_CLOSURE_CODE=os.getenv('FULL_CLOSURE_CODE', defaults.FULL_CLOSURE_CODE),
            SUBSCRIPTION_DAYS=_env_int('SUBSCRIPTION_DAYS', defaults.SUBSCRIPTION_DAYS),
            LOCAL_TIMEZONE=os.getenv('LOCAL_TIMEZONE', defaults.LOCAL_TIMEZONE),
            WEBHOOK_HOST=os.getenv('WEBHOOK_HOST', defaults.WEBHOOK_HOST),
            WEBHOOK_PORT=_env_int('WEBHOOK_PORT', defaults.WEBHOOK_PORT),
            TWILIO_ACCOUNT_SID=os.getenv('TWILIO_ACCOUNT_SID'),
            TWILIO_AUTH_TOKEN=os.getenv('TWILIO_AUTH_TOKEN'),
            TWILIO_FROM_NUMBER=os.getenv('TWILIO_FROM_NUMBER'),
            TWITTER_BEARER_TOKEN=os.getenv('TWITTER_BEARER_TOKEN'),
            TWITTER_CONSUMER_KEY=os.getenv('TWITTER_CONSUMER_KEY'),
            TWITTER_CONSUMER_SECRET=os.getenv('TWITTER_CONSUMER_SECRET'),
            TWITTER_ACCESS_TOKEN=os.getenv('TWITTER_ACCESS_TOKEN'),
            TWITTER_ACCESS_TOKEN_SECRET=os.getenv('TWITTER_ACCESS_TOKEN_SECRET'),
        )


def setup_logging(config: Config):
    """Set up root logging for either entry point.

    Logs go to LOG_FILE when one is configured, otherwise to stderr.
    """
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        filename=config.LOG_FILE,
    )
