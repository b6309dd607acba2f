"""Optional public broadcast of notification batches to Twitter.

Author: Road Closure Alerts contributors
License: MIT
"""

import logging
from typing import Optional, Sequence

import requests
import tweepy

from .config import Config

TWEET_MAX_LENGTH = 280


def truncate_tweet(text: str) -> str:
    if len(text) <= TWEET_MAX_LENGTH:
        return text
    return text[:TWEET_MAX_LENGTH - 3] + "..."


def setup_twitter_client(config: Config) -> Optional[tweepy.Client]:
    """Sets up the Tweepy v2 API client.

    Returns:
        tweepy.Client or None: Initialized Tweepy client if all credentials
                               are configured, None otherwise
    """
    credentials = {
        'TWITTER_BEARER_TOKEN': config.TWITTER_BEARER_TOKEN,
        'TWITTER_CONSUMER_KEY': config.TWITTER_CONSUMER_KEY,
        'TWITTER_CONSUMER_SECRET': config.TWITTER_CONSUMER_SECRET,
        'TWITTER_ACCESS_TOKEN': config.TWITTER_ACCESS_TOKEN,
        'TWITTER_ACCESS_TOKEN_SECRET': config.TWITTER_ACCESS_TOKEN_SECRET,
    }
    if not any(credentials.values()):
        logging.info("Twitter broadcast disabled (no credentials)")
        return None
    missing = [name for name, value in credentials.items() if not value]
    if missing:
        logging.error(f"Missing environment variables: {', '.join(missing)}")
        return None

    try:
        client = tweepy.Client(
            bearer_token=config.TWITTER_BEARER_TOKEN,
            consumer_key=config.TWITTER_CONSUMER_KEY,
            consumer_secret=config.TWITTER_CONSUMER_SECRET,
            access_token=config.TWITTER_ACCESS_TOKEN,
            access_token_secret=config.TWITTER_ACCESS_TOKEN_SECRET,
        )
    except tweepy.TweepyException as e:
        logging.error(f"Error setting up Twitter v2 API client: {e}")
        return None
    logging.info("Twitter v2 API client configured")
    return client


class TwitterBroadcaster:
    """Posts each notification of a batch as its own tweet."""

    def __init__(self, client: Optional[tweepy.Client]):
        self.client = client

    @classmethod
    def from_config(cls, config: Config) -> 'TwitterBroadcaster':
        return cls(setup_twitter_client(config))

    def post_batch(self, messages: Sequence[str]) -> int:
        """Posts every message once; failures are logged and skipped.

        Returns:
            int: Number of tweets posted
        """
        if self.client is None:
            return 0
        posted = 0
        for message in messages:
            try:
                response = self.client.create_tweet(text=truncate_tweet(message))
                logging.info(f"Tweet posted: {response.data['id']}")
                posted += 1
            except (tweepy.TweepyException, requests.exceptions.RequestException) as e:
                logging.error(f"Error posting tweet: {e}")
        return posted
