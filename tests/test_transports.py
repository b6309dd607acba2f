"""Tests for the feed client, SMS transport, Twitter broadcaster and analytics store."""

from unittest.mock import MagicMock

import pytest
import requests
import tweepy
from twilio.base.exceptions import TwilioException

from road_closures.analytics import AnalyticsStore, hash_number
from road_closures.config import Config
from road_closures.errors import FetchError
from road_closures.feed import FeedFetcher
from road_closures.sms import TwilioTransport
from road_closures.twitter import TWEET_MAX_LENGTH, TwitterBroadcaster, setup_twitter_client, truncate_tweet


def _session(payload=None):
    session = MagicMock()
    session.headers = {}
    session.get.return_value.json.return_value = payload
    return session


class TestFeedFetcher:

    def test_fetch_parses_alerts(self):
        session = _session({"Alerts": {"Alert": [{"AlertId": "1", "RoadName": "I-70"}]}})
        fetcher = FeedFetcher(Config(REQUEST_TIMEOUT=5), session=session)

        alerts = fetcher.fetch_current_alerts()

        assert [a.id for a in alerts] == ["1"]
        session.get.assert_called_once_with(Config.FEED_URL, timeout=5)

    def test_network_error(self):
        session = _session()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(FetchError):
            FeedFetcher(Config(), session=session).fetch_current_alerts()

    def test_http_error_status(self):
        session = _session()
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("503")

        with pytest.raises(FetchError):
            FeedFetcher(Config(), session=session).fetch_current_alerts()

    def test_invalid_json(self):
        session = _session()
        session.get.return_value.json.side_effect = ValueError("Expecting value")

        with pytest.raises(FetchError):
            FeedFetcher(Config(), session=session).fetch_current_alerts()

    def test_unexpected_shape(self):
        with pytest.raises(FetchError):
            FeedFetcher(Config(), session=_session({"error": "maintenance"})).fetch_current_alerts()

    def test_default_session_has_no_retries(self):
        fetcher = FeedFetcher(Config())

        adapter = fetcher.session.get_adapter(Config.FEED_URL)
        assert adapter.max_retries.total == 0


class TestTwilioTransport:

    def test_send_batch_is_cross_product(self):
        client = MagicMock()
        transport = TwilioTransport(from_number="+15557654321", client=client)

        sent = transport.send_batch(["closure", "opening"], ["+15550000001", "+15550000002", "+15550000003"])

        assert sent == 6
        assert client.messages.create.call_count == 6
        client.messages.create.assert_any_call(body="opening", from_="+15557654321", to="+15550000002")

    def test_failures_are_logged_not_raised(self, caplog):
        client = MagicMock()
        client.messages.create.side_effect = [None, TwilioException("invalid number"), None]
        transport = TwilioTransport(from_number="+15557654321", client=client)

        sent = transport.send_batch(["closure"], ["+15550000001", "+15550000002", "+15550000003"])

        assert sent == 2
        assert "SMS failed to" in caplog.text

    def test_nothing_to_send(self):
        client = MagicMock()
        transport = TwilioTransport(from_number="+15557654321", client=client)

        assert transport.send_batch(["closure"], []) == 0
        assert transport.send_batch([], ["+15550000001"]) == 0
        client.messages.create.assert_not_called()

    def test_unconfigured_transport_drops_batch(self):
        assert TwilioTransport().send_batch(["closure"], ["+15550000001"]) == 0

    def test_reply_is_twiml(self):
        xml = TwilioTransport().reply("You are all set")

        assert "<Response><Message>You are all set</Message></Response>" in xml


class TestTwitterBroadcaster:

    def test_posts_each_message(self):
        client = MagicMock()

        assert TwitterBroadcaster(client).post_batch(["one", "two"]) == 2
        client.create_tweet.assert_any_call(text="two")

    def test_errors_are_skipped(self):
        client = MagicMock()
        client.create_tweet.side_effect = [tweepy.TweepyException("rate limited"), MagicMock()]

        assert TwitterBroadcaster(client).post_batch(["one", "two"]) == 1

    def test_disabled_without_client(self):
        assert TwitterBroadcaster(None).post_batch(["one"]) == 0

    def test_no_credentials_means_no_client(self):
        assert setup_twitter_client(Config()) is None

    def test_partial_credentials_means_no_client(self, caplog):
        assert setup_twitter_client(Config(TWITTER_BEARER_TOKEN="token")) is None
        assert "TWITTER_CONSUMER_KEY" in caplog.text

    def test_truncate(self):
        assert truncate_tweet("short") == "short"
        long_text = "x" * 300
        assert len(truncate_tweet(long_text)) == TWEET_MAX_LENGTH
        assert truncate_tweet(long_text).endswith("...")


class TestAnalyticsStore:

    def test_record_and_read(self, tmp_path):
        store = AnalyticsStore(str(tmp_path / "analytics.db"))
        number_hash = hash_number("+15550000001")

        store.record(number_hash, "SIGNUP", {"message": "hi", "count": 3})
        store.record(hash_number("+15550000002"), "UNSUBSCRIBE")

        events = store.events(number_hash)
        assert len(events) == 1
        assert events[0]["action"] == "SIGNUP"
        assert events[0]["payload"] == {"message": "hi", "count": 3}
        assert len(store.events()) == 2

    def test_hash_is_md5_hex(self):
        digest = hash_number("+15550000001")

        assert len(digest) == 32
        assert "+15550000001" not in digest

    def test_errors_are_swallowed(self, tmp_path, caplog):
        store = AnalyticsStore(str(tmp_path / "analytics.db"))
        store.close()

        store.record(hash_number("+15550000001"), "SIGNUP", {"message": "hi"})

        assert "Error recording analytics event" in caplog.text
