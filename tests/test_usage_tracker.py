"""Tests for the cache-aware usage tracker."""

import json
import logging
from unittest.mock import Mock

import pytest

from oauth_usage_api import Usage
from usage_cache import UsageCache
from usage_errors import CacheError, CredentialsNotFoundError, NoMatchError
from usage_tracker import ClaudeUsageTracker

USAGE = {
    "five_hour": {"utilization": 42.0, "resets_at": "2026-01-10T15:00:00Z"},
    "seven_day": {"utilization": 17.0, "resets_at": "2026-01-15T09:00:00Z"},
}


@pytest.fixture
def credentials_path(tmp_path):
    path = tmp_path / ".credentials.json"
    path.write_text(json.dumps({"claudeAiOauth": {
        "accessToken": "sk-ant-oat01-test",
        "subscriptionType": "pro",
    }}))
    return path


@pytest.fixture
def client():
    client = Mock()
    client.get_usage.return_value = Usage(raw=USAGE)
    return client


@pytest.fixture
def factory(client):
    return Mock(return_value=client)


def make_tracker(tmp_path, credentials_path, factory, cache_ttl=30):
    return ClaudeUsageTracker(
        cache_ttl=cache_ttl,
        cache=UsageCache(cache_dir=tmp_path / "cache"),
        credentials_path=credentials_path,
        client_factory=factory,
    )


class TestClaudeUsageTracker:

    def test_fetches_with_access_token(self, tmp_path, credentials_path, factory):
        tracker = make_tracker(tmp_path, credentials_path, factory)

        usage = tracker.get_usage()

        assert usage.raw == USAGE
        factory.assert_called_once_with("sk-ant-oat01-test")

    def test_second_call_served_from_cache(self, tmp_path, credentials_path, factory, client):
        tracker = make_tracker(tmp_path, credentials_path, factory)

        tracker.get_usage()
        usage = tracker.get_usage()

        assert usage.raw == USAGE
        assert client.get_usage.call_count == 1

    def test_cache_disabled(self, tmp_path, credentials_path, factory, client):
        tracker = make_tracker(tmp_path, credentials_path, factory, cache_ttl=0)

        tracker.get_usage()
        tracker.get_usage()

        assert client.get_usage.call_count == 2
        assert not tracker.cache.file.exists()

    def test_undecodable_cache_falls_back_to_api(self, tmp_path, credentials_path, factory, client):
        tracker = make_tracker(tmp_path, credentials_path, factory)
        tracker.cache.dir.mkdir(parents=True)
        tracker.cache.file.write_bytes(b'{"timestamp": "\xff\xfe"}')

        usage = tracker.get_usage()

        assert usage.raw == USAGE
        assert client.get_usage.call_count == 1
        assert tracker.cache.read(60).raw == USAGE

    def test_cache_write_failure_is_not_fatal(self, credentials_path, factory, caplog):
        cache = Mock()
        cache.read.side_effect = CacheError("read", "/nowhere", "missing")
        cache.write.side_effect = CacheError("write", "/nowhere", "read-only")
        tracker = ClaudeUsageTracker(cache_ttl=30, cache=cache,
                                     credentials_path=credentials_path, client_factory=factory)

        with caplog.at_level(logging.WARNING):
            usage = tracker.get_usage()

        assert usage.raw == USAGE
        assert "Failed to write cache" in caplog.text

    def test_missing_credentials(self, tmp_path, factory):
        tracker = make_tracker(tmp_path, tmp_path / "missing.json", factory)

        with pytest.raises(CredentialsNotFoundError):
            tracker.get_usage()

        factory.assert_not_called()

    def test_expired_token_warns(self, tmp_path, factory, caplog):
        path = tmp_path / ".credentials.json"
        path.write_text(json.dumps({"claudeAiOauth": {
            "accessToken": "old",
            "expiresAt": 1000,
        }}))
        tracker = make_tracker(tmp_path, path, factory, cache_ttl=0)

        with caplog.at_level(logging.WARNING):
            tracker.get_usage()

        assert "expired" in caplog.text
        factory.assert_called_once_with("old")

    def test_query(self, tmp_path, credentials_path, factory):
        tracker = make_tracker(tmp_path, credentials_path, factory)

        entry = tracker.query("5h")

        assert entry.path == "five_hour_utilization"
        assert entry.value == 42.0

    def test_query_no_match(self, tmp_path, credentials_path, factory):
        tracker = make_tracker(tmp_path, credentials_path, factory)

        with pytest.raises(NoMatchError):
            tracker.query("zzz")
