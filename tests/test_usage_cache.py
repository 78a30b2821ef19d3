"""Tests for the usage TTL cache."""

import json
import stat
import sys
from datetime import datetime, timedelta, timezone

import pytest

from oauth_usage_api import Usage
from usage_cache import DIR_MODE, FILE_MODE, UsageCache
from usage_errors import CacheError, CacheExpiredError


@pytest.fixture
def cache(tmp_path):
    return UsageCache(cache_dir=tmp_path / "cache")


def write_raw(cache, payload):
    cache.dir.mkdir(parents=True, exist_ok=True)
    cache.file.write_text(json.dumps(payload))


class TestUsageCache:
    """Tests for reading and writing cached usage."""

    def test_round_trip(self, cache):
        usage = Usage(raw={"five_hour": {"utilization": 42.0}})

        cache.write(usage)

        assert cache.read(60).raw == usage.raw

    def test_file_layout(self, cache):
        cache.write(Usage(raw={"a": 1}))

        saved = json.loads(cache.file.read_text())
        assert saved["usage"] == {"a": 1}
        assert datetime.fromisoformat(saved["timestamp"]).tzinfo is not None

    def test_default_filename(self, cache):
        assert cache.file.name == "usage.json"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_permissions(self, cache):
        cache.write(Usage(raw={}))

        assert stat.S_IMODE(cache.file.stat().st_mode) == FILE_MODE
        assert stat.S_IMODE(cache.dir.stat().st_mode) == DIR_MODE

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_rewrite_restores_permissions(self, cache):
        cache.write(Usage(raw={}))
        cache.file.chmod(0o644)

        cache.write(Usage(raw={"b": 2}))

        assert stat.S_IMODE(cache.file.stat().st_mode) == FILE_MODE

    def test_ttl_zero_always_expired(self, cache):
        cache.write(Usage(raw={"a": 1}))

        with pytest.raises(CacheExpiredError):
            cache.read(0)

    def test_expired(self, cache):
        old = datetime.now(timezone.utc) - timedelta(seconds=120)
        write_raw(cache, {"timestamp": old.isoformat(), "usage": {"a": 1}})

        with pytest.raises(CacheExpiredError) as exc_info:
            cache.read(60)

        assert exc_info.value.age_seconds >= 120

    def test_fresh_enough(self, cache):
        recent = datetime.now(timezone.utc) - timedelta(seconds=5)
        write_raw(cache, {"timestamp": recent.isoformat(), "usage": {"a": 1}})

        assert cache.read(60).raw == {"a": 1}

    def test_missing_file(self, cache):
        with pytest.raises(CacheError) as exc_info:
            cache.read(60)

        assert exc_info.value.operation == "read"

    def test_invalid_json(self, cache):
        cache.dir.mkdir(parents=True)
        cache.file.write_text("{not json")

        with pytest.raises(CacheError) as exc_info:
            cache.read(60)

        assert exc_info.value.operation == "parse"

    def test_invalid_utf8(self, cache):
        cache.dir.mkdir(parents=True)
        cache.file.write_bytes(b'{"timestamp": "\xff\xfe"}')

        with pytest.raises(CacheError) as exc_info:
            cache.read(60)

        assert exc_info.value.operation == "parse"

    def test_bad_timestamp(self, cache):
        write_raw(cache, {"timestamp": "yesterday", "usage": {}})

        with pytest.raises(CacheError):
            cache.read(60)

    def test_missing_timestamp(self, cache):
        write_raw(cache, {"usage": {}})

        with pytest.raises(CacheError):
            cache.read(60)

    def test_write_into_unwritable_location(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        cache = UsageCache(cache_dir=blocker / "cache")

        with pytest.raises(CacheError) as exc_info:
            cache.write(Usage(raw={}))

        assert exc_info.value.operation == "mkdir"
