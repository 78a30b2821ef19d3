"""
TTL cache for usage responses.

Status line scripts call claude-limits several times per refresh; caching
the last response for a few seconds keeps that to one API request.

Cache file (private, contains API data):
    <user cache dir>/claudelimits/usage.json
    {"timestamp": "2026-01-10T14:03:11+00:00", "usage": {...raw response...}}
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import platformdirs

from oauth_usage_api import Usage
from usage_errors import CacheError, CacheExpiredError

# Module-level logger
logger = logging.getLogger(__name__)

APP_NAME = "claudelimits"

DIR_MODE = 0o700   # rwx------
FILE_MODE = 0o600  # rw-------


class UsageCache:
    """Stores the last usage response with the time it was fetched."""

    CACHE_FILENAME = "usage.json"

    def __init__(self, cache_dir: Optional[Path] = None, filename: Optional[str] = None):
        self.dir = Path(cache_dir) if cache_dir else Path(platformdirs.user_cache_dir(APP_NAME))
        self.file = self.dir / (filename or self.CACHE_FILENAME)

    def read(self, ttl_seconds: int) -> Usage:
        """
        Read cached usage if it is younger than ttl_seconds.

        Raises:
            CacheError: Missing, unreadable or corrupt cache file
            CacheExpiredError: Cache is too old (always, for a TTL of 0)
        """
        try:
            with open(self.file, 'r', encoding='utf-8') as f:
                cached = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CacheError("parse", str(self.file), str(e)) from e
        except OSError as e:
            raise CacheError("read", str(self.file), str(e)) from e

        if not isinstance(cached, dict) or "timestamp" not in cached:
            raise CacheError("parse", str(self.file), "missing timestamp")

        try:
            timestamp = datetime.fromisoformat(cached["timestamp"])
        except (TypeError, ValueError) as e:
            raise CacheError("parse", str(self.file), f"bad timestamp: {e}") from e
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        age = (datetime.now(timezone.utc) - timestamp).total_seconds()
        if age >= ttl_seconds:
            raise CacheExpiredError(age)

        logger.debug(f"Cache hit ({age:.1f}s old): {self.file}")
        return Usage(raw=cached.get("usage"))

    def write(self, usage: Usage) -> None:
        """
        Save usage with the current timestamp.

        Raises:
            CacheError: Directory or file couldn't be written
        """
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "usage": usage.raw,
        }

        try:
            data = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise CacheError("marshal", str(self.file), str(e)) from e

        try:
            self.dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError("mkdir", str(self.dir), str(e)) from e

        try:
            fd = os.open(self.file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, 'w') as f:
                f.write(data)
            os.chmod(self.file, FILE_MODE)
        except OSError as e:
            raise CacheError("write", str(self.file), str(e)) from e

        logger.debug(f"Wrote usage cache: {self.file}")
