#!/usr/bin/env python3
"""
Usage tracker combining the TTL cache with the OAuth usage API.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from claude_credentials import load_credentials
from fuzzy_match import FlatEntry, flatten_data, find_best_match
from oauth_usage_api import OAuthUsageAPI, Usage
from usage_cache import UsageCache
from usage_errors import CacheError, CacheExpiredError

# Module-level logger
logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 30  # seconds


class ClaudeUsageTracker:
    """
    Fetches Claude usage, serving recent responses from the cache.

    Combines:
    - Cached usage when younger than cache_ttl seconds
    - OAuth usage API otherwise (credentials from Claude Code)
    """

    def __init__(self, cache_ttl: int = DEFAULT_CACHE_TTL,
                 cache: Optional[UsageCache] = None,
                 credentials_path: Optional[Path] = None,
                 client_factory: Callable[[str], OAuthUsageAPI] = OAuthUsageAPI):
        self.cache_ttl = cache_ttl
        self.cache = cache or UsageCache()
        self.credentials_path = credentials_path
        self.client_factory = client_factory

    def get_usage(self) -> Usage:
        """Current usage, from the cache when fresh enough."""
        if self.cache_ttl > 0:
            try:
                usage = self.cache.read(self.cache_ttl)
                logger.info("Using cached data")
                return usage
            except (CacheError, CacheExpiredError) as e:
                logger.debug(f"Cache miss: {e}")

        usage = self.fetch_usage()

        if self.cache_ttl > 0:
            try:
                self.cache.write(usage)
            except CacheError as e:
                logger.warning(f"Failed to write cache: {e}")

        return usage

    def fetch_usage(self) -> Usage:
        """Fetch fresh usage from the API, bypassing the cache."""
        creds = load_credentials(self.credentials_path)
        logger.info(f"Using Claude Code credentials (subscription: {creds.subscription_type or 'unknown'})")
        if creds.is_expired:
            logger.warning("Access token may be expired - run Claude Code to refresh it")

        client = self.client_factory(creds.access_token)
        return client.get_usage()

    def query(self, query: str) -> FlatEntry:
        """Fuzzy match a field of the current usage."""
        usage = self.get_usage()
        return find_best_match(flatten_data(usage.as_mapping()), query)


def main():
    """Print the current usage."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    tracker = ClaudeUsageTracker()
    print(tracker.get_usage().to_json())


if __name__ == "__main__":
    main()
