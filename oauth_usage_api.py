#!/usr/bin/env python3
"""
Usage data client for Claude's OAuth API.

Uses the OAuth token Claude Code already stores, so no cookies or manual
authentication are needed. The response is kept as raw JSON; its shape
varies by plan and changes over time, so nothing here models it.

Transient failures (network errors, 429, 5xx) are retried with exponential
backoff. Other errors fail on the first attempt.
"""

import json
import logging
import os
import platform
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from usage_errors import APIError, RequestError, ResponseParseError
from version import __version__

# Module-level logger
logger = logging.getLogger(__name__)


@dataclass
class Usage:
    """Raw usage document returned by the API."""
    raw: Any = None

    @classmethod
    def from_json(cls, text: str) -> "Usage":
        """Parse a JSON body into a Usage."""
        try:
            return cls(raw=json.loads(text))
        except ValueError as e:
            raise ResponseParseError(f"failed to parse response: {e}") from e

    def to_json(self) -> str:
        """Indented JSON with sorted keys."""
        if self.raw is None:
            return "{}"
        return json.dumps(self.raw, indent=2, sort_keys=True)

    def as_mapping(self) -> Dict[str, Any]:
        """The top-level JSON object."""
        if not isinstance(self.raw, dict):
            raise ResponseParseError("failed to parse usage data: expected a JSON object")
        return self.raw


def is_retriable_status(status_code: int) -> bool:
    """Rate limiting and server errors are worth retrying."""
    return status_code == 429 or status_code >= 500


def _is_retriable_error(error: BaseException) -> bool:
    return isinstance(error, RequestError) and error.retriable


def user_agent() -> str:
    """User-Agent in the same format Claude Code sends."""
    return (f"claude-code/{__version__} ({sys.platform}; {platform.machine()}) "
            f"Python/{platform.python_version()}")


class OAuthUsageAPI:
    """
    Fetch Claude usage data from the OAuth usage endpoint.

    The base URL can be overridden with CLAUDE_API_BASE_URL, or with the
    base_url argument (which wins over the environment).
    """

    DEFAULT_BASE_URL = "https://api.anthropic.com"
    USAGE_PATH = "/api/oauth/usage"
    BASE_URL_ENV = "CLAUDE_API_BASE_URL"
    BETA_HEADER = "oauth-2025-04-20"

    # Request timeout in seconds
    TIMEOUT = 30

    # Retry policy: 0.5s, 1s, 2s between attempts, never more than 5s
    MAX_RETRIES = 3
    INITIAL_BACKOFF = 0.5
    MAX_BACKOFF = 5.0

    def __init__(self, access_token: str, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.access_token = access_token
        self.base_url = (base_url or os.environ.get(self.BASE_URL_ENV)
                         or self.DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.sleep = sleep

    @property
    def usage_url(self) -> str:
        return f"{self.base_url}{self.USAGE_PATH}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": user_agent(),
            "Authorization": f"Bearer {self.access_token}",
            "anthropic-beta": self.BETA_HEADER,
        }

    def get_usage(self) -> Usage:
        """
        Fetch current usage, retrying transient failures.

        Returns:
            Usage wrapping the raw response body

        Raises:
            APIError: Non-200 response
            RequestError: Network failure, or retries exhausted
            ResponseParseError: Body isn't JSON
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.MAX_RETRIES + 1),
            wait=wait_exponential(multiplier=self.INITIAL_BACKOFF, max=self.MAX_BACKOFF),
            retry=retry_if_exception(_is_retriable_error),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=self.sleep,
            reraise=True,
        )

        try:
            return retrying(self._do_request)
        except RequestError as e:
            if e.retriable:
                raise RequestError(
                    f"request failed after {self.MAX_RETRIES} retries: {e}"
                ) from e
            raise

    def _do_request(self) -> Usage:
        """Single request; raised RequestErrors say whether to retry."""
        logger.debug(f"Making OAuth API request to {self.usage_url}")

        try:
            response = self.session.get(
                self.usage_url,
                headers=self._headers(),
                timeout=self.TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            # Network errors are retriable
            raise RequestError(f"failed to make request: {e}", retriable=True) from e

        logger.debug(f"API response status: {response.status_code}")

        if response.status_code != requests.codes.ok:
            raise APIError(
                response.status_code,
                self._error_message(response),
                retriable=is_retriable_status(response.status_code),
            )

        usage = Usage.from_json(response.text)
        logger.debug(f"Successfully fetched usage data: {usage.to_json()}")
        return usage

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Prefer the API's {"error": "..."} body over the reason phrase."""
        message = response.reason or f"HTTP {response.status_code}"
        if response.text:
            try:
                body = json.loads(response.text)
            except ValueError:
                return message
            if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
                return body["error"]
        return message


def main():
    """Fetch and print the raw usage response."""
    from claude_credentials import load_credentials

    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    creds = load_credentials()
    usage = OAuthUsageAPI(creds.access_token).get_usage()
    print(usage.to_json())


if __name__ == "__main__":
    main()
