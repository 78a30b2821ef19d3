"""
Claude Code OAuth credentials.

Claude Code stores its OAuth tokens in ~/.claude/.credentials.json:

    {
        "claudeAiOauth": {
            "accessToken": "sk-ant-oat01-...",
            "refreshToken": "sk-ant-ort01-...",
            "expiresAt": 1767225600000,
            "scopes": ["user:inference", "user:profile"],
            "subscriptionType": "max",
            "rateLimitTier": "default_claude_max_5x"
        }
    }
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from usage_errors import AuthError, CredentialsNotFoundError

# Module-level logger
logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    """OAuth credentials written by Claude Code."""
    access_token: str
    refresh_token: str = ""
    expires_at: Optional[datetime] = None
    subscription_type: str = ""
    rate_limit_tier: str = ""
    scopes: List[str] = field(default_factory=list)

    @property
    def is_expired(self) -> bool:
        """True if the access token's expiry time has passed."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


def default_credentials_path() -> Path:
    """Path to the credentials file Claude Code writes."""
    return Path.home() / ".claude" / ".credentials.json"


def load_credentials(path: Optional[Path] = None) -> Credentials:
    """
    Load OAuth credentials from Claude Code.

    Args:
        path: Credentials file, defaults to ~/.claude/.credentials.json

    Returns:
        Credentials with a non-empty access token

    Raises:
        CredentialsNotFoundError: File doesn't exist
        AuthError: File can't be read or holds no access token
    """
    path = Path(path) if path else default_credentials_path()

    if not path.exists():
        raise CredentialsNotFoundError(
            "file",
            f"Claude Code credentials not found at {path} - "
            "please authenticate with Claude Code first",
        )

    try:
        with open(path, 'r', encoding='utf-8') as f:
            creds = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise AuthError("file", f"failed to parse credentials: {e}") from e
    except OSError as e:
        raise AuthError("file", f"failed to read credentials: {e}") from e

    oauth = creds.get("claudeAiOauth") if isinstance(creds, dict) else None
    oauth = oauth if isinstance(oauth, dict) else {}

    token = oauth.get("accessToken")
    if not token:
        raise AuthError("file", "no OAuth access token found in credentials file")

    expires_at = None
    expires_ms = oauth.get("expiresAt")
    if isinstance(expires_ms, (int, float)):
        expires_at = datetime.fromtimestamp(expires_ms / 1000, tz=timezone.utc)

    logger.debug(f"Loaded OAuth token (starts with {token[:14]}...)")

    return Credentials(
        access_token=token,
        refresh_token=oauth.get("refreshToken") or "",
        expires_at=expires_at,
        subscription_type=oauth.get("subscriptionType") or "",
        rate_limit_tier=oauth.get("rateLimitTier") or "",
        scopes=list(oauth.get("scopes") or []),
    )
