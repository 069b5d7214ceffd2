"""OAuth token persistence.

Tokens are stored as a single JSON object:

    {
      "access_token": "...",
      "token_type": "Bearer",
      "refresh_token": "...",
      "expiry": "2024-01-01T12:00:00+00:00"
    }

A token file that exists and parses is used as-is; expiry is not checked here.
"""

from __future__ import annotations

import contextlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from onedrive_utils.auth.exceptions import (
    TokenDecodeError,
    TokenNotFoundError,
    TokenStoreError,
)
from onedrive_utils.dates import parse_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    """An OAuth2 bearer token."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expiry: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Token:
        """Build a token from its stored JSON form."""
        expiry = data.get("expiry")
        if expiry and isinstance(expiry, str):
            expiry = parse_datetime(expiry)
            # A zero timestamp (0001-01-01) marks a token that never expires.
            if expiry.year == 1:
                expiry = None
        else:
            expiry = None

        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored JSON form of this token."""
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }

    @classmethod
    def from_oauth(cls, token: dict[str, Any]) -> Token:
        """Convert an Authlib token dict (``expires_at`` epoch seconds)."""
        expiry = None
        if token.get("expires_at"):
            expiry = datetime.fromtimestamp(float(token["expires_at"]), tz=timezone.utc)
        elif token.get("expires_in"):
            expiry = datetime.now(timezone.utc) + timedelta(seconds=int(token["expires_in"]))

        return cls(
            access_token=token["access_token"],
            token_type=token.get("token_type") or "Bearer",
            refresh_token=token.get("refresh_token") or None,
            expiry=expiry,
        )

    def to_oauth(self) -> dict[str, Any]:
        """Convert to the token dict Authlib clients expect."""
        token: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
        }
        if self.refresh_token:
            token["refresh_token"] = self.refresh_token
        if self.expiry:
            token["expires_at"] = self.expiry.timestamp()
        return token


def load_token(path: str | Path) -> Token:
    """Read a JSON encoded token from a file.

    Args:
        path: Token file path.

    Returns:
        The stored token.

    Raises:
        TokenNotFoundError: If the file does not exist or cannot be opened.
        TokenDecodeError: If the contents are not a valid token.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        logger.info(f"No token available at {path}: {e}")
        raise TokenNotFoundError(str(path)) from e
    except json.JSONDecodeError as e:
        raise TokenDecodeError(str(path), f"invalid JSON: {e}") from e

    if not isinstance(data, dict) or not data.get("access_token"):
        raise TokenDecodeError(str(path), "missing access_token")

    try:
        token = Token.from_dict(data)
    except (TypeError, ValueError) as e:
        raise TokenDecodeError(str(path), str(e)) from e

    logger.info(f"Loaded token from {path}")
    return token


def save_token(path: str | Path, token: Token) -> None:
    """Write a JSON encoded token to a file, replacing any existing one.

    Raises:
        TokenStoreError: If the file cannot be created or written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(token.to_dict(), f, indent=2)
    except OSError as e:
        raise TokenStoreError(str(path), f"cannot write: {e}") from e

    # Best effort; not supported on every platform.
    with contextlib.suppress(OSError):
        path.chmod(0o600)

    logger.info(f"Token saved to {path}")


class TokenStore:
    """Token file bound to a single path.

    Example:
        >>> store = TokenStore(".token.json")
        >>> if store.exists():
        ...     token = store.load()
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Token:
        """Load the stored token (see :func:`load_token`)."""
        return load_token(self.path)

    def save(self, token: Token) -> None:
        """Save a token (see :func:`save_token`)."""
        save_token(self.path, token)

    def update_oauth_token(self, token: dict[str, Any], refresh_token=None, access_token=None):
        """Persist a token refreshed by the OAuth transport (Authlib callback)."""
        self.save(Token.from_oauth(token))

    def delete(self) -> bool:
        """Remove the token file.

        Returns:
            True if a file was removed.
        """
        if not self.path.exists():
            return False
        self.path.unlink()
        logger.info(f"Token removed from {self.path}")
        return True
