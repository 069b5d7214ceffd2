"""Shared fixtures."""

import json
from datetime import datetime, timezone

import pytest

from onedrive_utils.auth import Token

FAR_FUTURE = datetime(2099, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def token():
    """A token that will not expire during the tests."""
    return Token(
        access_token="test-access-token",
        token_type="Bearer",
        refresh_token="test-refresh-token",
        expiry=FAR_FUTURE,
    )


@pytest.fixture
def token_file(tmp_path, token):
    """A token file in the on-disk format."""
    path = tmp_path / ".token.json"
    with open(path, "w") as f:
        json.dump(
            {
                "access_token": token.access_token,
                "token_type": token.token_type,
                "refresh_token": token.refresh_token,
                "expiry": "2099-01-01T00:00:00Z",
            },
            f,
        )
    return path
