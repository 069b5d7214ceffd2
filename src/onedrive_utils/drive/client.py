"""OneDrive API client implementation.

Requests go to Microsoft Graph through Authlib's httpx OAuth2 client, which
attaches the bearer token to every request.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import OAuth2Client

from onedrive_utils.auth import Token, TokenStore, authorize
from onedrive_utils.auth.oauth import Prompt
from onedrive_utils.config import GRAPH_BASE_URL, TOKEN_URL, get_client_id, get_token_path
from onedrive_utils.drive.exceptions import (
    DecodeError,
    GraphAPIError,
    TransportError,
    is_error_status,
)
from onedrive_utils.drive.models import Drive, DriveItem

logger = logging.getLogger(__name__)


class OneDriveClient:
    """Microsoft Graph OneDrive client with OAuth authentication.

    Usage:
        client = OneDriveClient.from_token_file(".token.json")

        # Default drive of the signed-in user
        drive = client.get_my_drive()

        # All drives available to the user
        drives = client.list_my_drives()

        # Recently used files
        items = client.list_recent_files()

        # Any Graph resource, as raw bytes
        body = client.get("https://graph.microsoft.com/v1.0/me")

    Note:
        The first call to ``from_token_file`` without a stored token runs the
        interactive authorization flow.
    """

    MY_DRIVE_URL = GRAPH_BASE_URL + "/me/drive"
    MY_DRIVES_URL = GRAPH_BASE_URL + "/me/drives"
    RECENT_FILES_URL = GRAPH_BASE_URL + "/me/drive/recent"

    def __init__(
        self,
        token: Token,
        client_id: str | None = None,
        store: TokenStore | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Initialize the client.

        Args:
            token: Token to authenticate requests with.
            client_id: OAuth client ID, used if the transport refreshes the token.
            store: If given, tokens refreshed by the transport are saved here.
            **client_kwargs: Extra keyword arguments for the underlying httpx client.
        """
        self.client_id = client_id or get_client_id()
        client_kwargs.setdefault("timeout", 30.0)

        self._client = OAuth2Client(
            client_id=self.client_id,
            token=token.to_oauth(),
            token_endpoint=TOKEN_URL,
            token_endpoint_auth_method="none",
            update_token=store.update_oauth_token if store else None,
            **client_kwargs,
        )

    @property
    def token(self) -> Token:
        """Current token, including any refresh done by the transport."""
        return Token.from_oauth(self._client.token)

    @classmethod
    def from_token_file(
        cls,
        path: str | Path | None = None,
        client_id: str | None = None,
        prompt: Prompt | None = None,
        **client_kwargs: Any,
    ) -> OneDriveClient:
        """Create a client from a token file, authorizing first if it is missing.

        Args:
            path: Token file path. Defaults to ONEDRIVE_TOKEN_FILE or .token.json.
            client_id: OAuth client ID.
            prompt: Receives the authorization URL and returns the redirect URL.
                Only called when no token is stored.
            **client_kwargs: Extra keyword arguments for the underlying httpx clients.

        Returns:
            An authenticated client.
        """
        store = TokenStore(path or get_token_path())
        token = authorize(store, client_id=client_id, prompt=prompt, **client_kwargs)
        return cls(token, client_id=client_id, store=store, **client_kwargs)

    # =========================================================================
    # Requests
    # =========================================================================

    def get(self, url: str) -> bytes:
        """Issue an authenticated GET and return the raw response body.

        Args:
            url: Absolute URL, or a path relative to the Graph v1.0 base (e.g. "/me").

        Returns:
            Response body for any status that is not a Graph error status.

        Raises:
            GraphAPIError: If the status is a Graph error status.
            TransportError: If the request fails or the body cannot be read.
            DecodeError: If an error response body is not valid JSON.
        """
        if url.startswith("/"):
            url = GRAPH_BASE_URL + url

        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e}") from e
        except AuthlibBaseError as e:
            raise TransportError(f"Cannot authenticate request: {e}") from e

        logger.debug(f"GET {url} -> {response.status_code}")
        body = response.content

        if is_error_status(response.status_code):
            error = GraphAPIError.from_response(response.status_code, body)
            logger.warning(f"Graph API error for GET {url}: {error}")
            raise error

        return body

    def get_json(self, url: str) -> Any:
        """GET a resource and decode its JSON body.

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        body = self.get(url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {url}: {e}") from e

    def _get_object(self, url: str) -> dict[str, Any]:
        data = self.get_json(url)
        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object from {url}, got {type(data).__name__}")
        return data

    def _get_collection(self, url: str) -> list[dict[str, Any]]:
        values = self._get_object(url).get("value", [])
        if not isinstance(values, list):
            raise DecodeError(f"Expected a 'value' array from {url}")
        return values

    # =========================================================================
    # Drives
    # =========================================================================

    def get_my_drive(self) -> Drive:
        """Get the default drive of the signed-in user."""
        data = self._get_object(self.MY_DRIVE_URL)
        try:
            return Drive.from_dict(data)
        except (AttributeError, TypeError) as e:
            raise DecodeError(f"Unexpected drive shape: {e}") from e

    def list_my_drives(self) -> list[Drive]:
        """List the drives available to the signed-in user."""
        values = self._get_collection(self.MY_DRIVES_URL)
        try:
            return [Drive.from_dict(item) for item in values]
        except (AttributeError, TypeError) as e:
            raise DecodeError(f"Unexpected drive shape: {e}") from e

    # =========================================================================
    # Files
    # =========================================================================

    def list_recent_files(self) -> list[DriveItem]:
        """List files the signed-in user recently used."""
        values = self._get_collection(self.RECENT_FILES_URL)
        try:
            return [DriveItem.from_dict(item) for item in values]
        except (AttributeError, TypeError) as e:
            raise DecodeError(f"Unexpected drive item shape: {e}") from e

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
