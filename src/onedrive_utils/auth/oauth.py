"""Microsoft identity platform OAuth using Authlib.

This module implements the authorization-code grant for a native (public)
client:

1. Build an authorization URL carrying a random CSRF ``state``.
2. The user signs in with a browser and pastes back the URL the browser was
   redirected to.
3. The ``state`` in that URL is checked, and the ``code`` is exchanged for a
   token which is then saved through a :class:`TokenStore`.

The prompt that hands the URL to the user and reads the redirect back is
injectable, so the flow can be driven without a console.
"""

from __future__ import annotations

import base64
import logging
import secrets
from collections.abc import Callable
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import OAuth2Client

from onedrive_utils.auth.exceptions import (
    AuthorizationError,
    StateMismatchError,
    TokenExchangeError,
    TokenNotFoundError,
    TokenStoreError,
)
from onedrive_utils.auth.token_store import Token, TokenStore
from onedrive_utils.config import AUTHORIZE_URL, REDIRECT_URL, SCOPES, TOKEN_URL, get_client_id

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]


class FlowState(Enum):
    """Stages of the authorization flow."""

    NO_TOKEN = "no_token"
    AWAITING_USER_REDIRECT = "awaiting_user_redirect"
    EXCHANGING_CODE = "exchanging_code"
    TOKEN_OBTAINED = "token_obtained"
    FAILED = "failed"


def generate_state(nbytes: int = 32) -> str:
    """Return ``nbytes`` random bytes encoded as URL-safe base64."""
    return base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).decode("ascii")


def parse_redirect_url(redirect_url: str) -> tuple[str | None, str | None]:
    """Extract ``code`` and ``state`` from the redirect URL.

    Args:
        redirect_url: The full URL the browser was redirected to.

    Returns:
        Tuple of (code, state); either may be None if absent.

    Raises:
        AuthorizationError: If the identity provider reported an error.
    """
    query = parse_qs(urlparse(redirect_url.strip()).query)

    if "error" in query:
        error = query["error"][0]
        description = query.get("error_description", [""])[0]
        raise AuthorizationError(f"Authorization failed: {error} {description}".strip())

    code = query.get("code", [None])[0]
    state = query.get("state", [None])[0]
    return code, state


def console_prompt(authorization_url: str) -> str:
    """Show the authorization URL on stdout and read the redirect URL from stdin."""
    print("Visit the following URL in a browser to authenticate this application")
    print("After authentication, copy the response URL from the browser")
    print(authorization_url)
    print()
    return input("Enter the response URL: ").strip()


class AuthorizationFlow:
    """Interactive OAuth 2.0 authorization-code flow.

    A flow object is single-use: it generates one ``state``, accepts one
    redirect, and ends in either ``TOKEN_OBTAINED`` or ``FAILED``.

    Example:
        >>> flow = AuthorizationFlow(TokenStore(".token.json"))
        >>> url = flow.start()
        >>> print(f"Visit: {url}")
        >>> token = flow.complete(input("Paste redirect URL: "))
    """

    def __init__(
        self,
        store: TokenStore,
        client_id: str | None = None,
        scopes: list[str] | None = None,
        redirect_uri: str = REDIRECT_URL,
        **client_kwargs: Any,
    ):
        """Initialize the flow.

        Args:
            store: Where the obtained token is saved.
            client_id: OAuth client ID. Defaults to ONEDRIVE_CLIENT_ID or the built-in ID.
            scopes: Requested scopes. Defaults to Files.Read.All and offline_access.
            redirect_uri: Redirect URL registered for the application.
            **client_kwargs: Extra keyword arguments for the underlying
                httpx client (e.g. ``transport`` or ``timeout``).
        """
        self.store = store
        self.client_id = client_id or get_client_id()
        self.scopes = scopes or list(SCOPES)
        self.redirect_uri = redirect_uri
        self._client_kwargs = client_kwargs

        self.status = FlowState.NO_TOKEN
        self.authorization_url: str | None = None
        self._state: str | None = None

    def _oauth_client(self) -> OAuth2Client:
        return OAuth2Client(
            client_id=self.client_id,
            scope=" ".join(self.scopes),
            redirect_uri=self.redirect_uri,
            token_endpoint_auth_method="none",
            **self._client_kwargs,
        )

    def _transition(self, status: FlowState) -> None:
        logger.debug(f"Authorization flow: {self.status.value} -> {status.value}")
        self.status = status

    def _fail(self) -> None:
        self._state = None
        self._transition(FlowState.FAILED)

    def start(self) -> str:
        """Generate a new state and build the authorization URL.

        Returns:
            URL for the user to visit.

        Raises:
            AuthorizationError: If this flow was already started.
        """
        if self.status is not FlowState.NO_TOKEN:
            raise AuthorizationError(f"Authorization flow already {self.status.value}")

        self._state = generate_state()
        with self._oauth_client() as client:
            url, _ = client.create_authorization_url(
                AUTHORIZE_URL,
                state=self._state,
                access_type="offline",
            )

        self.authorization_url = url
        self._transition(FlowState.AWAITING_USER_REDIRECT)
        return url

    def complete(self, redirect_url: str) -> Token:
        """Validate the redirect, exchange the code and save the token.

        Args:
            redirect_url: The full URL the browser was redirected to.

        Returns:
            The obtained token.

        Raises:
            StateMismatchError: If the returned state differs from the generated one.
            TokenExchangeError: If the token endpoint rejects the code.
            TokenStoreError: If the token cannot be saved.
            AuthorizationError: For any other failure of the flow.
        """
        if self.status is not FlowState.AWAITING_USER_REDIRECT:
            raise AuthorizationError("No authorization awaiting a redirect; call start() first")

        try:
            code, state = parse_redirect_url(redirect_url)
            if state != self._state:
                raise StateMismatchError(self._state, state)
            if not code:
                raise AuthorizationError("Redirect URL has no authorization code")
        except AuthorizationError:
            self._fail()
            raise

        self._transition(FlowState.EXCHANGING_CODE)
        try:
            with self._oauth_client() as client:
                token = Token.from_oauth(client.fetch_token(TOKEN_URL, code=code))
        except (AuthlibBaseError, httpx.HTTPError, KeyError, ValueError) as e:
            self._fail()
            raise TokenExchangeError(f"Token exchange failed: {e}") from e

        try:
            self.store.save(token)
        except TokenStoreError:
            self._fail()
            raise

        self._state = None
        self._transition(FlowState.TOKEN_OBTAINED)
        logger.info("Authorization complete")
        return token

    def run(self, prompt: Prompt | None = None) -> Token:
        """Run the whole flow.

        Args:
            prompt: Called with the authorization URL; must return the
                redirect URL. Defaults to :func:`console_prompt`.

        Returns:
            The obtained token.
        """
        url = self.start()
        redirect_url = (prompt or console_prompt)(url)
        return self.complete(redirect_url)


def authorize(
    store: TokenStore,
    client_id: str | None = None,
    prompt: Prompt | None = None,
    **client_kwargs: Any,
) -> Token:
    """Return the stored token, running the authorization flow only if there is none.

    Raises:
        TokenDecodeError: If a token file exists but cannot be parsed.
        AuthorizationError: If the interactive flow fails.
    """
    try:
        return store.load()
    except TokenNotFoundError:
        logger.info("No stored token, starting authorization flow")

    flow = AuthorizationFlow(store, client_id=client_id, **client_kwargs)
    return flow.run(prompt)
