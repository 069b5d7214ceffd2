"""OneDrive authentication exceptions."""


class OneDriveAuthError(Exception):
    """Base exception for OneDrive authentication errors."""

    pass


class TokenStoreError(OneDriveAuthError):
    """Raised when the token file cannot be read or written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Token file {path}: {reason}")


class TokenNotFoundError(TokenStoreError):
    """Raised when no token file exists at the given path."""

    def __init__(self, path: str):
        super().__init__(path, "not found. Run 'onedrive-utils login' to authorize.")


class TokenDecodeError(TokenStoreError):
    """Raised when the token file does not hold a valid JSON token."""

    pass


class AuthorizationError(OneDriveAuthError):
    """Raised when the OAuth authorization flow fails."""

    pass


class StateMismatchError(AuthorizationError):
    """Raised when the redirect state does not match the generated state."""

    def __init__(self, expected: str, received: str | None):
        self.expected = expected
        self.received = received
        super().__init__("State mismatch, potential Cross-Site Request Forgery (CSRF)")


class TokenExchangeError(AuthorizationError):
    """Raised when the authorization code cannot be exchanged for a token."""

    pass
