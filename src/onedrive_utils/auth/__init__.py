"""OneDrive OAuth authentication utilities."""

from onedrive_utils.auth.exceptions import (
    AuthorizationError,
    OneDriveAuthError,
    StateMismatchError,
    TokenDecodeError,
    TokenExchangeError,
    TokenNotFoundError,
    TokenStoreError,
)
from onedrive_utils.auth.oauth import AuthorizationFlow, FlowState, authorize
from onedrive_utils.auth.token_store import Token, TokenStore, load_token, save_token

__all__ = [
    "AuthorizationFlow",
    "FlowState",
    "authorize",
    "Token",
    "TokenStore",
    "load_token",
    "save_token",
    "OneDriveAuthError",
    "TokenStoreError",
    "TokenNotFoundError",
    "TokenDecodeError",
    "AuthorizationError",
    "StateMismatchError",
    "TokenExchangeError",
]
