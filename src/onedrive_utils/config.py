"""Centralized configuration.

Endpoints for the Microsoft identity platform and Microsoft Graph, plus the
defaults used when a caller does not pass them explicitly:

    ONEDRIVE_CLIENT_ID   - OAuth application (client) ID
    ONEDRIVE_TOKEN_FILE  - Path of the JSON token file (default: .token.json)

This module auto-loads a .env file from the current directory on import.
Variables already present in the environment take precedence.
"""

import os
from pathlib import Path

# Microsoft identity platform (v2.0 endpoints, multi-tenant)
MS_BASE_URL = "https://login.microsoftonline.com/common/oauth2/v2.0"
AUTHORIZE_URL = MS_BASE_URL + "/authorize"
TOKEN_URL = MS_BASE_URL + "/token"
REDIRECT_URL = "https://login.microsoftonline.com/common/oauth2/nativeclient"

# Microsoft Graph
GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

SCOPES = ["Files.Read.All", "offline_access"]

DEFAULT_CLIENT_ID = "c32f556d-11cc-45ce-9b73-37f701abf48c"
DEFAULT_TOKEN_FILE = ".token.json"

ENV_FILE = Path.cwd() / ".env"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def get_client_id() -> str:
    """Return the OAuth client ID from the environment or the built-in default."""
    return os.environ.get("ONEDRIVE_CLIENT_ID") or DEFAULT_CLIENT_ID


def get_token_path() -> Path:
    """Return the token file path from the environment or the default."""
    return Path(os.environ.get("ONEDRIVE_TOKEN_FILE") or DEFAULT_TOKEN_FILE)


_loaded = _load_env_file(ENV_FILE)
