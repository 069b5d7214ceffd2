"""OneDrive access via Microsoft Graph with OAuth authentication."""

from onedrive_utils.auth import Token, TokenStore, authorize
from onedrive_utils.drive import Drive, DriveItem, GraphAPIError, OneDriveClient

__version__ = "0.1.0"

__all__ = [
    "OneDriveClient",
    "Drive",
    "DriveItem",
    "GraphAPIError",
    "Token",
    "TokenStore",
    "authorize",
]
