"""Microsoft Graph OneDrive client with OAuth authentication.

Usage:
    from onedrive_utils.drive import OneDriveClient

    # Loads .token.json, or asks you to sign in on first use
    client = OneDriveClient.from_token_file(".token.json")

    drive = client.get_my_drive()
    print(drive.drive_type, drive.quota.used)

    for item in client.list_recent_files():
        print(item.name)

OAuth Setup:
    Authorize once with: onedrive-utils login
"""

from __future__ import annotations

from onedrive_utils.drive.client import OneDriveClient
from onedrive_utils.drive.exceptions import (
    ERROR_STATUS_CODES,
    DecodeError,
    GraphAPIError,
    OneDriveError,
    TransportError,
    is_error_status,
)
from onedrive_utils.drive.models import Drive, DriveItem, Identity, ItemReference, Quota

__all__ = [
    "OneDriveClient",
    "Drive",
    "DriveItem",
    "Identity",
    "ItemReference",
    "Quota",
    "OneDriveError",
    "TransportError",
    "DecodeError",
    "GraphAPIError",
    "ERROR_STATUS_CODES",
    "is_error_status",
]
