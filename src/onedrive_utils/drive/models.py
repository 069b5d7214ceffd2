"""Microsoft Graph drive resources.

Only the fields this library reports are mapped; unknown fields are ignored
and missing ones default to None.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from onedrive_utils.dates import parse_datetime


def _parse_datetime(value: Any) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    with contextlib.suppress(ValueError):
        return parse_datetime(value)
    return None


def _parse_int(value: Any) -> int | None:
    if value is None:
        return None
    with contextlib.suppress(TypeError, ValueError):
        return int(value)
    return None


@dataclass
class Identity:
    """A user or application identity."""

    id: str | None = None
    display_name: str | None = None

    @classmethod
    def from_identity_set(cls, data: dict | None) -> Identity | None:
        """Pick the user (or application) from a Graph identitySet."""
        if not data:
            return None
        identity = data.get("user") or data.get("application") or {}
        return cls(id=identity.get("id"), display_name=identity.get("displayName"))


@dataclass
class Quota:
    """Storage quota of a drive, in bytes."""

    total: int | None = None
    used: int | None = None
    remaining: int | None = None
    deleted: int | None = None
    state: str | None = None  # "normal", "nearing", "critical" or "exceeded"

    @classmethod
    def from_dict(cls, data: dict) -> Quota:
        return cls(
            total=_parse_int(data.get("total")),
            used=_parse_int(data.get("used")),
            remaining=_parse_int(data.get("remaining")),
            deleted=_parse_int(data.get("deleted")),
            state=data.get("state"),
        )


@dataclass
class Drive:
    """A top-level OneDrive or SharePoint document library."""

    id: str
    drive_type: str | None = None  # "personal", "business" or "documentLibrary"
    name: str | None = None
    description: str | None = None
    web_url: str | None = None
    created_date_time: datetime | None = None
    last_modified_date_time: datetime | None = None
    owner: Identity | None = None
    quota: Quota | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Drive:
        """Parse drive from API response."""
        quota = data.get("quota")
        return cls(
            id=data.get("id", ""),
            drive_type=data.get("driveType"),
            name=data.get("name"),
            description=data.get("description"),
            web_url=data.get("webUrl"),
            created_date_time=_parse_datetime(data.get("createdDateTime")),
            last_modified_date_time=_parse_datetime(data.get("lastModifiedDateTime")),
            owner=Identity.from_identity_set(data.get("owner")),
            quota=Quota.from_dict(quota) if isinstance(quota, dict) else None,
        )


@dataclass
class ItemReference:
    """Location of an item: its drive and parent."""

    drive_id: str | None = None
    drive_type: str | None = None
    id: str | None = None
    path: str | None = None


@dataclass
class DriveItem:
    """A file or folder in a drive."""

    id: str
    name: str | None = None
    size: int | None = None
    web_url: str | None = None
    created_date_time: datetime | None = None
    last_modified_date_time: datetime | None = None
    mime_type: str | None = None
    is_folder: bool = False
    child_count: int | None = None
    parent_reference: ItemReference | None = None
    remote_item_id: str | None = None

    @property
    def extension(self) -> str | None:
        """Get file extension from name."""
        if self.name and "." in self.name:
            return self.name.rsplit(".", 1)[-1].lower()
        return None

    @classmethod
    def from_dict(cls, data: dict) -> DriveItem:
        """Parse drive item from API response."""
        folder = data.get("folder")
        file = data.get("file") or {}
        parent = data.get("parentReference")
        remote = data.get("remoteItem") or {}

        # Recent items live in another drive; their facets sit under remoteItem.
        if folder is None and remote:
            folder = remote.get("folder")
        if not file and remote:
            file = remote.get("file") or {}

        return cls(
            id=data.get("id", ""),
            name=data.get("name"),
            size=_parse_int(data.get("size")),
            web_url=data.get("webUrl"),
            created_date_time=_parse_datetime(data.get("createdDateTime")),
            last_modified_date_time=_parse_datetime(data.get("lastModifiedDateTime")),
            mime_type=file.get("mimeType"),
            is_folder=folder is not None,
            child_count=_parse_int(folder.get("childCount")) if folder else None,
            parent_reference=(
                ItemReference(
                    drive_id=parent.get("driveId"),
                    drive_type=parent.get("driveType"),
                    id=parent.get("id"),
                    path=parent.get("path"),
                )
                if isinstance(parent, dict)
                else None
            ),
            remote_item_id=remote.get("id"),
        )
