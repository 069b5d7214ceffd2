"""Tests for the OneDrive API client."""

import json
from datetime import datetime, timezone
from unittest.mock import Mock
from urllib.parse import parse_qs

import httpx
import pytest

from onedrive_utils.auth import Token, TokenStore
from onedrive_utils.config import REDIRECT_URL, TOKEN_URL
from onedrive_utils.drive import (
    ERROR_STATUS_CODES,
    DecodeError,
    GraphAPIError,
    OneDriveClient,
    TransportError,
    is_error_status,
)

GRAPH = "https://graph.microsoft.com/v1.0"

DRIVE = {
    "@odata.context": f"{GRAPH}/$metadata#drives/$entity",
    "id": "b!abc123",
    "driveType": "personal",
    "name": "OneDrive",
    "webUrl": "https://onedrive.live.com/?cid=abc123",
    "createdDateTime": "2019-06-01T10:00:00Z",
    "lastModifiedDateTime": "2024-01-02T03:04:05Z",
    "owner": {"user": {"displayName": "Test User", "id": "abc123"}},
    "quota": {
        "deleted": 1024,
        "remaining": 5368709120,
        "state": "normal",
        "total": 5368710144,
        "used": 0,
        "storagePlanInformation": {"upgradeAvailable": True},
    },
}

RECENT = {
    "value": [
        {
            "id": "ITEM1",
            "name": "Report.docx",
            "size": 2048,
            "webUrl": "https://onedrive.live.com/redir?resid=ITEM1",
            "lastModifiedDateTime": "2024-01-01T00:00:00Z",
            "file": {"mimeType": "application/vnd.openxmlformats-officedocument"},
            "parentReference": {"driveId": "d1", "driveType": "personal", "id": "P1"},
        },
        {
            "id": "ITEM2",
            "name": "Shared",
            "remoteItem": {
                "id": "REMOTE2",
                "folder": {"childCount": 3},
                "parentReference": {"driveId": "d2"},
            },
        },
    ]
}


def error_body(code="TooManyRequests", message="Please retry later", request_id="abc",
               date="2024-01-01"):
    return {
        "error": {
            "code": code,
            "message": message,
            "innerError": {"request-id": request_id, "date": date},
        }
    }


def make_client(handler, token=None, **kwargs) -> OneDriveClient:
    token = token or Token(
        access_token="test-access-token",
        expiry=datetime(2099, 1, 1, tzinfo=timezone.utc),
    )
    return OneDriveClient(
        token, client_id="test-client", transport=httpx.MockTransport(handler), **kwargs
    )


def respond(status_code=200, content=None, json_body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if json_body is not None:
            return httpx.Response(status_code, json=json_body)
        return httpx.Response(status_code, content=content or b"")

    return handler


class TestErrorStatus:
    """Test the Graph error status set."""

    def test_documented_codes(self):
        """Should contain exactly the documented Graph error codes."""
        assert ERROR_STATUS_CODES == {
            400, 401, 403, 404, 405, 406, 409, 410, 411, 412, 413,
            415, 416, 422, 423, 429, 500, 501, 503, 504, 507, 509,
        }  # fmt: skip

    @pytest.mark.parametrize("code", [200, 201, 204, 402, 418, 502, 505])
    def test_non_error_codes(self, code):
        assert is_error_status(code) is False


class TestGet:
    """Test the generic authenticated GET."""

    def test_returns_raw_body(self):
        """Should return the body bytes unchanged."""
        client = make_client(respond(content=b'{"id": "me"}'))
        assert client.get(f"{GRAPH}/me") == b'{"id": "me"}'

    def test_attaches_bearer_token(self):
        """Should send the access token as a bearer token."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"{}")

        client = make_client(handler)
        client.get(f"{GRAPH}/me")
        assert seen[0].headers["Authorization"] == "Bearer test-access-token"

    def test_relative_path(self):
        """Should resolve paths against the Graph base URL."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, content=b"{}")

        make_client(handler).get("/me/drive/root")
        assert seen == [f"{GRAPH}/me/drive/root"]

    @pytest.mark.parametrize("code", sorted(ERROR_STATUS_CODES))
    def test_error_codes_raise(self, code):
        """Should raise GraphAPIError for every Graph error status."""
        client = make_client(respond(code, json_body=error_body(code="SomeError")))
        with pytest.raises(GraphAPIError) as exc_info:
            client.get(f"{GRAPH}/me/drive")
        assert exc_info.value.status_code == code
        assert exc_info.value.code == "SomeError"

    @pytest.mark.parametrize("code", [201, 202, 402, 502, 505])
    def test_other_codes_return_body(self, code):
        """Should return raw bytes for statuses outside the error set."""
        client = make_client(respond(code, content=b"raw body"))
        assert client.get(f"{GRAPH}/me/drive") == b"raw body"

    def test_too_many_requests_fields(self):
        """Should decode every field of a structured error body."""
        client = make_client(respond(429, json_body=error_body(message="...")))
        with pytest.raises(GraphAPIError) as exc_info:
            client.get(f"{GRAPH}/me/drive")

        error = exc_info.value
        assert error.status_code == 429
        assert error.code == "TooManyRequests"
        assert error.message == "..."
        assert error.request_id == "abc"
        assert error.date == "2024-01-01"
        assert "RequestId: abc" in str(error)

    def test_malformed_error_body(self):
        """Should raise DecodeError when the error body is not JSON."""
        client = make_client(respond(500, content=b"<html>oops</html>"))
        with pytest.raises(DecodeError) as exc_info:
            client.get(f"{GRAPH}/me/drive")
        assert exc_info.value.status_code == 500

    def test_error_body_without_error_object(self):
        """Should still raise GraphAPIError with empty fields."""
        client = make_client(respond(404, json_body={"unexpected": True}))
        with pytest.raises(GraphAPIError) as exc_info:
            client.get(f"{GRAPH}/me/drive")
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == ""
        assert exc_info.value.request_id == ""

    def test_connection_failure(self):
        """Should wrap connection errors in TransportError."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(TransportError, match="connection refused"):
            client.get(f"{GRAPH}/me")

    def test_read_failure(self):
        """Should wrap errors reading the response in TransportError."""

        def handler(request):
            raise httpx.ReadError("connection reset", request=request)

        client = make_client(handler)
        with pytest.raises(TransportError, match="connection reset"):
            client.get(f"{GRAPH}/me")

    def test_expired_token_without_refresh_token(self):
        """Should raise TransportError without sending the request."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"{}")

        expired = Token(access_token="expired", expiry=datetime(2000, 1, 1, tzinfo=timezone.utc))
        client = make_client(handler, token=expired)
        with pytest.raises(TransportError, match="Cannot authenticate request"):
            client.get(f"{GRAPH}/me")
        assert seen == []

    def test_inner_error_not_an_object(self):
        """Should decode the error even when innerError is not an object."""
        body = {"error": {"code": "BadRequest", "message": "m", "innerError": "oops"}}
        client = make_client(respond(400, json_body=body))
        with pytest.raises(GraphAPIError) as exc_info:
            client.get(f"{GRAPH}/me/drive")

        error = exc_info.value
        assert error.status_code == 400
        assert error.code == "BadRequest"
        assert error.message == "m"
        assert error.request_id == ""
        assert error.date == ""

    def test_get_json_malformed(self):
        """Should raise DecodeError for malformed JSON."""
        client = make_client(respond(content=b"{not json"))
        with pytest.raises(DecodeError):
            client.get_json(f"{GRAPH}/me")


class TestDriveOperations:
    """Test the typed drive operations."""

    def test_get_my_drive(self):
        """Should map the drive fixture to a Drive."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=DRIVE)

        drive = make_client(handler).get_my_drive()

        assert seen == [f"{GRAPH}/me/drive"]
        assert drive.id == "b!abc123"
        assert drive.drive_type == "personal"
        assert drive.quota.total == 5368710144
        assert drive.quota.used == 0
        assert drive.quota.remaining == 5368709120
        assert drive.quota.deleted == 1024
        assert drive.quota.state == "normal"
        assert drive.owner.display_name == "Test User"
        assert drive.created_date_time == datetime(2019, 6, 1, 10, tzinfo=timezone.utc)

    def test_get_my_drive_malformed(self):
        """Should raise DecodeError for a malformed fixture."""
        client = make_client(respond(content=b'{"id": "b!abc123", "driveType": '))
        with pytest.raises(DecodeError):
            client.get_my_drive()

    def test_get_my_drive_wrong_shape(self):
        """Should raise DecodeError when the body is not an object."""
        client = make_client(respond(json_body=["not", "a", "drive"]))
        with pytest.raises(DecodeError):
            client.get_my_drive()

    def test_missing_fields_default(self):
        """Should leave missing optional fields empty."""
        drive = make_client(respond(json_body={"id": "x"})).get_my_drive()
        assert drive.id == "x"
        assert drive.drive_type is None
        assert drive.quota is None
        assert drive.owner is None

    def test_list_my_drives(self):
        """Should map the value array to Drives."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"value": [DRIVE, {"id": "second"}]})

        drives = make_client(handler).list_my_drives()

        assert seen == [f"{GRAPH}/me/drives"]
        assert [d.id for d in drives] == ["b!abc123", "second"]

    def test_list_my_drives_empty(self):
        """Should return an empty list when value is missing."""
        assert make_client(respond(json_body={})).list_my_drives() == []

    def test_list_my_drives_bad_value(self):
        """Should raise DecodeError when value is not an array."""
        with pytest.raises(DecodeError):
            make_client(respond(json_body={"value": "nope"})).list_my_drives()

    def test_list_recent_files(self):
        """Should map recent items, including remote items."""
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json=RECENT)

        items = make_client(handler).list_recent_files()

        assert seen == [f"{GRAPH}/me/drive/recent"]
        report, shared = items
        assert report.name == "Report.docx"
        assert report.size == 2048
        assert report.extension == "docx"
        assert report.is_folder is False
        assert report.parent_reference.drive_id == "d1"
        assert shared.is_folder is True
        assert shared.child_count == 3
        assert shared.remote_item_id == "REMOTE2"

    def test_seven_digit_fractional_seconds(self):
        """Should parse Graph timestamps with seven fractional digits."""
        item = {"id": "ITEM3", "lastModifiedDateTime": "2024-01-01T00:00:00.1234567Z"}
        (parsed,) = make_client(respond(json_body={"value": [item]})).list_recent_files()
        assert parsed.last_modified_date_time == datetime(
            2024, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc
        )

    def test_operation_error_propagates(self):
        """Should raise GraphAPIError from typed operations."""
        client = make_client(respond(401, json_body=error_body(code="InvalidAuthenticationToken")))
        with pytest.raises(GraphAPIError, match="InvalidAuthenticationToken"):
            client.list_recent_files()


class TestFromTokenFile:
    """Test building a client from a token file."""

    def test_stored_token_no_interaction(self, token_file):
        """Should use the stored token without prompting."""
        prompt = Mock()
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=DRIVE)

        with OneDriveClient.from_token_file(
            token_file, prompt=prompt, transport=httpx.MockTransport(handler)
        ) as client:
            client.get_my_drive()

        prompt.assert_not_called()
        assert seen[0].headers["Authorization"] == "Bearer test-access-token"

    def test_missing_token_authorizes(self, tmp_path):
        """Should run the authorization flow, then use the new token."""

        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(
                    200,
                    json={"access_token": "fresh", "token_type": "Bearer", "expires_in": 3600},
                )
            return httpx.Response(200, json=DRIVE)

        def prompt(url):
            state = parse_qs(httpx.URL(url).query.decode())["state"][0]
            return str(httpx.URL(REDIRECT_URL, params={"code": "c", "state": state}))

        path = tmp_path / ".token.json"
        client = OneDriveClient.from_token_file(
            path, client_id="test-client", prompt=prompt, transport=httpx.MockTransport(handler)
        )

        assert client.token.access_token == "fresh"
        assert TokenStore(path).load().access_token == "fresh"
        assert client.get_my_drive().id == "b!abc123"

    def test_refreshed_token_is_saved(self, tmp_path):
        """Should save a token refreshed by the transport."""
        path = tmp_path / ".token.json"
        expired = Token(
            access_token="expired",
            refresh_token="refresh-me",
            expiry=datetime(2000, 1, 1, tzinfo=timezone.utc),
        )
        seen = []

        def handler(request):
            if str(request.url) == TOKEN_URL:
                return httpx.Response(
                    200,
                    json={
                        "access_token": "refreshed",
                        "token_type": "Bearer",
                        "refresh_token": "refresh-2",
                        "expires_in": 3600,
                    },
                )
            seen.append(request.headers["Authorization"])
            return httpx.Response(200, content=b"{}")

        client = make_client(handler, token=expired, store=TokenStore(path))
        client.get(f"{GRAPH}/me")

        assert seen == ["Bearer refreshed"]
        assert client.token.access_token == "refreshed"
        assert client.token.refresh_token == "refresh-2"
        assert json.loads(path.read_text())["access_token"] == "refreshed"
