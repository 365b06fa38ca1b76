"""Tests for the HTTP user directory against a mocked user service."""

import httpx
import pytest
from mailroom.users import UserLookupError, UserProfile
from mailroom.users.http_directory import HttpUserDirectory

BASE_URL = "http://users.test"


def _directory(handler):
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpUserDirectory(BASE_URL, client=client)


class TestHttpUserDirectory:
    def test_found(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"id": 42, "email": "ann@example.com", "firstName": "Ann"})

        profile = _directory(handler).lookup_user(42)

        assert profile == UserProfile(user_id=42, email="ann@example.com", first_name="Ann")
        assert seen == ["/api/users/42"]

    def test_not_found(self):
        directory = _directory(lambda request: httpx.Response(404))
        assert directory.lookup_user(42) is None

    def test_server_error(self):
        directory = _directory(lambda request: httpx.Response(500))
        with pytest.raises(UserLookupError):
            directory.lookup_user(42)

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UserLookupError):
            _directory(handler).lookup_user(42)

    def test_malformed_payload(self):
        directory = _directory(lambda request: httpx.Response(200, json={"id": 42}))
        with pytest.raises(UserLookupError):
            directory.lookup_user(42)

    def test_missing_first_name_defaults_to_empty(self):
        directory = _directory(lambda request: httpx.Response(200, json={"email": "ann@example.com"}))

        profile = directory.lookup_user(42)

        assert profile.user_id == 42
        assert profile.first_name == ""
