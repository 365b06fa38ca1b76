"""HTTP user directory — asks the user service for ``GET /api/users/{id}``."""

import httpx
import structlog
from mailroom.users.port import UserDirectory, UserLookupError, UserProfile

logger = structlog.get_logger(__name__)


class HttpUserDirectory(UserDirectory):
    """Looks users up through the user service REST API."""

    def __init__(self, base_url: str, timeout: float = 5.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def lookup_user(self, user_id: int) -> UserProfile | None:
        try:
            response = self._client.get(f"/api/users/{user_id}")
        except httpx.HTTPError as exc:
            raise UserLookupError(f"User service request failed: {exc}") from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            raise UserLookupError(f"User service answered {response.status_code} for user {user_id}")

        try:
            data = response.json()
            return UserProfile(
                user_id=int(data.get("id", user_id)),
                email=data["email"],
                first_name=data.get("firstName") or data.get("first_name") or "",
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise UserLookupError(f"Malformed user payload for user {user_id}") from exc

    def close(self):
        self._client.close()
