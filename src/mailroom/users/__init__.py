"""User directory factory.

Provides get_user_directory() / set_user_directory() to swap implementations:
- HttpUserDirectory against the user service (default)
- FakeUserDirectory for development and testing
"""

from mailroom.config import get_settings
from mailroom.users.port import UserDirectory, UserLookupError, UserProfile

__all__ = [
    "UserDirectory",
    "UserLookupError",
    "UserProfile",
    "get_user_directory",
    "reset_user_directory",
    "set_user_directory",
]

_current_directory: UserDirectory | None = None


def get_user_directory() -> UserDirectory:
    """Return the active user directory. Defaults to the HTTP user service."""
    global _current_directory
    if _current_directory is None:
        from mailroom.users.http_directory import HttpUserDirectory

        settings = get_settings()
        _current_directory = HttpUserDirectory(settings.user_service_url, timeout=settings.user_service_timeout)
    return _current_directory


def set_user_directory(directory: UserDirectory) -> None:
    """Override the active user directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_user_directory() -> None:
    global _current_directory
    _current_directory = None
