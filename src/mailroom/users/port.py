"""User directory port — resolves a user id to the profile needed for email."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class UserLookupError(Exception):
    """The user service could not be reached or answered with an error."""


@dataclass(frozen=True)
class UserProfile:
    user_id: int
    email: str
    first_name: str


class UserDirectory(ABC):
    """Abstract interface for user profile lookups."""

    @abstractmethod
    def lookup_user(self, user_id: int) -> UserProfile | None:
        """Return the user's profile, or None when no such user exists.

        Raises:
            UserLookupError: when the directory itself is unavailable.
        """
        ...
