"""In-memory user directory — for tests and local runs."""

from mailroom.users.port import UserDirectory, UserLookupError, UserProfile


class FakeUserDirectory(UserDirectory):
    """Directory backed by a dict; can be switched into an outage for tests."""

    def __init__(self):
        self.users: dict[int, UserProfile] = {}
        self.lookups: list[int] = []
        self.unavailable = False

    def add(self, user_id: int, email: str, first_name: str) -> UserProfile:
        profile = UserProfile(user_id=user_id, email=email, first_name=first_name)
        self.users[user_id] = profile
        return profile

    def lookup_user(self, user_id: int) -> UserProfile | None:
        self.lookups.append(user_id)
        if self.unavailable:
            raise UserLookupError("User directory unavailable")
        return self.users.get(user_id)

    def reset(self):
        self.users.clear()
        self.lookups.clear()
        self.unavailable = False
