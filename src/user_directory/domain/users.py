"""Domain models for user profiles."""

from dataclasses import dataclass, replace
from datetime import datetime
from urllib.parse import urlsplit

FALLBACK_PICTURE_URL = "https://placeholder.com/user"


def safe_url(raw: str | None) -> str:
    """Return the URL if it is an absolute http(s) URL, else the placeholder."""
    if not raw:
        return FALLBACK_PICTURE_URL
    try:
        parts = urlsplit(raw.strip())
    except ValueError:
        return FALLBACK_PICTURE_URL
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        return FALLBACK_PICTURE_URL
    return raw.strip()


@dataclass(frozen=True)
class Location:
    """Postal location of a user."""

    street: str
    city: str
    state: str


@dataclass(frozen=True)
class Picture:
    """Profile picture URLs in three sizes."""

    large: str
    medium: str
    thumbnail: str

    @classmethod
    def create_safe(cls, large: str, medium: str, thumbnail: str) -> "Picture":
        """Build a picture, substituting the placeholder for unusable URLs."""
        return cls(
            large=safe_url(large),
            medium=safe_url(medium),
            thumbnail=safe_url(thumbnail),
        )


@dataclass(frozen=True)
class UserRecord:
    """A user profile as fetched from the remote source or the store."""

    id: str
    name: str
    surname: str
    full_name: str
    email: str
    phone: str
    gender: str
    location: Location
    registered_date: datetime
    picture: Picture
    order: int = 0

    def with_order(self, order: int) -> "UserRecord":
        """Return a copy of the record carrying the given fetch order."""
        return replace(self, order=order)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on full name or email."""
        needle = query.lower()
        return needle in self.full_name.lower() or needle in self.email.lower()
