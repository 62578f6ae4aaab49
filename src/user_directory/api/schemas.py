"""Pydantic response models for the users API."""

from datetime import datetime

from pydantic import BaseModel

from user_directory.domain.users import UserRecord


class LocationPayload(BaseModel):
    """Location payload."""

    street: str
    city: str
    state: str


class PicturePayload(BaseModel):
    """Picture URL payload."""

    large: str
    medium: str
    thumbnail: str


class UserPayload(BaseModel):
    """A single user as returned to clients."""

    id: str
    name: str
    surname: str
    full_name: str
    email: str
    phone: str
    gender: str
    location: LocationPayload
    registered_date: datetime
    picture: PicturePayload
    order: int

    @classmethod
    def from_domain(cls, user: UserRecord) -> "UserPayload":
        """Build the payload from a domain record."""
        return cls(
            id=user.id,
            name=user.name,
            surname=user.surname,
            full_name=user.full_name,
            email=user.email,
            phone=user.phone,
            gender=user.gender,
            location=LocationPayload(
                street=user.location.street,
                city=user.location.city,
                state=user.location.state,
            ),
            registered_date=user.registered_date,
            picture=PicturePayload(
                large=user.picture.large,
                medium=user.picture.medium,
                thumbnail=user.picture.thumbnail,
            ),
            order=user.order,
        )


class UserListPayload(BaseModel):
    """A list of users with its size."""

    users: list[UserPayload]
    count: int

    @classmethod
    def from_domain(cls, users: list[UserRecord]) -> "UserListPayload":
        """Build the list payload from domain records."""
        return cls(
            users=[UserPayload.from_domain(user) for user in users],
            count=len(users),
        )


class ShouldLoadMorePayload(BaseModel):
    """Pagination hint payload."""

    should_load_more: bool


class ErrorPayload(BaseModel):
    """Error body shown to clients."""

    error: str
    message: str
    network_error: bool
    dismissible: bool
    users: list[UserPayload] | None = None
