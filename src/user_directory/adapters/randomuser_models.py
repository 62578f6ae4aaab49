"""Pydantic models for randomuser.me payloads."""

from datetime import datetime

from pydantic import BaseModel

from user_directory.domain.users import Location, Picture, UserRecord


class RandomUserName(BaseModel):
    """Name payload."""

    title: str | None = None
    first: str
    last: str


class RandomUserStreet(BaseModel):
    """Street payload."""

    number: int | str
    name: str


class RandomUserLocation(BaseModel):
    """Location payload."""

    street: RandomUserStreet
    city: str
    state: str


class RandomUserLogin(BaseModel):
    """Login payload; only the stable uuid is used."""

    uuid: str


class RandomUserRegistered(BaseModel):
    """Registration payload."""

    date: datetime


class RandomUserPicture(BaseModel):
    """Picture URL payload."""

    large: str
    medium: str
    thumbnail: str


class RandomUserPayload(BaseModel):
    """A single user in the results array."""

    gender: str
    name: RandomUserName
    location: RandomUserLocation
    email: str
    login: RandomUserLogin
    registered: RandomUserRegistered
    phone: str
    picture: RandomUserPicture

    def to_domain(self, order: int = 0) -> UserRecord:
        """Convert the payload into a domain record."""
        return UserRecord(
            id=self.login.uuid,
            name=self.name.first,
            surname=self.name.last,
            full_name=f"{self.name.first} {self.name.last}",
            email=self.email,
            phone=self.phone,
            gender=self.gender,
            location=Location(
                street=f"{self.location.street.number} {self.location.street.name}",
                city=self.location.city,
                state=self.location.state,
            ),
            registered_date=self.registered.date,
            picture=Picture.create_safe(
                large=self.picture.large,
                medium=self.picture.medium,
                thumbnail=self.picture.thumbnail,
            ),
            order=order,
        )


class RandomUserResponse(BaseModel):
    """Top-level randomuser.me response."""

    results: list[RandomUserPayload]
