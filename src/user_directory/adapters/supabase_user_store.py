"""Supabase-backed user store."""

from dataclasses import dataclass
from datetime import datetime

from postgrest.exceptions import APIError
from supabase import Client

from user_directory.domain.errors import (
    StorageDecodingError,
    StorageEncodingError,
    UnknownStorageError,
    UserNotFound,
)
from user_directory.domain.users import Location, Picture, UserRecord
from user_directory.services.users import UserStore

PAGE_SIZE = 1000

_ORDER_COLUMNS = {
    "order": "sort_order",
    "full_name": "full_name",
    "registered_date": "registered_date",
}


@dataclass
class SupabaseUserStore(UserStore):
    """Supabase implementation of user persistence."""

    client: Client
    table_name: str = "users"
    page_size: int = PAGE_SIZE

    async def upsert_if_absent(self, users: list[UserRecord]) -> None:
        """Insert new users; rows whose id already exists are left untouched."""
        if not users:
            return
        rows = [_to_row(user) for user in users]
        try:
            self.client.table(self.table_name).upsert(
                rows, on_conflict="id", ignore_duplicates=True
            ).execute()
        except APIError as exc:
            raise UnknownStorageError(str(exc)) from exc

    async def fetch_all(self, order_by: str | None = None) -> list[UserRecord]:
        """Return every stored user, optionally ordered.

        Rows are read in `page_size` windows until an empty page comes back.
        Without an explicit ordering, pages are ordered by id.
        """
        if order_by is None:
            column = "id"
        else:
            column = _ORDER_COLUMNS.get(order_by)
            if column is None:
                raise ValueError(f"Cannot order users by {order_by!r}")
        rows: list[dict[str, object]] = []
        start = 0
        while True:
            try:
                response = (
                    self.client.table(self.table_name)
                    .select("*")
                    .order(column)
                    .range(start, start + self.page_size - 1)
                    .execute()
                )
            except APIError as exc:
                raise UnknownStorageError(str(exc)) from exc
            page = response.data or []
            if not page:
                break
            rows.extend(page)
            start += len(page)
        return [_parse_user(row) for row in rows]

    async def max_order(self) -> int:
        """Return the highest stored `sort_order`, or -1 for an empty table."""
        try:
            response = (
                self.client.table(self.table_name)
                .select("sort_order")
                .order("sort_order", desc=True)
                .limit(1)
                .execute()
            )
        except APIError as exc:
            raise UnknownStorageError(str(exc)) from exc
        if not response.data:
            return -1
        try:
            return int(response.data[0]["sort_order"])
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageDecodingError(f"Cannot decode stored order: {exc}") from exc

    async def delete_by_id(self, user_id: str) -> None:
        """Delete a user by id, raising `UserNotFound` if absent."""
        try:
            existing = (
                self.client.table(self.table_name)
                .select("id")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            if not existing.data:
                raise UserNotFound(user_id)
            self.client.table(self.table_name).delete().eq("id", user_id).execute()
        except APIError as exc:
            raise UnknownStorageError(str(exc)) from exc


def _to_row(user: UserRecord) -> dict[str, object]:
    """Encode a domain user as a table row."""
    try:
        registered = user.registered_date.isoformat()
    except (AttributeError, ValueError) as exc:
        raise StorageEncodingError(f"Cannot encode user {user.id}") from exc
    return {
        "id": user.id,
        "name": user.name,
        "surname": user.surname,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "gender": user.gender,
        "street": user.location.street,
        "city": user.location.city,
        "state": user.location.state,
        "registered_date": registered,
        "large_image_url": user.picture.large,
        "medium_image_url": user.picture.medium,
        "thumbnail_image_url": user.picture.thumbnail,
        "sort_order": user.order,
    }


def _text(row: dict[str, object], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def _parse_user(row: dict[str, object]) -> UserRecord:
    """Parse a users row into a domain model."""
    try:
        return UserRecord(
            id=str(row["id"]),
            name=_text(row, "name"),
            surname=_text(row, "surname"),
            full_name=_text(row, "full_name"),
            email=_text(row, "email"),
            phone=_text(row, "phone"),
            gender=_text(row, "gender"),
            location=Location(
                street=_text(row, "street"),
                city=_text(row, "city"),
                state=_text(row, "state"),
            ),
            registered_date=datetime.fromisoformat(str(row["registered_date"])),
            picture=Picture.create_safe(
                large=_text(row, "large_image_url"),
                medium=_text(row, "medium_image_url"),
                thumbnail=_text(row, "thumbnail_image_url"),
            ),
            order=int(row.get("sort_order") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise StorageDecodingError(f"Cannot decode stored user row: {exc}") from exc
