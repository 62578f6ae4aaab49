"""Shared test fixtures."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from user_directory.adapters.randomuser_client import RandomUserClient
from user_directory.config import Settings
from user_directory.containers import AppContainer
from user_directory.domain.errors import StorageError, UserNotFound
from user_directory.domain.users import Location, Picture, UserRecord
from user_directory.services.users import UserStore, UserSyncRepository


def make_user(
    user_id: str = "test-id",
    name: str = "Test",
    surname: str = "User",
    email: str | None = None,
    order: int = 0,
) -> UserRecord:
    """Build a user record with sensible defaults."""
    return UserRecord(
        id=user_id,
        name=name,
        surname=surname,
        full_name=f"{name} {surname}",
        email=email or f"{name.lower()}.{surname.lower()}@example.com",
        phone="123-456-7890",
        gender="female",
        location=Location(street="12 Test St", city="Test City", state="TS"),
        registered_date=datetime(2020, 1, 1, tzinfo=UTC),
        picture=Picture(
            large="https://example.com/large.jpg",
            medium="https://example.com/medium.jpg",
            thumbnail="https://example.com/thumbnail.jpg",
        ),
        order=order,
    )


def make_users(count: int, prefix: str = "id", start: int = 0) -> list[UserRecord]:
    """Build `count` users with ids `{prefix}-{n}` and matching orders."""
    return [
        make_user(user_id=f"{prefix}-{index}", name=f"User{index}", order=index)
        for index in range(start, start + count)
    ]


@dataclass
class FakeRandomUserClient(RandomUserClient):
    """Remote client double that replays scripted outcomes.

    Each call pops the next scripted outcome: a list of users is returned, an
    exception is raised. With nothing scripted, fresh users are generated.
    """

    outcomes: list[list[UserRecord] | Exception] = field(default_factory=list)
    requested_counts: list[int] = field(default_factory=list)
    generated: int = 0

    @property
    def calls(self) -> int:
        return len(self.requested_counts)

    async def fetch_users(self, count: int) -> list[UserRecord]:
        self.requested_counts.append(count)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return [user.with_order(0) for user in outcome]
        users = [
            make_user(user_id=f"remote-{self.generated + index}", name="Remote")
            for index in range(count)
        ]
        self.generated += count
        return users


@dataclass
class InMemoryUserStore(UserStore):
    """In-memory user store for tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)
    fetch_error: StorageError | None = None
    save_error: StorageError | None = None
    fetch_calls: int = 0
    save_calls: int = 0
    saved_batches: list[list[UserRecord]] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)
    row_cap: int | None = None

    async def upsert_if_absent(self, users: list[UserRecord]) -> None:
        self.save_calls += 1
        if self.save_error is not None:
            raise self.save_error
        self.saved_batches.append(list(users))
        for user in users:
            self.users.setdefault(user.id, user)

    async def fetch_all(self, order_by: str | None = None) -> list[UserRecord]:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        users = list(self.users.values())
        if order_by is not None:
            users.sort(key=lambda user: getattr(user, order_by))
        if self.row_cap is not None:
            users = users[: self.row_cap]
        return users

    async def max_order(self) -> int:
        if self.fetch_error is not None:
            raise self.fetch_error
        return max((user.order for user in self.users.values()), default=-1)

    async def delete_by_id(self, user_id: str) -> None:
        if user_id not in self.users:
            raise UserNotFound(user_id)
        del self.users[user_id]
        self.deleted_ids.append(user_id)


@dataclass
class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def _reset_app_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("user_directory")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
    )


@pytest.fixture
def remote_client() -> FakeRandomUserClient:
    return FakeRandomUserClient()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def repository(
    remote_client: FakeRandomUserClient,
    user_store: InMemoryUserStore,
    recorded_sleep: RecordingSleep,
) -> UserSyncRepository:
    return UserSyncRepository(
        client=remote_client, store=user_store, sleep=recorded_sleep
    )


@pytest.fixture
def container(settings: Settings, repository: UserSyncRepository) -> AppContainer:
    async def close_resources() -> None:
        await repository.aclose()

    return AppContainer(
        settings=settings,
        user_repository=repository,
        close_resources=close_resources,
    )
