"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from surfapp.adapters.api_client import ApiClient, ClientSession
from surfapp.adapters.session_store import InMemoryKeyValueStore, SessionStore
from surfapp.config import Settings
from surfapp.domain.errors import InvalidCredentialsError
from surfapp.domain.models import (
    AuthResult,
    LogEntry,
    Media,
    MediaType,
    RegisterRequest,
    Role,
    SessionStatus,
    SurfSession,
    User,
)

CREATED_AT = datetime(2025, 1, 15, 10, 30, tzinfo=UTC)


def make_user(
    user_id: str = "user-1",
    email: str = "ana@example.com",
    role: Role = Role.SURFER,
) -> User:
    return User(
        id=user_id,
        email=email,
        name="Ana",
        role=role,
        created_at=CREATED_AT,
    )


def make_session(session_id: str = "session-1") -> SurfSession:
    return SurfSession(
        id=session_id,
        booking_id="booking-1",
        surfer_id="user-1",
        photographer_id="user-2",
        photographer_name="Pablo",
        spot="Punta de Lobos",
        date=date(2025, 6, 1),
        time="08:00",
        duration_hours=2,
        status=SessionStatus.COMPLETED,
        media_count=1,
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


def make_media(session_id: str = "session-1") -> Media:
    return Media(
        id="media-1",
        session_id=session_id,
        type=MediaType.PHOTO,
        url="https://cdn.test/1.jpg",
        filename="1.jpg",
        size_bytes=2048,
        uploaded_at=CREATED_AT,
    )


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    """Queue-driven stand-in for a postgrest query builder."""

    name: str
    response_queue: dict[str, list[object]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    selects: list[str] = field(default_factory=list)
    payloads: list[object] = field(default_factory=list)
    filters: list[tuple[str, str, object]] = field(default_factory=list)
    orders: list[tuple[str, bool]] = field(default_factory=list)

    def queue(self, action: str, data: object) -> None:
        """Queue rows, or an exception to raise, for the next ``action``."""
        self.response_queue[action].append(data)

    def select(self, columns: str = "*", *_args, **_kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "select"
        self.selects.append(columns)
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.payloads.append(payload)
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.payloads.append(payload)
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("in", column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.filters.append(("lte", column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.orders.append((column, desc))
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        if isinstance(data, Exception):
            raise data
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


@dataclass
class FakeApiClient(ApiClient):
    """In-memory API client recording auth calls."""

    users: dict[str, tuple[str, User]] = field(default_factory=dict)
    session: ClientSession = field(default_factory=ClientSession)
    logout_error: Exception | None = None
    refresh_error: Exception | None = None
    logs_error: Exception | None = None
    media_error: Exception | None = None
    logout_calls: int = 0

    def set_token(self, token: str | None) -> None:
        self.session.token = token

    def get_token(self) -> str | None:
        return self.session.token

    def set_credentials(self, token: str, user: User) -> None:
        self.session.set(token, user)

    def clear_credentials(self) -> None:
        self.session.clear()

    async def login(self, email: str, password: str) -> AuthResult:
        entry = self.users.get(email.lower())
        if entry is None or entry[0] != password:
            raise InvalidCredentialsError()
        result = AuthResult(token=f"token-{entry[1].id}", user=entry[1])
        self.session.set(result.token, result.user)
        return result

    async def register(self, request: RegisterRequest) -> AuthResult:
        request.validate()
        user = make_user(
            user_id=f"user-{len(self.users) + 1}",
            email=request.email.lower(),
            role=request.role,
        )
        self.users[user.email] = (request.password, user)
        result = AuthResult(token=f"token-{user.id}", user=user)
        self.session.set(result.token, result.user)
        return result

    async def get_current_user(self) -> User:
        return self.session.require_user()

    async def refresh_current_user(self) -> User:
        if self.refresh_error is not None:
            raise self.refresh_error
        return self.session.require_user()

    async def logout(self) -> None:
        self.logout_calls += 1
        self.session.clear()
        if self.logout_error is not None:
            raise self.logout_error

    async def get_session(self, session_id: str) -> SurfSession:
        return make_session(session_id)

    async def get_session_media(self, session_id: str) -> list[Media]:
        if self.media_error is not None:
            raise self.media_error
        return [make_media(session_id)]

    async def get_session_logs(self, session_id: str) -> list[LogEntry]:
        if self.logs_error is not None:
            raise self.logs_error
        return [
            LogEntry(
                id="log-1",
                session_id=session_id,
                user_id="user-2",
                user_name="Pablo",
                action="upload",
                description="Uploaded 1 photo",
                timestamp=CREATED_AT,
            )
        ]


class BrokenKeyValueStore(InMemoryKeyValueStore):
    """Store whose writes fail."""

    def set_many(self, items: dict[str, str]) -> None:
        raise OSError("disk full")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_backend="http",
        api_url="https://api.test/api",
        api_timeout_ms=5000,
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        session_store_path="/tmp/surfapp-test/session.json",
    )


@pytest.fixture
def key_value_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_store(key_value_store: InMemoryKeyValueStore) -> SessionStore:
    return SessionStore(key_value_store)


@pytest.fixture
def fake_api_client() -> FakeApiClient:
    client = FakeApiClient()
    user = make_user()
    client.users[user.email] = ("secret-pass", user)
    return client


@pytest.fixture
def supabase_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()
