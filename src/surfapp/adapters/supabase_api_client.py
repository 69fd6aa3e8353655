"""API client that queries the Supabase project directly."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field

from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client

from surfapp.adapters.api_client import ApiClient, ClientSession
from surfapp.domain.errors import (
    ApiError,
    DatabaseError,
    DuplicateEmailError,
    FeatureNotImplementedError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    NotFoundError,
)
from surfapp.domain.models import (
    AuthResult,
    Booking,
    BookingStatus,
    CreateBookingRequest,
    LogEntry,
    Media,
    Photographer,
    PhotographerFilters,
    PresignedUpload,
    RegisterRequest,
    Role,
    StorageUsage,
    SurfSession,
    User,
    ensure_booking_transition,
    ensure_surfer,
)
from surfapp.domain.payloads import (
    parse_booking,
    parse_log_entry,
    parse_media,
    parse_photographer,
    parse_session,
    parse_user,
)
from surfapp.services.passwords import hash_password, verify_password

_logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, name, role, avatar, phone, created_at"
_PHOTOGRAPHER_SELECT = (
    "*, users!photographers_user_id_fkey(id, email, name, avatar, phone)"
)
_BOOKING_SELECT = "*, photographer:users!bookings_photographer_id_fkey(name, avatar)"
_SESSION_SELECT = (
    "*, photographer:users!sessions_photographer_id_fkey(name, avatar), media(count)"
)
_LOG_SELECT = "*, user:users!logs_user_id_fkey(name)"
_UNIQUE_VIOLATION = "23505"

FREE_PLAN_NAME = "Free Plan"
FREE_PLAN_BYTES = 5 * 1024 * 1024 * 1024


@dataclass
class SupabaseApiClient(ApiClient):
    """Supabase implementation of the API client contract.

    There is no server in between, so joins happen through embedded
    relations in a single query and field mapping happens here.
    """

    client: Client
    session: ClientSession = field(default_factory=ClientSession)
    token_factory: Callable[[], str] = field(default_factory=lambda: _new_token)

    def set_token(self, token: str | None) -> None:
        self.session.token = token

    def get_token(self) -> str | None:
        return self.session.token

    def set_credentials(self, token: str, user: User) -> None:
        self.session.set(token, user)

    def clear_credentials(self) -> None:
        self.session.clear()

    async def login(self, email: str, password: str) -> AuthResult:
        """Look the user up by email and verify the stored Argon2 hash."""
        rows = self._execute(
            self.client.table("users")
            .select(f"{_USER_COLUMNS}, password_hash")
            .eq("email", email.strip().lower())
            .limit(1)
        )
        if not rows:
            _logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()
        row = rows[0]
        if not verify_password(password, row.get("password_hash")):
            _logger.info("Login failed: password mismatch for user=%s", row.get("id"))
            raise InvalidCredentialsError()
        return self._start_session(parse_user(row))

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Insert a new user row with a hashed password."""
        request.validate()
        email = request.email.strip().lower()
        existing = self._execute(
            self.client.table("users")
            .select("id")
            .eq("email", email)
            .limit(1)
        )
        if existing:
            raise DuplicateEmailError()
        try:
            rows = self._execute(
                self.client.table("users").insert(
                    {
                        "email": email,
                        "password_hash": hash_password(request.password),
                        "name": request.name.strip(),
                        "role": request.role.value,
                    }
                )
            )
        except DatabaseError as exc:
            if exc.details and exc.details.get("code") == _UNIQUE_VIOLATION:
                raise DuplicateEmailError() from exc
            raise
        if not rows:
            raise DatabaseError("Failed to create user")
        return self._start_session(parse_user(rows[0]))

    async def get_current_user(self) -> User:
        return self.session.require_user()

    async def refresh_current_user(self) -> User:
        """Reload the current user's row."""
        current = self.session.require_user()
        rows = self._execute(
            self.client.table("users")
            .select(_USER_COLUMNS)
            .eq("id", current.id)
            .limit(1)
        )
        if not rows:
            raise NotAuthenticatedError("User no longer exists")
        user = parse_user(rows[0])
        self.session.user = user
        return user

    async def logout(self) -> None:
        # No server-side session to invalidate.
        self.session.clear()

    async def list_photographers(
        self, filters: PhotographerFilters | None = None
    ) -> list[Photographer]:
        """List photographers joined with their user rows, best rated first."""
        filters = filters or PhotographerFilters()
        query = (
            self.client.table("photographers")
            .select(_PHOTOGRAPHER_SELECT)
            .order("rating", desc=True)
        )
        if filters.available_only:
            query = query.eq("available", True)
        if filters.min_rating is not None:
            query = query.gte("rating", filters.min_rating)
        if filters.max_price is not None:
            query = query.lte("price_per_session", filters.max_price)
        rows = self._execute(query)
        photographers = [parse_photographer(_flatten_photographer(row)) for row in rows]
        return [p for p in photographers if filters.matches_spot(p.spots)]

    async def get_photographer(self, photographer_id: str) -> Photographer:
        rows = self._execute(
            self.client.table("photographers")
            .select(_PHOTOGRAPHER_SELECT)
            .eq("id", photographer_id)
            .limit(1)
        )
        if not rows:
            raise NotFoundError("Photographer not found")
        return parse_photographer(_flatten_photographer(rows[0]))

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """Insert a pending booking priced from the photographer's listing."""
        surfer = self.session.require_user()
        ensure_surfer(surfer)
        request.validate()
        photographer = await self.get_photographer(request.photographer_id)
        # bookings reference user identities, not profile ids
        rows = self._execute(
            self.client.table("bookings").insert(
                {
                    "surfer_id": surfer.id,
                    "photographer_id": photographer.user_id,
                    "spot": request.spot,
                    "date": request.date.isoformat(),
                    "time": request.time,
                    "duration_hours": request.duration_hours,
                    "status": BookingStatus.PENDING.value,
                    "price": photographer.price_per_session,
                    "currency": photographer.currency,
                    "notes": request.notes,
                }
            )
        )
        if not rows:
            raise DatabaseError("Failed to create booking")
        row = dict(rows[0])
        row["photographer_name"] = photographer.name
        row["photographer_avatar"] = photographer.avatar
        return parse_booking(row)

    async def list_my_bookings(self) -> list[Booking]:
        user = self.session.require_user()
        column = "photographer_id" if user.role is Role.PHOTOGRAPHER else "surfer_id"
        rows = self._execute(
            self.client.table("bookings")
            .select(_BOOKING_SELECT)
            .eq(column, user.id)
            .order("date", desc=True)
        )
        return [parse_booking(_flatten_embedded(row, "photographer")) for row in rows]

    async def get_booking(self, booking_id: str) -> Booking:
        rows = self._execute(
            self.client.table("bookings")
            .select(_BOOKING_SELECT)
            .eq("id", booking_id)
            .limit(1)
        )
        if not rows:
            raise NotFoundError("Booking not found")
        return parse_booking(_flatten_embedded(rows[0], "photographer"))

    async def update_booking_status(
        self, booking_id: str, status: BookingStatus
    ) -> Booking:
        """Apply a status change after checking it is a legal transition."""
        current = await self.get_booking(booking_id)
        ensure_booking_transition(current.status, status)
        rows = self._execute(
            self.client.table("bookings")
            .update({"status": status.value})
            .eq("id", booking_id)
        )
        if not rows:
            raise NotFoundError("Booking not found")
        row = dict(rows[0])
        row["photographer_name"] = current.photographer_name
        row["photographer_avatar"] = current.photographer_avatar
        return parse_booking(row)

    async def cancel_booking(self, booking_id: str) -> Booking:
        return await self.update_booking_status(booking_id, BookingStatus.CANCELLED)

    async def list_my_sessions(self) -> list[SurfSession]:
        """Sessions the user surfs in, or shoots when they are a photographer."""
        user = self.session.require_user()
        column = "photographer_id" if user.role is Role.PHOTOGRAPHER else "surfer_id"
        rows = self._execute(
            self.client.table("sessions")
            .select(_SESSION_SELECT)
            .eq(column, user.id)
            .order("date", desc=True)
        )
        return [parse_session(_flatten_session(row)) for row in rows]

    async def get_session(self, session_id: str) -> SurfSession:
        rows = self._execute(
            self.client.table("sessions")
            .select(_SESSION_SELECT)
            .eq("id", session_id)
            .limit(1)
        )
        if not rows:
            raise NotFoundError("Session not found")
        return parse_session(_flatten_session(rows[0]))

    async def get_session_media(self, session_id: str) -> list[Media]:
        rows = self._execute(
            self.client.table("media")
            .select("*")
            .eq("session_id", session_id)
            .order("uploaded_at", desc=True)
        )
        return [parse_media(row) for row in rows]

    async def get_session_logs(self, session_id: str) -> list[LogEntry]:
        """Return session logs; failures degrade to an empty list."""
        try:
            rows = self._execute(
                self.client.table("logs")
                .select(_LOG_SELECT)
                .eq("session_id", session_id)
                .order("timestamp", desc=True)
            )
            return [parse_log_entry(_flatten_log(row)) for row in rows]
        except ApiError as exc:
            _logger.warning(
                "Session logs unavailable: session=%s code=%s", session_id, exc.code
            )
            return []

    async def get_storage_usage(self) -> StorageUsage:
        """Sum media sizes across the user's sessions."""
        user = self.session.require_user()
        column = "photographer_id" if user.role is Role.PHOTOGRAPHER else "surfer_id"
        sessions = self._execute(
            self.client.table("sessions").select("id").eq(column, user.id)
        )
        session_ids = [str(row["id"]) for row in sessions]
        used_bytes = 0
        if session_ids:
            media = self._execute(
                self.client.table("media")
                .select("size_bytes")
                .in_("session_id", session_ids)
            )
            used_bytes = sum(int(row.get("size_bytes") or 0) for row in media)
        return StorageUsage(
            used_bytes=used_bytes, total_bytes=FREE_PLAN_BYTES, plan=FREE_PLAN_NAME
        )

    async def get_presigned_upload_url(
        self, session_id: str, filename: str, content_type: str
    ) -> PresignedUpload:
        raise FeatureNotImplementedError()

    async def upload_file(
        self, upload_url: str, content: bytes, content_type: str
    ) -> None:
        raise FeatureNotImplementedError()

    async def close(self) -> None:
        return None

    def _start_session(self, user: User) -> AuthResult:
        result = AuthResult(token=self.token_factory(), user=user)
        self.session.set(result.token, user)
        return result

    def _execute(self, query) -> list[dict[str, object]]:  # type: ignore[no-untyped-def]
        """Run a query builder, normalizing postgrest failures."""
        try:
            response = query.execute()
        except PostgrestAPIError as exc:
            _logger.error("Supabase query failed: code=%s", exc.code)
            raise DatabaseError(
                exc.message or "Database error",
                details={"code": exc.code, "hint": exc.hint, "details": exc.details},
            ) from exc
        return list(response.data or [])


def _new_token() -> str:
    return secrets.token_urlsafe(32)


def _flatten_photographer(row: dict[str, object]) -> dict[str, object]:
    owner = _embedded(row, "users")
    flat = {key: value for key, value in row.items() if key != "users"}
    flat["name"] = owner.get("name")
    flat["email"] = owner.get("email")
    flat["avatar"] = owner.get("avatar")
    return flat


def _flatten_embedded(row: dict[str, object], relation: str) -> dict[str, object]:
    embedded = _embedded(row, relation)
    flat = {key: value for key, value in row.items() if key != relation}
    flat[f"{relation}_name"] = embedded.get("name")
    flat[f"{relation}_avatar"] = embedded.get("avatar")
    return flat


def _flatten_session(row: dict[str, object]) -> dict[str, object]:
    flat = _flatten_embedded(row, "photographer")
    media = flat.pop("media", None)
    count = 0
    if isinstance(media, list) and media and isinstance(media[0], dict):
        count = int(media[0].get("count") or 0)
    flat["media_count"] = count
    return flat


def _flatten_log(row: dict[str, object]) -> dict[str, object]:
    author = _embedded(row, "user")
    flat = {key: value for key, value in row.items() if key != "user"}
    flat["user_name"] = author.get("name")
    return flat


def _embedded(row: dict[str, object], relation: str) -> dict[str, object]:
    value = row.get(relation)
    return value if isinstance(value, dict) else {}
