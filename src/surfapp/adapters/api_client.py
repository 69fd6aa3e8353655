"""API client contract shared by every transport."""

from dataclasses import dataclass
from typing import Protocol

from surfapp.domain.errors import NotAuthenticatedError
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
    StorageUsage,
    SurfSession,
    User,
)


@dataclass
class ClientSession:
    """Credentials held by a single client instance."""

    token: str | None = None
    user: User | None = None

    def set(self, token: str | None, user: User | None) -> None:
        self.token = token
        self.user = user

    def clear(self) -> None:
        self.token = None
        self.user = None

    def require_user(self) -> User:
        """Return the current user or raise ``NotAuthenticatedError``."""
        if self.user is None:
            raise NotAuthenticatedError()
        return self.user


class ApiClient(Protocol):
    """Operations every backend transport provides."""

    def set_token(self, token: str | None) -> None:
        """Set or clear the bearer token."""

    def get_token(self) -> str | None:
        """Return the current token, if any."""

    def set_credentials(self, token: str, user: User) -> None:
        """Install a restored token and user without a round trip."""

    def clear_credentials(self) -> None:
        """Forget the token and current user."""

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate and set the current user."""

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Create an account and set the current user."""

    async def get_current_user(self) -> User:
        """Return the current user."""

    async def refresh_current_user(self) -> User:
        """Re-read the current user from the backend."""

    async def logout(self) -> None:
        """End the session; never raises."""

    async def list_photographers(
        self, filters: PhotographerFilters | None = None
    ) -> list[Photographer]:
        """Return photographers ordered by descending rating."""

    async def get_photographer(self, photographer_id: str) -> Photographer:
        """Return a photographer profile by id."""

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """Create a pending booking for the current surfer."""

    async def list_my_bookings(self) -> list[Booking]:
        """Return the current user's bookings."""

    async def get_booking(self, booking_id: str) -> Booking:
        """Return a booking by id."""

    async def update_booking_status(
        self, booking_id: str, status: BookingStatus
    ) -> Booking:
        """Move a booking to a new status."""

    async def cancel_booking(self, booking_id: str) -> Booking:
        """Cancel a pending booking."""

    async def list_my_sessions(self) -> list[SurfSession]:
        """Return the current user's surf sessions."""

    async def get_session(self, session_id: str) -> SurfSession:
        """Return a surf session by id."""

    async def get_session_media(self, session_id: str) -> list[Media]:
        """Return media for a session."""

    async def get_session_logs(self, session_id: str) -> list[LogEntry]:
        """Return session logs, or an empty list when they cannot be loaded."""

    async def get_storage_usage(self) -> StorageUsage:
        """Return media storage usage for the current user."""

    async def get_presigned_upload_url(
        self, session_id: str, filename: str, content_type: str
    ) -> PresignedUpload:
        """Request a direct-to-storage upload URL."""

    async def upload_file(
        self, upload_url: str, content: bytes, content_type: str
    ) -> None:
        """Upload raw bytes to a presigned URL."""

    async def close(self) -> None:
        """Release transport resources."""
