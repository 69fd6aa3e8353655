"""Domain models for the SurfApp client."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

from surfapp.domain.errors import ValidationError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MIN_PASSWORD_LENGTH = 6
BYTES_PER_GB = 1024 * 1024 * 1024


class Role(StrEnum):
    """User role, fixed at registration."""

    SURFER = "surfer"
    PHOTOGRAPHER = "photographer"


class BookingStatus(StrEnum):
    """Booking lifecycle status as sent on the wire."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "BookingStatus") -> bool:
        """Return whether the booking may move to ``target``."""
        return target in _BOOKING_TRANSITIONS[self]


_BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


class SessionStatus(StrEnum):
    """Surf session status as sent on the wire."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    def can_transition_to(self, target: "SessionStatus") -> bool:
        """Return whether the session may move to ``target``."""
        order = list(SessionStatus)
        return order.index(target) == order.index(self) + 1


class MediaType(StrEnum):
    """Kind of media captured during a session."""

    PHOTO = "photo"
    VIDEO = "video"


@dataclass(frozen=True)
class User:
    """Identity record for a surfer or photographer."""

    id: str
    email: str
    name: str
    role: Role
    created_at: datetime
    avatar: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """Token and user returned by login or register."""

    token: str
    user: User
    token_type: str = "bearer"


@dataclass(frozen=True)
class RegisterRequest:
    """Sign-up payload."""

    email: str
    password: str
    name: str
    role: Role

    def validate(self) -> None:
        """Raise ``ValidationError`` when a required field is malformed."""
        errors: dict[str, object] = {}
        if not _EMAIL_PATTERN.match(self.email.strip()):
            errors["email"] = "Invalid email address"
        if len(self.password) < MIN_PASSWORD_LENGTH:
            errors["password"] = (
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if not self.name.strip():
            errors["name"] = "Name is required"
        if self.role not in set(Role):
            errors["role"] = "Role must be surfer or photographer"
        if errors:
            raise ValidationError("Invalid registration data", details=errors)


@dataclass(frozen=True)
class Photographer:
    """Photographer profile joined with its owning user."""

    id: str
    user_id: str
    name: str
    email: str
    rating: float
    reviews_count: int
    spots: list[str]
    price_per_session: float
    currency: str
    available: bool
    avatar: str | None = None
    bio: str | None = None
    portfolio_images: list[str] | None = None
    equipment: list[str] | None = None
    experience_years: int | None = None


@dataclass(frozen=True)
class PhotographerFilters:
    """Optional filters for photographer listings."""

    spot: str | None = None
    min_rating: float | None = None
    max_price: float | None = None
    available_only: bool | None = None

    def to_query_params(self) -> dict[str, str]:
        """Serialize set filters as query parameters, omitting unset ones."""
        raw = {
            "spot": self.spot,
            "min_rating": self.min_rating,
            "max_price": self.max_price,
            "available_only": self.available_only,
        }
        params: dict[str, str] = {}
        for key, value in raw.items():
            if value is None:
                continue
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            else:
                params[key] = str(value)
        return params

    def matches_spot(self, spots: list[str]) -> bool:
        """Case-insensitive substring match against any of the spots."""
        if not self.spot:
            return True
        needle = self.spot.lower()
        return any(needle in spot.lower() for spot in spots)


@dataclass(frozen=True)
class Booking:
    """A surfer's request for a paid photography session."""

    id: str
    surfer_id: str
    photographer_id: str
    photographer_name: str
    spot: str
    date: date
    time: str
    duration_hours: float
    status: BookingStatus
    price: float
    currency: str
    created_at: datetime
    updated_at: datetime
    photographer_avatar: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CreateBookingRequest:
    """Booking payload; ``photographer_id`` is the profile id."""

    photographer_id: str
    spot: str
    date: date
    time: str
    duration_hours: float
    notes: str | None = None

    def validate(self) -> None:
        """Raise ``ValidationError`` when a field is malformed."""
        errors: dict[str, object] = {}
        if not self.photographer_id:
            errors["photographer_id"] = "Photographer is required"
        if not self.spot.strip():
            errors["spot"] = "Spot is required"
        if not _TIME_PATTERN.match(self.time):
            errors["time"] = "Time must be HH:MM"
        if self.duration_hours <= 0:
            errors["duration_hours"] = "Duration must be positive"
        if errors:
            raise ValidationError("Invalid booking data", details=errors)

    def to_payload(self) -> dict[str, object]:
        """Return the wire payload for this request."""
        payload: dict[str, object] = {
            "photographer_id": self.photographer_id,
            "spot": self.spot,
            "date": self.date.isoformat(),
            "time": self.time,
            "duration_hours": self.duration_hours,
        }
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload


@dataclass(frozen=True)
class WaveConditions:
    """Conditions recorded for a session."""

    wave_height: float | None = None
    wave_period: float | None = None
    wind_speed: float | None = None
    wind_direction: str | None = None
    tide: str | None = None
    water_temp: float | None = None


@dataclass(frozen=True)
class SurfSession:
    """The realized outcome of a booking."""

    id: str
    booking_id: str
    surfer_id: str
    photographer_id: str
    photographer_name: str
    spot: str
    date: date
    time: str
    duration_hours: float
    status: SessionStatus
    media_count: int
    created_at: datetime
    updated_at: datetime
    photographer_avatar: str | None = None
    conditions: WaveConditions | None = None
    notes: str | None = None
    video_summary_url: str | None = None


@dataclass(frozen=True)
class Media:
    """Photo or video attached to a session."""

    id: str
    session_id: str
    type: MediaType
    url: str
    filename: str
    size_bytes: int
    uploaded_at: datetime
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None
    duration_seconds: float | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class LogEntry:
    """Activity log line for a session."""

    id: str
    session_id: str
    user_id: str
    user_name: str
    action: str
    description: str
    timestamp: datetime


@dataclass(frozen=True)
class StorageUsage:
    """Media storage consumed by the current user."""

    used_bytes: int
    total_bytes: int
    plan: str

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.used_bytes / self.total_bytes * 100

    @property
    def used_gb(self) -> float:
        return self.used_bytes / BYTES_PER_GB

    @property
    def total_gb(self) -> float:
        return self.total_bytes / BYTES_PER_GB


@dataclass(frozen=True)
class PresignedUpload:
    """Time-limited direct-to-storage upload target."""

    upload_url: str
    media_id: str
    expires_at: datetime


def ensure_booking_transition(current: BookingStatus, target: BookingStatus) -> None:
    """Raise ``ValidationError`` unless ``current`` may move to ``target``."""
    if not current.can_transition_to(target):
        raise ValidationError(
            f"Cannot change booking from {current} to {target}",
            details={"from": current.value, "to": target.value},
        )


def ensure_surfer(user: User) -> None:
    """Only surfers may request bookings."""
    if user.role is not Role.SURFER:
        raise ValidationError(
            "Only surfers can create bookings", details={"role": user.role.value}
        )
