"""Parsing of backend payloads into domain models.

Both transports normalise their responses into the flat shapes below before
parsing, so the REST backend and the Supabase rows share one code path.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import TypeVar

from surfapp.domain.errors import ApiError
from surfapp.domain.models import (
    Booking,
    BookingStatus,
    LogEntry,
    Media,
    MediaType,
    Photographer,
    PresignedUpload,
    Role,
    SessionStatus,
    StorageUsage,
    SurfSession,
    User,
    WaveConditions,
)

_CONDITION_FIELDS = (
    "wave_height",
    "wave_period",
    "wind_speed",
    "wind_direction",
    "tide",
    "water_temp",
)


class PayloadError(ApiError):
    """Raised when a backend payload is missing required fields."""

    default_code = "INVALID_RESPONSE"
    default_message = "Unexpected response from backend"


_T = TypeVar("_T")


def parse_many(
    payload: object, parser: Callable[[dict[str, object]], _T], entity: str
) -> list[_T]:
    """Parse a JSON array of records; a missing body is an empty list."""
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise PayloadError(
            details={"entity": entity, "error": "expected a list of records"}
        )
    return [parser(item) for item in payload]


def parse_user(data: dict[str, object]) -> User:
    """Parse a user record."""
    _require_mapping(data, "user")
    try:
        return User(
            id=str(data["id"]),
            email=str(data["email"]),
            name=str(data["name"]),
            role=Role(data["role"]),
            created_at=_parse_datetime(data.get("created_at")),
            avatar=_optional_str(data.get("avatar")),
            phone=_optional_str(data.get("phone")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "user", "error": str(exc)}) from exc


def user_to_payload(user: User) -> dict[str, object]:
    """Serialize a user to a JSON-compatible dict."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "avatar": user.avatar,
        "phone": user.phone,
        "created_at": user.created_at.isoformat(),
    }


def parse_photographer(data: dict[str, object]) -> Photographer:
    """Parse a flat photographer payload."""
    _require_mapping(data, "photographer")
    try:
        return Photographer(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            rating=float(data.get("rating") or 0.0),
            reviews_count=int(data.get("reviews_count") or 0),
            spots=[str(spot) for spot in data.get("spots") or []],
            price_per_session=float(data["price_per_session"]),
            currency=str(data.get("currency") or "USD"),
            available=bool(data.get("available", False)),
            avatar=_optional_str(data.get("avatar")),
            bio=_optional_str(data.get("bio")),
            portfolio_images=_optional_list(data.get("portfolio_images")),
            equipment=_optional_list(data.get("equipment")),
            experience_years=_optional_int(data.get("experience_years")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(
            details={"entity": "photographer", "error": str(exc)}
        ) from exc


def parse_booking(data: dict[str, object]) -> Booking:
    """Parse a flat booking payload."""
    _require_mapping(data, "booking")
    try:
        return Booking(
            id=str(data["id"]),
            surfer_id=str(data["surfer_id"]),
            photographer_id=str(data["photographer_id"]),
            photographer_name=str(data.get("photographer_name") or ""),
            photographer_avatar=_optional_str(data.get("photographer_avatar")),
            spot=str(data["spot"]),
            date=_parse_date(data["date"]),
            time=_parse_time(data["time"]),
            duration_hours=float(data["duration_hours"]),
            status=BookingStatus(data.get("status") or BookingStatus.PENDING),
            price=float(data["price"]),
            currency=str(data.get("currency") or "USD"),
            notes=_optional_str(data.get("notes")),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(
                data.get("updated_at") or data.get("created_at")
            ),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "booking", "error": str(exc)}) from exc


def parse_session(data: dict[str, object]) -> SurfSession:
    """Parse a flat surf session payload."""
    _require_mapping(data, "session")
    try:
        return SurfSession(
            id=str(data["id"]),
            booking_id=str(data.get("booking_id") or ""),
            surfer_id=str(data["surfer_id"]),
            photographer_id=str(data["photographer_id"]),
            photographer_name=str(data.get("photographer_name") or ""),
            photographer_avatar=_optional_str(data.get("photographer_avatar")),
            spot=str(data["spot"]),
            date=_parse_date(data["date"]),
            time=_parse_time(data["time"]),
            duration_hours=float(data.get("duration_hours") or 0),
            status=SessionStatus(data.get("status") or SessionStatus.SCHEDULED),
            conditions=_parse_conditions(data),
            notes=_optional_str(data.get("notes")),
            media_count=int(data.get("media_count") or 0),
            video_summary_url=_optional_str(data.get("video_summary_url")),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(
                data.get("updated_at") or data.get("created_at")
            ),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "session", "error": str(exc)}) from exc


def parse_media(data: dict[str, object]) -> Media:
    """Parse a media row."""
    _require_mapping(data, "media")
    try:
        media_type = MediaType(data["type"])
        return Media(
            id=str(data["id"]),
            session_id=str(data["session_id"]),
            type=media_type,
            url=str(data["url"]),
            thumbnail_url=_optional_str(data.get("thumbnail_url")),
            filename=str(data.get("filename") or ""),
            size_bytes=int(data.get("size_bytes") or 0),
            width=_optional_int(data.get("width")),
            height=_optional_int(data.get("height")),
            duration_seconds=(
                _optional_float(data.get("duration_seconds"))
                if media_type is MediaType.VIDEO
                else None
            ),
            uploaded_at=_parse_datetime(data.get("uploaded_at")),
            metadata=dict(data.get("metadata") or {}),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "media", "error": str(exc)}) from exc


def parse_log_entry(data: dict[str, object]) -> LogEntry:
    """Parse a session log entry."""
    _require_mapping(data, "log")
    try:
        return LogEntry(
            id=str(data["id"]),
            session_id=str(data["session_id"]),
            user_id=str(data["user_id"]),
            user_name=str(data.get("user_name") or ""),
            action=str(data.get("action") or ""),
            description=str(data.get("description") or ""),
            timestamp=_parse_datetime(data.get("timestamp")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "log", "error": str(exc)}) from exc


def parse_storage_usage(data: dict[str, object]) -> StorageUsage:
    """Parse storage usage; percentage is always derived."""
    _require_mapping(data, "storage")
    try:
        return StorageUsage(
            used_bytes=int(data["used_bytes"]),
            total_bytes=int(data["total_bytes"]),
            plan=str(data.get("plan") or ""),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "storage", "error": str(exc)}) from exc


def parse_presigned_upload(data: dict[str, object]) -> PresignedUpload:
    """Parse a presigned upload response."""
    _require_mapping(data, "upload")
    try:
        return PresignedUpload(
            upload_url=str(data["upload_url"]),
            media_id=str(data["media_id"]),
            expires_at=_parse_datetime(data.get("expires_at")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise PayloadError(details={"entity": "upload", "error": str(exc)}) from exc


def _require_mapping(data: object, entity: str) -> None:
    if not isinstance(data, dict):
        found = type(data).__name__
        raise PayloadError(
            details={"entity": entity, "error": f"expected an object, got {found}"}
        )


def _parse_conditions(data: dict[str, object]) -> WaveConditions | None:
    values = {name: data.get(name) for name in _CONDITION_FIELDS}
    nested = data.get("conditions")
    if isinstance(nested, dict):
        values = {name: nested.get(name) for name in _CONDITION_FIELDS}
    if all(value is None for value in values.values()):
        return None
    return WaveConditions(
        wave_height=_optional_float(values["wave_height"]),
        wave_period=_optional_float(values["wave_period"]),
        wind_speed=_optional_float(values["wind_speed"]),
        wind_direction=_optional_str(values["wind_direction"]),
        tide=_optional_str(values["tide"]),
        water_temp=_optional_float(values["water_temp"]),
    )


def _parse_datetime(raw: object) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return datetime.min.replace(tzinfo=UTC)


def _parse_date(raw: object) -> date:
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def _parse_time(raw: object) -> str:
    # Postgres time columns come back as HH:MM:SS
    return str(raw)[:5]


def _optional_str(raw: object) -> str | None:
    return str(raw) if raw is not None else None


def _optional_int(raw: object) -> int | None:
    return int(raw) if raw is not None else None


def _optional_float(raw: object) -> float | None:
    return float(raw) if raw is not None else None


def _optional_list(raw: object) -> list[str] | None:
    if raw is None:
        return None
    return [str(item) for item in raw]
