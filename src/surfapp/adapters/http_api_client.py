"""HTTPX-backed client for the SurfApp REST backend."""

import logging
from dataclasses import dataclass, field

import httpx

from surfapp.adapters.api_client import ApiClient, ClientSession
from surfapp.config import DEFAULT_API_TIMEOUT_MS, parse_timeout_seconds
from surfapp.domain.errors import (
    ApiError,
    DuplicateEmailError,
    HttpError,
    InvalidCredentialsError,
    NetworkError,
    NotAuthenticatedError,
    NotFoundError,
    RequestTimeoutError,
    UploadError,
    ValidationError,
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
    StorageUsage,
    SurfSession,
    User,
    ensure_booking_transition,
    ensure_surfer,
)
from surfapp.domain.payloads import (
    PayloadError,
    parse_booking,
    parse_log_entry,
    parse_many,
    parse_media,
    parse_photographer,
    parse_presigned_upload,
    parse_session,
    parse_storage_usage,
    parse_user,
)

_logger = logging.getLogger(__name__)

_LOGIN_REJECTED = {400, 401, 403, 404}
_UNAUTHORIZED = {401, 403}


@dataclass
class HttpxApiClient(ApiClient):
    """API client talking JSON over HTTP to the REST backend."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = DEFAULT_API_TIMEOUT_MS / 1000
    session: ClientSession = field(default_factory=ClientSession)

    @classmethod
    def create(
        cls, base_url: str, timeout_ms: int = DEFAULT_API_TIMEOUT_MS
    ) -> "HttpxApiClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=parse_timeout_seconds(timeout_ms),
        )

    def set_token(self, token: str | None) -> None:
        self.session.token = token

    def get_token(self) -> str | None:
        return self.session.token

    def set_credentials(self, token: str, user: User) -> None:
        self.session.set(token, user)

    def clear_credentials(self) -> None:
        self.session.clear()

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password."""
        try:
            payload = await self._request(
                "POST",
                "/auth/login",
                json={"email": email.strip(), "password": password},
            )
        except HttpError as exc:
            if exc.status in _LOGIN_REJECTED:
                _logger.info("Login rejected by backend: status=%s", exc.status)
                raise InvalidCredentialsError(details=exc.details) from exc
            raise
        return self._accept_auth(payload)

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Create an account on the backend."""
        request.validate()
        try:
            payload = await self._request(
                "POST",
                "/auth/register",
                json={
                    "email": request.email.strip(),
                    "password": request.password,
                    "name": request.name.strip(),
                    "role": request.role.value,
                },
            )
        except HttpError as exc:
            if exc.status == httpx.codes.CONFLICT:
                raise DuplicateEmailError(details=exc.details) from exc
            if exc.status in {400, 422}:
                raise ValidationError(exc.message, details=exc.details) from exc
            raise
        return self._accept_auth(payload)

    async def get_current_user(self) -> User:
        """Return the cached user, fetching it when only a token is known."""
        if self.session.user is not None:
            return self.session.user
        return await self.refresh_current_user()

    async def refresh_current_user(self) -> User:
        """Fetch the current user from ``/auth/me``."""
        if self.session.token is None:
            raise NotAuthenticatedError()
        try:
            payload = await self._request("GET", "/auth/me")
        except HttpError as exc:
            if exc.status in _UNAUTHORIZED:
                raise NotAuthenticatedError(details=exc.details) from exc
            raise
        user = parse_user(payload)
        self.session.user = user
        return user

    async def logout(self) -> None:
        """Best-effort backend logout followed by unconditional local cleanup."""
        try:
            if self.session.token is not None:
                await self._request("POST", "/auth/logout")
        except ApiError as exc:
            _logger.warning("Backend logout failed: code=%s", exc.code)
        finally:
            self.session.clear()

    async def list_photographers(
        self, filters: PhotographerFilters | None = None
    ) -> list[Photographer]:
        """List photographers; filtering happens server-side."""
        params = filters.to_query_params() if filters else {}
        payload = await self._request("GET", "/photographers", params=params)
        return parse_many(payload, parse_photographer, "photographer")

    async def get_photographer(self, photographer_id: str) -> Photographer:
        payload = await self._get_resource(
            f"/photographers/{photographer_id}", "Photographer not found"
        )
        return parse_photographer(payload)

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """Create a booking; the backend copies the photographer's price."""
        user = self.session.require_user()
        ensure_surfer(user)
        request.validate()
        payload = await self._request("POST", "/bookings", json=request.to_payload())
        return parse_booking(payload)

    async def list_my_bookings(self) -> list[Booking]:
        payload = await self._request("GET", "/bookings/me")
        return parse_many(payload, parse_booking, "booking")

    async def get_booking(self, booking_id: str) -> Booking:
        payload = await self._get_resource(
            f"/bookings/{booking_id}", "Booking not found"
        )
        return parse_booking(payload)

    async def update_booking_status(
        self, booking_id: str, status: BookingStatus
    ) -> Booking:
        """Check the transition locally, then patch the booking."""
        current = await self.get_booking(booking_id)
        ensure_booking_transition(current.status, status)
        payload = await self._request(
            "PATCH", f"/bookings/{booking_id}", json={"status": status.value}
        )
        return parse_booking(payload)

    async def cancel_booking(self, booking_id: str) -> Booking:
        return await self.update_booking_status(booking_id, BookingStatus.CANCELLED)

    async def list_my_sessions(self) -> list[SurfSession]:
        payload = await self._request("GET", "/surfers/sessions")
        return parse_many(payload, parse_session, "session")

    async def get_session(self, session_id: str) -> SurfSession:
        payload = await self._get_resource(
            f"/sessions/{session_id}", "Session not found"
        )
        return parse_session(payload)

    async def get_session_media(self, session_id: str) -> list[Media]:
        payload = await self._request("GET", f"/sessions/{session_id}/media")
        return parse_many(payload, parse_media, "media")

    async def get_session_logs(self, session_id: str) -> list[LogEntry]:
        """Return session logs; failures degrade to an empty list."""
        try:
            payload = await self._request("GET", f"/sessions/{session_id}/logs")
            return parse_many(payload, parse_log_entry, "log")
        except ApiError as exc:
            _logger.warning(
                "Session logs unavailable: session=%s code=%s", session_id, exc.code
            )
            return []

    async def get_storage_usage(self) -> StorageUsage:
        payload = await self._request("GET", "/me/storage-usage")
        return parse_storage_usage(payload)

    async def get_presigned_upload_url(
        self, session_id: str, filename: str, content_type: str
    ) -> PresignedUpload:
        payload = await self._request(
            "POST",
            f"/sessions/{session_id}/media/presign",
            json={"filename": filename, "content_type": content_type},
        )
        return parse_presigned_upload(payload)

    async def upload_file(
        self, upload_url: str, content: bytes, content_type: str
    ) -> None:
        """PUT bytes straight to storage; the bearer token is not sent."""
        try:
            response = await self.http_client.put(
                upload_url,
                content=content,
                headers={"Content-Type": content_type},
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError() from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or None) from exc
        if response.is_error:
            raise UploadError(details={"status": response.status_code})

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _accept_auth(self, payload: object) -> AuthResult:
        if (
            not isinstance(payload, dict)
            or not payload.get("access_token")
            or "user" not in payload
        ):
            raise PayloadError(
                "Malformed authentication response", details={"entity": "auth"}
            )
        user = parse_user(payload["user"])
        result = AuthResult(
            token=str(payload["access_token"]),
            user=user,
            token_type=str(payload.get("token_type") or "bearer"),
        )
        self.session.set(result.token, user)
        return result

    async def _get_resource(self, path: str, not_found_message: str) -> object:
        try:
            return await self._request("GET", path)
        except HttpError as exc:
            if exc.status == httpx.codes.NOT_FOUND:
                raise NotFoundError(not_found_message, details=exc.details) from exc
            raise

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: object | None = None,
        params: dict[str, str] | None = None,
    ) -> object:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params or None,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError() from exc
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or None) from exc

        if response.is_error:
            raise _http_error(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise HttpError(
                response.status_code,
                message="Invalid JSON in response",
                code="INVALID_RESPONSE",
            ) from exc


def _http_error(response: httpx.Response) -> HttpError:
    """Build an HttpError, falling back to the status when the body is unusable."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        text = response.text
        return HttpError(
            response.status_code, details={"body": text} if text else None
        )
    detail = body.get("detail")
    message = body.get("message") or (detail if isinstance(detail, str) else None)
    code = body.get("code")
    return HttpError(
        response.status_code,
        message=str(message) if message else None,
        code=str(code) if code else None,
        details=body,
    )
