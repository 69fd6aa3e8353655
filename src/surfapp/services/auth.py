"""Authentication state for the running client."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from surfapp.adapters.api_client import ApiClient
from surfapp.adapters.session_store import SessionStore
from surfapp.domain.errors import (
    ApiError,
    HttpError,
    NotAuthenticatedError,
    NotFoundError,
)
from surfapp.domain.models import AuthResult, RegisterRequest, Role, User

_logger = logging.getLogger(__name__)

_LOGIN_FAILED = "Could not sign in"
_REGISTER_FAILED = "Could not create account"
_REJECTED_STATUSES = {401, 403}


class AuthState(StrEnum):
    """Lifecycle of the client's belief about who is logged in."""

    UNKNOWN = "unknown"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass
class AuthSessionController:
    """Owns in-memory auth state and keeps it in step with the session store.

    Successful logins are written to the store before the in-memory state
    changes, so an authenticated client always has a durable record behind
    it. Logout tears the local session down whatever the backend says.
    """

    client: ApiClient
    store: SessionStore
    state: AuthState = AuthState.UNKNOWN
    user: User | None = None
    token: str | None = None
    error: str | None = None
    is_loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED and self.user is not None

    async def restore(self) -> AuthState:
        """Restore a persisted session without contacting the backend."""
        self.state = AuthState.RESTORING
        self.is_loading = True
        try:
            persisted = self.store.load()
            if persisted is None:
                self._reset_memory()
                return self.state
            self.client.set_credentials(persisted.token, persisted.user)
            self.token = persisted.token
            self.user = persisted.user
            self.state = AuthState.AUTHENTICATED
            _logger.info("Restored session for user=%s", persisted.user.id)
            return self.state
        finally:
            self.is_loading = False

    async def revalidate(self) -> AuthState:
        """Confirm a restored session with the backend.

        Sessions the backend rejects are demoted to anonymous. Timeouts and
        network errors leave the session in place.
        """
        if self.state is not AuthState.AUTHENTICATED or self.token is None:
            return self.state
        try:
            user = await self.client.refresh_current_user()
        except (NotAuthenticatedError, NotFoundError) as exc:
            _logger.info("Persisted session rejected: code=%s", exc.code)
            self._clear_session()
            return self.state
        except HttpError as exc:
            if exc.status in _REJECTED_STATUSES:
                _logger.info("Persisted session rejected: status=%s", exc.status)
                self._clear_session()
                return self.state
            _logger.warning("Session revalidation failed: code=%s", exc.code)
            return self.state
        except ApiError as exc:
            _logger.warning("Session revalidation failed: code=%s", exc.code)
            return self.state
        self.store.save(self.token, user)
        self.user = user
        return self.state

    async def login(self, email: str, password: str) -> User:
        """Sign in and persist the session."""
        self.error = None
        self.is_loading = True
        try:
            result = await self.client.login(email, password)
            self._commit(result)
            return result.user
        except ApiError as exc:
            self.error = exc.message or _LOGIN_FAILED
            raise
        finally:
            self.is_loading = False

    async def register(
        self, email: str, password: str, name: str, role: Role
    ) -> User:
        """Create an account, sign in and persist the session."""
        self.error = None
        self.is_loading = True
        try:
            result = await self.client.register(
                RegisterRequest(email=email, password=password, name=name, role=role)
            )
            self._commit(result)
            return result.user
        except ApiError as exc:
            self.error = exc.message or _REGISTER_FAILED
            raise
        finally:
            self.is_loading = False

    async def logout(self) -> None:
        """Best-effort backend logout, then unconditional local teardown."""
        self.is_loading = True
        try:
            await self.client.logout()
        except Exception:
            _logger.exception("Unexpected error during backend logout")
        finally:
            self.is_loading = False
            self._clear_session()

    def clear_error(self) -> None:
        self.error = None

    def _commit(self, result: AuthResult) -> None:
        try:
            self.store.save(result.token, result.user)
        except OSError as exc:
            # the client still holds the new login; roll it back to memory
            if self.token is not None and self.user is not None:
                self.client.set_credentials(self.token, self.user)
            else:
                self.client.clear_credentials()
            _logger.error("Failed to persist session: %s", exc)
            raise ApiError("Could not save session", code="STORAGE_ERROR") from exc
        self.client.set_credentials(result.token, result.user)
        self.token = result.token
        self.user = result.user
        self.state = AuthState.AUTHENTICATED

    def _clear_session(self) -> None:
        self.client.clear_credentials()
        self._reset_memory()
        self.error = None
        self.store.clear()

    def _reset_memory(self) -> None:
        self.user = None
        self.token = None
        self.state = AuthState.ANONYMOUS
