"""Batched loading of a surf session with its media and logs."""

import asyncio
import logging
from dataclasses import dataclass

from surfapp.adapters.api_client import ApiClient
from surfapp.domain.errors import ApiError
from surfapp.domain.models import LogEntry, Media, SurfSession

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionDetail:
    """Everything the session screen shows."""

    session: SurfSession
    media: list[Media]
    logs: list[LogEntry]


@dataclass
class SessionDetailService:
    """Fetches a session, its media and its logs concurrently.

    A failing log fetch yields an empty list; a failing session or media
    fetch cancels the other requests and propagates.
    """

    client: ApiClient

    async def load(self, session_id: str) -> SessionDetail:
        try:
            async with asyncio.TaskGroup() as group:
                session_task = group.create_task(self.client.get_session(session_id))
                media_task = group.create_task(
                    self.client.get_session_media(session_id)
                )
                logs_task = group.create_task(self._logs_or_empty(session_id))
        except ExceptionGroup as failures:
            # surface the first failure as-is so callers see an ApiError
            first = failures.exceptions[0]
            raise first from first.__cause__
        return SessionDetail(
            session=session_task.result(),
            media=media_task.result(),
            logs=logs_task.result(),
        )

    async def _logs_or_empty(self, session_id: str) -> list[LogEntry]:
        try:
            return await self.client.get_session_logs(session_id)
        except ApiError as exc:
            _logger.warning(
                "Session logs unavailable: session=%s code=%s", session_id, exc.code
            )
            return []
