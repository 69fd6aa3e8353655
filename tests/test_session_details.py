"""Tests for the session detail batch loader."""

import asyncio

import pytest

from surfapp.domain.errors import DatabaseError, HttpError, NotFoundError
from surfapp.domain.payloads import PayloadError
from surfapp.services.session_details import SessionDetailService
from tests.conftest import FakeApiClient


def test_load_returns_session_media_and_logs(fake_api_client: FakeApiClient) -> None:
    detail = asyncio.run(SessionDetailService(fake_api_client).load("session-1"))

    assert detail.session.id == "session-1"
    assert [m.id for m in detail.media] == ["media-1"]
    assert [log.id for log in detail.logs] == ["log-1"]


def test_failing_logs_do_not_abort_the_batch(fake_api_client: FakeApiClient) -> None:
    fake_api_client.logs_error = DatabaseError("logs table missing")

    detail = asyncio.run(SessionDetailService(fake_api_client).load("session-1"))

    assert detail.logs == []
    assert len(detail.media) == 1


def test_malformed_logs_do_not_abort_the_batch(
    fake_api_client: FakeApiClient,
) -> None:
    fake_api_client.logs_error = PayloadError(details={"entity": "log"})

    detail = asyncio.run(SessionDetailService(fake_api_client).load("session-1"))

    assert detail.logs == []
    assert detail.session.id == "session-1"


def test_failing_media_propagates(fake_api_client: FakeApiClient) -> None:
    fake_api_client.media_error = NotFoundError("Session not found")

    with pytest.raises(NotFoundError):
        asyncio.run(SessionDetailService(fake_api_client).load("session-1"))


def test_cancelling_the_batch_cancels_fetches(fake_api_client: FakeApiClient) -> None:
    started = asyncio.Event()
    cancelled: list[str] = []

    async def slow_media(session_id: str):  # type: ignore[no-untyped-def]
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(session_id)
            raise
        return []

    fake_api_client.get_session_media = slow_media  # type: ignore[method-assign]

    async def scenario() -> None:
        task = asyncio.create_task(
            SessionDetailService(fake_api_client).load("session-1")
        )
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert cancelled == ["session-1"]


def test_propagated_failure_keeps_backend_cause(
    fake_api_client: FakeApiClient,
) -> None:
    backend_error = HttpError(404, message="Session not found")
    not_found = NotFoundError("Session not found")
    not_found.__cause__ = backend_error
    fake_api_client.media_error = not_found

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(SessionDetailService(fake_api_client).load("session-1"))

    assert excinfo.value is not_found
    assert excinfo.value.__cause__ is backend_error
