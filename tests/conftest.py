"""Shared pytest fixtures for VisionStudio tests."""

import base64
from datetime import datetime, timedelta, timezone

import pytest

from visionstudio.models.config import RetryPolicy
from visionstudio.models.errors import ErrorCode, GenerationFailure
from visionstudio.models.requests import BackendRequest
from visionstudio.models.responses import BackendResponse, Candidate, ResponsePart
from visionstudio.services.image_service import ImageService
from visionstudio.services.storage import MemorySlotStore
from visionstudio.services.vault import ArtifactVault

PNG_BYTES = b"\x89PNG\r\n\x1a\nmock_image_data"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


def image_response(data: str = PNG_B64, leading_text: str | None = None) -> BackendResponse:
    """Backend response carrying one image, optionally after a text part."""
    parts = []
    if leading_text is not None:
        parts.append(ResponsePart(text=leading_text))
    parts.append(ResponsePart(inline_data={"mime_type": "image/png", "data": data}))
    return BackendResponse(candidates=[Candidate(parts=parts, finish_reason="STOP")])


def rate_limited(retry_after: float | None = None) -> GenerationFailure:
    return GenerationFailure(ErrorCode.RATE_LIMITED, "429 RESOURCE_EXHAUSTED", retry_after=retry_after)


class FakeBackend:
    """Backend that replays a scripted list of responses or failures."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [image_response()])
        self.calls: list[tuple[BackendRequest, str]] = []

    async def generate(self, request: BackendRequest, api_key: str) -> BackendResponse:
        self.calls.append((request, api_key))
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


class FakeCredentials:
    """Credential provider whose picker can install a key."""

    def __init__(self, api_key: str | None = "test-key", selected: bool = True, picker_key: str | None = None):
        self.api_key = api_key
        self.selected = selected
        self.picker_key = picker_key
        self.picker_opens = 0

    def get_credential(self):
        return self.api_key

    async def has_selected_credential(self) -> bool:
        return self.selected

    async def open_selection(self) -> None:
        self.picker_opens += 1
        if self.picker_key is not None:
            self.api_key = self.picker_key
            self.selected = True


class RecordingSleep:
    """Async sleep replacement that records delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_credentials():
    return FakeCredentials()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def policy():
    return RetryPolicy(max_attempts=3, base_delay_seconds=2.0, multiplier=2.0, default_cooldown_seconds=60)


@pytest.fixture
def make_service(fake_credentials, recording_sleep, policy):
    """Factory for an ImageService wired to fakes."""

    def _make(backend=None, credentials=None, **kwargs):
        return ImageService(
            backend=backend or FakeBackend(),
            credentials=credentials or fake_credentials,
            policy=kwargs.pop("policy", policy),
            sleep=recording_sleep,
            clock=kwargs.pop("clock", TickingClock()),
            **kwargs,
        )

    return _make


@pytest.fixture
def memory_vault():
    vault = ArtifactVault(MemorySlotStore())
    vault.load()
    return vault
