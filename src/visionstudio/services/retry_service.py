"""Backend invoker with bounded exponential backoff on rate limiting."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from visionstudio.models.config import RetryPolicy
from visionstudio.models.errors import ErrorCode, GenerationCancelled, GenerationFailure
from visionstudio.models.requests import BackendRequest
from visionstudio.models.responses import BackendResponse
from visionstudio.providers.base import CredentialProvider, ImageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


def is_rate_limited(exc: BaseException) -> bool:
    """Only rate limiting is worth retrying; anything else cannot succeed on a repeat."""
    return isinstance(exc, GenerationFailure) and exc.error_code is ErrorCode.RATE_LIMITED


class Invocation(BaseModel):
    """A successful backend call and the attempts it took."""

    response: BackendResponse
    attempts: int


class BackendInvoker:
    """Issues backend requests, retrying rate-limited attempts with backoff."""

    def __init__(
        self,
        backend: ImageBackend,
        credentials: CredentialProvider,
        policy: RetryPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Initialize the invoker.

        Args:
            backend: Backend collaborator
            credentials: Credential source, read again before every attempt
            policy: Retry policy (defaults to RetryPolicy())
            sleep: Awaitable sleep used for backoff delays
        """
        self.backend = backend
        self.credentials = credentials
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _retry_config(self, cancel: asyncio.Event | None) -> dict[str, Any]:
        async def backoff_sleep(seconds: float) -> None:
            await self._cancellable(self._sleep(seconds), cancel)

        return {
            "stop": stop_after_attempt(self.policy.max_attempts),
            "wait": wait_exponential(
                multiplier=self.policy.base_delay_seconds,
                exp_base=self.policy.multiplier,
                max=self.policy.max_delay_seconds,
            ),
            "retry": retry_if_exception(is_rate_limited),
            "sleep": backoff_sleep,
            "before_sleep": before_sleep_log(logger, logging.WARNING),
            "reraise": True,
        }

    async def invoke(self, request: BackendRequest, cancel: asyncio.Event | None = None) -> Invocation:
        """
        Send a request, retrying only while the backend reports rate limiting.

        Args:
            request: Backend request descriptor
            cancel: Event the caller sets to abandon the request; it aborts the
                in-flight call and any pending backoff sleep

        Returns:
            Invocation holding the backend response

        Raises:
            GenerationFailure: Non-retryable failure, or the last rate-limit
                failure once attempts are exhausted (``attempts`` is set)
            GenerationCancelled: The cancel event was set
        """
        attempts = 0
        try:
            async for attempt in AsyncRetrying(**self._retry_config(cancel)):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    if cancel is not None and cancel.is_set():
                        raise GenerationCancelled()
                    response = await self._attempt(request, cancel)
                    return Invocation(response=response, attempts=attempts)
        except GenerationFailure as e:
            e.attempts = attempts
            if e.error_code is ErrorCode.RATE_LIMITED:
                logger.warning("Rate limit persisted after %d attempt(s)", attempts)
            raise

    async def _attempt(self, request: BackendRequest, cancel: asyncio.Event | None) -> BackendResponse:
        api_key = self.credentials.get_credential()
        if not api_key:
            raise GenerationFailure(
                ErrorCode.CREDENTIAL_MISSING,
                "API_KEY_MISSING: No API key detected. Set API_KEY or link a key.",
                tier=request.model.label,
            )
        return await self._cancellable(self.backend.generate(request, api_key), cancel)

    async def _cancellable(self, awaitable: Awaitable[T], cancel: asyncio.Event | None) -> T:
        """Await ``awaitable`` unless ``cancel`` fires first."""
        if cancel is None:
            return await awaitable
        if cancel.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise GenerationCancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for pending in (task, waiter):
                if not pending.done():
                    pending.cancel()

        if task in done:
            return task.result()
        raise GenerationCancelled()
