"""Generation orchestrator: validation, credential gating, invocation and interpretation."""

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from visionstudio.models.artifacts import Artifact
from visionstudio.models.config import RetryPolicy
from visionstudio.models.errors import (
    ErrorCode,
    GenerationCancelled,
    GenerationFailure,
    is_credential_error,
    is_retryable,
)
from visionstudio.models.metrics import GenerationMetrics
from visionstudio.models.requests import GenerationRequest, ModelTier, UserInput
from visionstudio.models.responses import GenerationError, GenerationResult, RecoveryAction
from visionstudio.providers.base import CredentialProvider, ImageBackend
from visionstudio.providers.credentials import EnvCredentialProvider
from visionstudio.providers.gemini_provider import GeminiImageBackend
from visionstudio.services.credential_gate import CredentialGate
from visionstudio.services.metrics_service import MetricsService
from visionstudio.services.request_builder import RequestBuilder
from visionstudio.services.response_interpreter import RenderedImage, cooldown_from_hint, interpret
from visionstudio.services.retry_service import BackendInvoker, SleepFunc

logger = logging.getLogger(__name__)

CREDENTIAL_MISSING_MESSAGE = "Project connection required. Please link your API key."
PRO_REJECTED_MESSAGE = (
    "PRO_PERMISSION_DENIED: Your API key does not have access to the Pro tier "
    "(requires a paid project with billing enabled). Switch to Standard to continue."
)
REJECTED_MESSAGE = (
    "PERMISSION_DENIED: Your API key is invalid or lacks necessary permissions for image generation."
)
RATE_LIMITED_MESSAGE = "Rate limit hit. Cooling down engines..."


class ImageService:
    """Turns user input into an artifact or a classified failure."""

    def __init__(
        self,
        backend: ImageBackend | None = None,
        credentials: CredentialProvider | None = None,
        policy: RetryPolicy | None = None,
        builder: RequestBuilder | None = None,
        metrics_service: MetricsService | None = None,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
        reverify_credentials: bool = True,
    ):
        """
        Initialize image service.

        Args:
            backend: Backend collaborator (defaults to GeminiImageBackend)
            credentials: Credential source (defaults to EnvCredentialProvider)
            policy: Retry and cooldown policy (defaults to RetryPolicy.from_env())
            builder: Request builder (defaults to RequestBuilder())
            metrics_service: Optional MetricsService for recording metrics
            sleep: Awaitable sleep used between retries
            clock: Returns the creation time for new artifacts
            reverify_credentials: Re-check the credential after the picker closes
        """
        backend = backend or GeminiImageBackend()
        self.credentials = credentials or EnvCredentialProvider()
        self.policy = policy or RetryPolicy.from_env()
        self.builder = builder or RequestBuilder()
        self.gate = CredentialGate(self.credentials, reverify=reverify_credentials)
        self.invoker = BackendInvoker(backend, self.credentials, self.policy, sleep=sleep)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._metrics_service = metrics_service

    async def generate(
        self, user_input: UserInput, cancel: asyncio.Event | None = None
    ) -> GenerationResult:
        """
        Generate one artifact.

        Classified failures are returned, never raised. Credential failures
        open the credential picker before returning; an exhausted rate limit
        returns a cooldown duration.

        Args:
            user_input: Prompt, reference images and options
            cancel: Event the caller sets to abandon the request

        Returns:
            GenerationResult with the artifact or error details
        """
        start_time = time.time()
        input_json = json.dumps({
            "prompt": user_input.prompt,
            "model": user_input.model.value,
            "aspect_ratio": user_input.aspect_ratio.value,
            "image_size": user_input.image_size.value,
            "reference_images": len(user_input.reference_images),
            "seed": user_input.seed,
        })

        def metrics(attempts: int, error_code: Optional[ErrorCode] = None) -> GenerationMetrics:
            return GenerationMetrics(
                duration_ms=int((time.time() - start_time) * 1000),
                model_used=user_input.model.value,
                attempts=attempts,
                retry_count=max(attempts - 1, 0),
                error_code=error_code,
                timestamp=datetime.now(timezone.utc),
                input=input_json,
            )

        try:
            request = self.builder.build(user_input)
            await self._ensure_credential(request.model)
        except GenerationFailure as e:
            return self._failure(e, user_input.model, metrics(0, e.error_code))

        attempts = 0
        try:
            invocation = await self.invoker.invoke(self.builder.descriptor(request), cancel)
            attempts = invocation.attempts
            image = interpret(invocation.response)
        except GenerationCancelled:
            logger.info("Generation cancelled by caller")
            return self._record(GenerationResult(success=False, cancelled=True, metrics=metrics(0)))
        except GenerationFailure as e:
            attempts = e.attempts or attempts or 1
            if is_credential_error(e.error_code):
                await self._recover_credential(request.model)
            return self._failure(e, request.model, metrics(attempts, e.error_code))
        except Exception as e:
            logger.exception("Unexpected generation failure")
            failure = GenerationFailure(
                ErrorCode.BACKEND_ERROR,
                f"An unexpected failure occurred in the generation core: {e}",
                original_exception=e,
            )
            return self._failure(failure, request.model, metrics(attempts or 1, failure.error_code))

        artifact = self._make_artifact(request, image)
        return self._record(
            GenerationResult(
                success=True,
                artifact=artifact,
                metrics=metrics(attempts),
            )
        )

    async def _ensure_credential(self, tier: ModelTier) -> None:
        if self.gate.requires_check(tier) and not await self.gate.has_usable_credential(tier):
            await self.gate.request_credential_selection(tier)

    async def _recover_credential(self, tier: ModelTier) -> None:
        try:
            await self.gate.request_credential_selection(tier)
        except GenerationFailure as e:
            logger.info("Credential still unavailable after selection: %s", e.message)

    def _make_artifact(self, request: GenerationRequest, image: RenderedImage) -> Artifact:
        return Artifact(
            id=str(uuid.uuid4()),
            url=image.to_data_url(),
            source_prompt=request.source_prompt,
            model=request.model,
            created_at=self._clock(),
            aspect_ratio=request.aspect_ratio,
        )

    def _failure(
        self, failure: GenerationFailure, tier: ModelTier, metrics: GenerationMetrics
    ) -> GenerationResult:
        code = failure.error_code
        recovery: Optional[RecoveryAction] = None
        cooldown_seconds: Optional[int] = None
        message = failure.message

        if is_credential_error(code):
            recovery = RecoveryAction.SELECT_CREDENTIAL
            if code is ErrorCode.CREDENTIAL_REJECTED:
                message = PRO_REJECTED_MESSAGE if tier is ModelTier.PRO else REJECTED_MESSAGE
            else:
                message = CREDENTIAL_MISSING_MESSAGE
        elif code is ErrorCode.RATE_LIMITED:
            recovery = RecoveryAction.WAIT_FOR_COOLDOWN
            cooldown_seconds = cooldown_from_hint(failure.retry_after, self.policy.default_cooldown_seconds)
            message = RATE_LIMITED_MESSAGE
        elif code is ErrorCode.CONTENT_BLOCKED:
            recovery = RecoveryAction.REVISE_PROMPT

        if code in (ErrorCode.BACKEND_ERROR, ErrorCode.MALFORMED_RESPONSE):
            logger.error("Generation failed (%s): %s", code.value, failure.message)
        else:
            logger.warning("Generation failed (%s): %s", code.value, failure.message)

        error = GenerationError(
            code=code,
            message=message,
            retryable=is_retryable(code),
            tier=failure.tier,
            retry_after=failure.retry_after,
            details={"diagnostic": failure.message, "attempts": metrics.attempts},
        )
        return self._record(
            GenerationResult.failed(
                error,
                recovery=recovery,
                cooldown_seconds=cooldown_seconds,
                metrics=metrics,
            )
        )

    def _record(self, result: GenerationResult) -> GenerationResult:
        if self._metrics_service is not None and result.metrics is not None:
            self._metrics_service.record(result.metrics)
        return result
