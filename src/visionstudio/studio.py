"""Client session tying the generation service to the artifact vault."""

import asyncio
import logging
from typing import Optional

from pydantic import BaseModel, Field

from visionstudio.models.artifacts import Artifact, SortOrder, VaultState
from visionstudio.models.errors import ErrorCode
from visionstudio.models.requests import AspectRatio, ImageSize, ModelTier, ReferenceImage, UserInput
from visionstudio.models.responses import GenerationError, GenerationResult, RecoveryAction
from visionstudio.services.export_service import ExportService
from visionstudio.services.image_service import ImageService
from visionstudio.services.vault import ArtifactVault

logger = logging.getLogger(__name__)


class SubmissionOutcome(BaseModel):
    """What a submission produced, including vault side effects."""

    result: GenerationResult
    vault_warning: Optional[str] = Field(None, description="Capacity warning from persistence")
    exported_path: Optional[str] = Field(None, description="File the artifact was exported to")


class StudioSession:
    """
    One user's studio: pending uploads, submission and gallery.

    Submissions are refused while the vault's cooldown is active. Successful
    artifacts go into the vault and, when an exporter is configured, to disk.
    """

    def __init__(
        self,
        service: ImageService,
        vault: ArtifactVault,
        exporter: ExportService | None = None,
        auto_countdown: bool = True,
        tick_interval: float = 1.0,
    ):
        """
        Initialize the session.

        Args:
            service: Generation service
            vault: Loaded artifact vault
            exporter: Optional exporter for auto-saving new artifacts
            auto_countdown: Tick the cooldown from a background task; when False
                the host calls ``vault.tick()`` itself
            tick_interval: Seconds between background cooldown ticks
        """
        self.service = service
        self.vault = vault
        self.exporter = exporter
        self.auto_countdown = auto_countdown
        self.tick_interval = tick_interval
        self.pending_images: list[ReferenceImage] = []
        self._cooldown_task: Optional[asyncio.Task] = None

    def add_reference_image(self, raw: bytes, mime_type: str) -> ReferenceImage:
        image = ReferenceImage.from_bytes(raw, mime_type)
        self.pending_images.append(image)
        return image

    def remove_reference_image(self, image_id: str) -> None:
        self.pending_images = [image for image in self.pending_images if image.id != image_id]

    def clear_reference_images(self) -> None:
        self.pending_images = []

    @property
    def can_submit(self) -> bool:
        return self.vault.can_submit

    async def submit(
        self,
        prompt: str = "",
        aspect_ratio: AspectRatio = AspectRatio.SQUARE,
        model: ModelTier = ModelTier.STANDARD,
        image_size: ImageSize = ImageSize.SIZE_1K,
        seed: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> SubmissionOutcome:
        """Generate from the prompt and pending uploads, then update the vault."""
        if not self.vault.can_submit:
            remaining = self.vault.cooldown_remaining_seconds
            error = GenerationError(
                code=ErrorCode.RATE_LIMITED,
                message=f"Cooling down. Try again in {remaining}s.",
                retryable=True,
            )
            return SubmissionOutcome(
                result=GenerationResult.failed(error, recovery=RecoveryAction.WAIT_FOR_COOLDOWN)
            )

        user_input = UserInput(
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            model=model,
            image_size=image_size,
            reference_images=list(self.pending_images),
            seed=seed,
        )
        result = await self.service.generate(user_input, cancel=cancel)

        if result.success and result.artifact is not None:
            warning = self.vault.insert(result.artifact)
            self.pending_images = []
            return SubmissionOutcome(
                result=result,
                vault_warning=warning,
                exported_path=self._export(result.artifact),
            )

        if result.cancelled:
            self.pending_images = []

        if result.cooldown_seconds:
            self.start_cooldown(result.cooldown_seconds)
        return SubmissionOutcome(result=result)

    def start_cooldown(self, seconds: int) -> None:
        """Start the vault cooldown and, inside a running loop, count it down."""
        self.vault.start_cooldown(seconds)
        if not self.auto_countdown:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._cooldown_task is None or self._cooldown_task.done():
            self._cooldown_task = loop.create_task(self.vault.cooldown.run(self.tick_interval))

    def remove(self, artifact_id: str) -> Optional[str]:
        return self.vault.remove(artifact_id)

    def gallery(self, search_text: str = "", sort_order: SortOrder = SortOrder.NEWEST) -> list[Artifact]:
        return self.vault.query(search_text, sort_order)

    def state(self) -> VaultState:
        return self.vault.state()

    async def close(self) -> None:
        """Stop the background countdown, if any."""
        if self._cooldown_task is not None and not self._cooldown_task.done():
            self._cooldown_task.cancel()
            try:
                await self._cooldown_task
            except asyncio.CancelledError:
                pass
        self._cooldown_task = None

    def _export(self, artifact: Artifact) -> Optional[str]:
        if self.exporter is None:
            return None
        try:
            return str(self.exporter.export(artifact))
        except (OSError, ValueError) as e:
            logger.warning("Auto-export of artifact %s failed: %s", artifact.id, e)
            return None
