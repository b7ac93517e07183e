"""Decides whether a usable credential exists for a tier."""

import logging

from visionstudio.models.errors import ErrorCode, GenerationFailure
from visionstudio.models.requests import ModelTier
from visionstudio.providers.base import CredentialProvider

logger = logging.getLogger(__name__)


class CredentialGate:
    """Checks credential availability and drives interactive selection."""

    def __init__(self, provider: CredentialProvider, reverify: bool = True):
        """
        Initialize the gate.

        Args:
            provider: Credential source of the host environment
            reverify: Re-check availability after the picker returns instead
                of assuming the user picked a key
        """
        self.provider = provider
        self.reverify = reverify

    async def has_usable_credential(self, tier: ModelTier) -> bool:
        """Pro needs a key the host reports as selected; Standard only needs a key."""
        if not self.provider.get_credential():
            return False
        if tier is ModelTier.PRO:
            try:
                return await self.provider.has_selected_credential()
            except Exception as e:
                logger.warning("Credential status check failed: %s", e)
                return False
        return True

    def requires_check(self, tier: ModelTier) -> bool:
        """Whether submission must confirm a credential before calling the backend."""
        return tier is ModelTier.PRO or not self.provider.get_credential()

    async def request_credential_selection(self, tier: ModelTier = ModelTier.STANDARD) -> None:
        """
        Open the host's credential picker.

        Raises:
            GenerationFailure: CREDENTIAL_MISSING if re-verification finds no
                usable credential after the picker returns
        """
        logger.info("Requesting interactive credential selection for %s tier", tier.label)
        await self.provider.open_selection()

        if not self.reverify:
            return
        if not await self.has_usable_credential(tier):
            raise GenerationFailure(
                ErrorCode.CREDENTIAL_MISSING,
                "No API key detected. Link an API key to continue.",
                tier=tier.label,
            )
