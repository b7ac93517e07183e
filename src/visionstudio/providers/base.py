"""Collaborator interfaces for the generation backend and credential source."""

from typing import Optional, Protocol

from typing_extensions import runtime_checkable

from visionstudio.models.requests import BackendRequest
from visionstudio.models.responses import BackendResponse


@runtime_checkable
class ImageBackend(Protocol):
    """Protocol for generative-image backends."""

    async def generate(self, request: BackendRequest, api_key: str) -> BackendResponse:
        """
        Issue one request to the backend over a freshly authenticated channel.

        Args:
            request: Backend-agnostic request descriptor
            api_key: Credential to authenticate this attempt with

        Returns:
            The backend's candidate list, reduced to a BackendResponse

        Raises:
            GenerationFailure: Transport failures, already classified
        """
        ...


@runtime_checkable
class CredentialProvider(Protocol):
    """Protocol for the host environment's credential source."""

    def get_credential(self) -> Optional[str]:
        """Return the current ambient credential, or None when there is none."""
        ...

    async def has_selected_credential(self) -> bool:
        """Whether the host reports a selected credential for paid tiers."""
        ...

    async def open_selection(self) -> None:
        """Show the host's interactive credential picker."""
        ...
