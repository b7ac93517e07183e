"""Saves artifacts to disk as image files."""

import base64
import binascii
import logging
from pathlib import Path

from visionstudio.models.artifacts import Artifact

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


class ExportService:
    """Writes artifact images into a directory."""

    def __init__(self, directory: str | Path, prefix: str = "Visionary"):
        """
        Initialize export service.

        Args:
            directory: Destination directory (created on first export)
            prefix: Filename prefix, files are named ``<prefix>_<artifact id>.<ext>``
        """
        self.directory = Path(directory).expanduser()
        self.prefix = prefix

    def filename_for(self, artifact: Artifact) -> str:
        extension = _EXTENSIONS.get(artifact.mime_type, "png")
        return f"{self.prefix}_{artifact.id}.{extension}"

    def export(self, artifact: Artifact) -> Path:
        """
        Decode the artifact's data URL and write it to disk.

        Returns:
            Path of the written file

        Raises:
            ValueError: The artifact URL is not a base64 data URL
            OSError: The file could not be written
        """
        header, _, payload = artifact.url.partition(",")
        if not header.startswith("data:") or ";base64" not in header:
            raise ValueError(f"Artifact {artifact.id} does not hold inline image data")
        try:
            image_bytes = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Artifact {artifact.id} has invalid image data") from e

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / self.filename_for(artifact)
        path.write_bytes(image_bytes)
        logger.info("Exported artifact %s to %s", artifact.id, path)
        return path
