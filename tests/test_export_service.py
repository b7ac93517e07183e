"""Tests for artifact export."""

import pytest

from visionstudio.models.artifacts import Artifact
from visionstudio.models.requests import AspectRatio, ModelTier
from visionstudio.services.export_service import ExportService

from conftest import PNG_B64, PNG_BYTES


def make_artifact(url: str) -> Artifact:
    return Artifact(
        id="abc",
        url=url,
        source_prompt="fox",
        model=ModelTier.STANDARD,
        aspect_ratio=AspectRatio.SQUARE,
    )


def test_export_writes_decoded_image(tmp_path):
    exporter = ExportService(tmp_path / "out")

    path = exporter.export(make_artifact(f"data:image/png;base64,{PNG_B64}"))

    assert path == tmp_path / "out" / "Visionary_abc.png"
    assert path.read_bytes() == PNG_BYTES


def test_export_uses_mime_extension(tmp_path):
    exporter = ExportService(tmp_path, prefix="Shot")

    assert exporter.filename_for(make_artifact("data:image/jpeg;base64,AAAA")) == "Shot_abc.jpg"


def test_export_rejects_non_data_url(tmp_path):
    with pytest.raises(ValueError):
        ExportService(tmp_path).export(make_artifact("https://example.com/a.png"))


def test_export_rejects_invalid_base64(tmp_path):
    with pytest.raises(ValueError):
        ExportService(tmp_path).export(make_artifact("data:image/png;base64,@@@"))
