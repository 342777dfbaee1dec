"""Tests for renderflow.generation.converters module."""

from types import SimpleNamespace

from renderflow.generation.converters import (
    extract_image_url,
    png_data_url,
    request_image_urls,
    request_to_chat_content,
)
from renderflow.generation.protocol import GenerationRequest, Placement
from renderflow.geometry import Point
from renderflow.history import NodeKind


class TestRequestImageUrls:
    """Image ordering per edit kind."""

    def test_zone_view_sends_references_then_crop_last(self) -> None:
        request = GenerationRequest(
            kind=NodeKind.ZONE_VIEW,
            source_artifact_ref="data:image/jpeg;base64,CROP",
            directive="Lounge",
            reference_artifacts=("https://cdn.test/style.png", "https://cdn.test/sofa.png"),
        )
        assert request_image_urls(request) == [
            "https://cdn.test/style.png",
            "https://cdn.test/sofa.png",
            "data:image/jpeg;base64,CROP",
        ]

    def test_selective_sends_source_then_mask_then_reference(self) -> None:
        request = GenerationRequest(
            kind=NodeKind.SELECTIVE_EDIT,
            source_artifact_ref="https://cdn.test/r0.png",
            directive="Replace the lamp",
            mask_raster=b"\x89PNG-mask",
            reference_artifacts=("https://cdn.test/lamp.png",),
        )
        urls = request_image_urls(request)
        assert urls[0] == "https://cdn.test/r0.png"
        assert urls[1] == png_data_url(b"\x89PNG-mask")
        assert urls[2] == "https://cdn.test/lamp.png"

    def test_composite_appends_placements_in_order(self) -> None:
        request = GenerationRequest(
            kind=NodeKind.COMPOSITE,
            source_artifact_ref="https://cdn.test/r0.png",
            directive="",
            placements=(
                Placement(reference_artifact="https://cdn.test/a.png", position=Point(x=10, y=10)),
                Placement(reference_artifact="https://cdn.test/b.png", position=Point(x=90, y=90)),
            ),
        )
        assert request_image_urls(request) == [
            "https://cdn.test/r0.png",
            "https://cdn.test/a.png",
            "https://cdn.test/b.png",
        ]


class TestRequestToChatContent:
    """Tests for request_to_chat_content."""

    def test_prompt_text_first(self) -> None:
        request = GenerationRequest(
            kind=NodeKind.GLOBAL_EDIT,
            source_artifact_ref="https://cdn.test/r0.png",
            directive="Warmer light",
        )
        content = request_to_chat_content(request, "PROMPT")
        assert content[0] == {"type": "text", "text": "PROMPT"}
        assert content[1] == {"type": "image_url", "image_url": {"url": "https://cdn.test/r0.png"}}


class TestExtractImageUrl:
    """Tests for extract_image_url."""

    def test_reads_model_extra(self) -> None:
        message = SimpleNamespace(
            model_extra={"images": [{"type": "image_url", "image_url": {"url": "https://x/1.png"}}]}
        )
        assert extract_image_url(message) == "https://x/1.png"

    def test_reads_attribute_objects(self) -> None:
        message = SimpleNamespace(
            images=[SimpleNamespace(image_url=SimpleNamespace(url="https://x/2.png"))]
        )
        assert extract_image_url(message) == "https://x/2.png"

    def test_missing_images(self) -> None:
        assert extract_image_url(SimpleNamespace(model_extra={})) is None
        assert extract_image_url(SimpleNamespace(model_extra={"images": []})) is None
        assert extract_image_url(SimpleNamespace(images=[{"image_url": {"url": ""}}])) is None
