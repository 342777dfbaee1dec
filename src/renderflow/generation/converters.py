"""Request converters for the chat-completions image gateway.

The gateway takes OpenAI-style multimodal chat messages. These helpers
turn a GenerationRequest (plus its prompt text) into the user message
content list, putting images in the order the edit kind expects:

- zone views: references first, the zone crop LAST
- everything else: source render first, then the mask (if any), then
  references or placement images in order
"""

from __future__ import annotations

import base64
from typing import Any

from renderflow.generation.protocol import GenerationRequest
from renderflow.history.nodes import NodeKind


def png_data_url(data: bytes) -> str:
    """Wrap PNG bytes in a base64 data URL."""
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def image_part(url: str) -> dict[str, Any]:
    """Build an ``image_url`` content part."""
    return {"type": "image_url", "image_url": {"url": url}}


def text_part(text: str) -> dict[str, Any]:
    """Build a ``text`` content part."""
    return {"type": "text", "text": text}


def request_image_urls(request: GenerationRequest) -> list[str]:
    """Return the request's images in the order they are sent."""
    if request.kind is NodeKind.ZONE_VIEW:
        return [*request.reference_artifacts, request.source_artifact_ref]

    urls = [request.source_artifact_ref]
    if request.mask_raster is not None:
        urls.append(png_data_url(request.mask_raster))
    urls.extend(request.reference_artifacts)
    urls.extend(p.reference_artifact for p in request.placements)
    return urls


def request_to_chat_content(request: GenerationRequest, prompt: str) -> list[dict[str, Any]]:
    """Convert a request into chat message content (prompt text first).

    Args:
        request: The generation request.
        prompt: Provider prompt built for the request.

    Returns:
        Content parts for a single ``user`` message.
    """
    return [text_part(prompt), *(image_part(url) for url in request_image_urls(request))]


def extract_image_url(message: Any) -> str | None:
    """Pull the first generated image URL out of a chat completion message.

    The gateway returns images as an extra ``images`` field on the message
    (``[{"type": "image_url", "image_url": {"url": ...}}]``), which the SDK
    keeps as untyped extra data.
    """
    images = getattr(message, "images", None)
    if images is None:
        extra = getattr(message, "model_extra", None) or {}
        images = extra.get("images")
    if not images:
        return None

    first = images[0]
    image_url = first.get("image_url") if isinstance(first, dict) else getattr(first, "image_url", None)
    if isinstance(image_url, dict):
        url = image_url.get("url")
    else:
        url = getattr(image_url, "url", None)
    return url or None
