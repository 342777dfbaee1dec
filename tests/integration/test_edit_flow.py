"""End-to-end edit flow against a mocked gateway.

Real gateway clients, orchestrator, crop engine and project store; only
the HTTP endpoint is faked (respx).
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx

from renderflow.config import Settings
from renderflow.core import CropEngine
from renderflow.generation import ChatAnalysisGateway, ChatImageGateway, QuotaExceededError
from renderflow.geometry import (
    ContainerRect,
    RectRegion,
    ZoneCollection,
    compute_contain_bounds,
    normalize_rect,
    pixel_to_percentage,
)
from renderflow.history import NodeKind, VersionGraph
from renderflow.orchestrator import EditOrchestrator, GlobalEdit, SelectiveEdit, ZoneView
from renderflow.persistence import ProjectStore

pytestmark = pytest.mark.integration

COMPLETIONS_URL = "https://gateway.test/v1/chat/completions"


class _Gateway:
    """Fake chat endpoint: image responses for the image model, JSON for analysis."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.bodies: list[dict] = []
        self.quota_exhausted = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.bodies.append(body)
        if body["model"] == self.settings.ANALYSIS_MODEL:
            content = json.dumps(
                {"summary": "Lounge corner", "items": [{"name": "sofa", "category": "furniture"}]}
            )
            message: dict = {"role": "assistant", "content": content}
        elif self.quota_exhausted:
            return httpx.Response(402, json={"error": {"message": "Payment required"}})
        else:
            count = sum(1 for b in self.bodies if b["model"] == self.settings.GENERATION_MODEL)
            message = {
                "role": "assistant",
                "content": None,
                "images": [
                    {"type": "image_url", "image_url": {"url": f"https://cdn.test/gen-{count}.png"}}
                ],
            }
        return httpx.Response(
            200,
            json={
                "id": "chatcmpl-flow",
                "object": "chat.completion",
                "created": 1700000000,
                "model": body["model"],
                "choices": [{"index": 0, "finish_reason": "stop", "message": message}],
            },
        )


@pytest.mark.asyncio
@respx.mock
async def test_edit_undo_branch_zone_and_reload(
    test_settings: Settings, png_file: Path, tmp_path: Path
) -> None:
    fake = _Gateway(test_settings)
    respx.post(COMPLETIONS_URL).mock(side_effect=fake)

    graph = VersionGraph("flow")
    root = graph.create_root("https://cdn.test/r0.png", "Scandinavian living room")
    orchestrator = EditOrchestrator(
        graph,
        ChatImageGateway(settings=test_settings),
        analysis_gateway=ChatAnalysisGateway(settings=test_settings),
        crop_engine=CropEngine(settings=test_settings),
        settings=test_settings,
    )

    # Global edit, then undo and branch with a selective edit.
    warmer = await orchestrator.apply(GlobalEdit(text="Warmer lighting"))
    assert warmer.artifact_ref == "https://cdn.test/gen-1.png"
    assert orchestrator.undo().id == root.id

    # The user drags on an 800x450 container showing a 1600x750 render.
    image_bounds = compute_contain_bounds(800, 450, 1600, 750)
    assert image_bounds is not None
    container = ContainerRect(left=0, top=0, width=800, height=450)
    start = pixel_to_percentage(80, 225, container, image_bounds)
    end = pixel_to_percentage(480, 400, container, image_bounds)
    assert start is not None and end is not None
    region = normalize_rect(end, start)

    rug = await orchestrator.apply(SelectiveEdit(text="Add a wool rug", region=region))
    assert [c.id for c in graph.children_of(root.id)] == [warmer.id, rug.id]

    selective_body = fake.bodies[-1]
    images = [p for p in selective_body["messages"][0]["content"] if p["type"] == "image_url"]
    assert images[0]["image_url"]["url"] == "https://cdn.test/r0.png"
    assert images[1]["image_url"]["url"].startswith("data:image/png;base64,")

    # Zone view cropped from a local floor plan, enriched by analysis.
    zones = ZoneCollection()
    lounge = zones.add("Lounge", RectRegion(x_start=0, y_start=0, x_end=50, y_end=100))
    view = await orchestrator.apply(
        ZoneView(
            zone_region=lounge.region,
            zone_name=lounge.name,
            layout_artifact=str(png_file),
            style_references=("https://cdn.test/style.png",),
        )
    )
    assert view.kind is NodeKind.ZONE_VIEW
    assert view.parent_id == rug.id

    zone_body = fake.bodies[-1]
    assert zone_body["generationConfig"] == {"aspectRatio": "1:1"}
    zone_images = [p["image_url"]["url"] for p in zone_body["messages"][0]["content"] if p["type"] == "image_url"]
    assert zone_images[0] == "https://cdn.test/style.png"
    assert zone_images[-1].startswith("data:image/jpeg;base64,")
    assert "sofa (furniture)" in zone_body["messages"][0]["content"][0]["text"]

    # A classified failure leaves the graph as it was.
    fake.quota_exhausted = True
    with pytest.raises(QuotaExceededError):
        await orchestrator.apply(GlobalEdit(text="One more"))
    assert graph.current_id == view.id

    # Save and reload: same nodes, same current, same zones.
    store = ProjectStore(tmp_path / "projects")
    store.save(graph, zones)
    reloaded, reloaded_zones = store.load("flow")
    assert reloaded.nodes == graph.nodes
    assert reloaded.current_id == view.id
    assert [z.id for z in reloaded_zones] == [lounge.id]
    assert [n.id for n in reloaded.history_path()] == [root.id, rug.id, view.id]
