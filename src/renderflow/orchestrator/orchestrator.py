"""Edit orchestrator: turns directives into new render nodes.

One orchestrator serves one project's version graph. ``apply`` resolves
the current render, assembles a GenerationRequest for the directive,
calls the generation gateway, and on success records the result as a
child of the render the edit started from.

Guarantees:
- At most one apply per project is in flight; a second one, or an undo,
  select or delete issued meanwhile, raises OperationInProgressError.
- A failed, timed-out or cancelled apply leaves the graph unchanged.
- Region problems are reported before any network activity.
- Classified gateway failures are propagated, never retried here.

Concurrency Model:
    The edit lock lives on the VersionGraph, so orchestrators sharing a
    project also exclude each other. Taking it and every graph mutation
    happen synchronously on the event loop, with no await in between.
    Cancellation bumps an epoch counter; an apply only commits when its
    epoch is still current.
"""

from __future__ import annotations

import asyncio
import uuid

from renderflow.config import Settings
from renderflow.config import settings as default_settings
from renderflow.core.crop_engine import CropEngine
from renderflow.core.masks import build_selection_mask, encode_png
from renderflow.generation.protocol import (
    AnalysisGateway,
    GatewayUnavailableError,
    GeneratedArtifact,
    GenerationGateway,
    GenerationRequest,
    StructuredDescription,
)
from renderflow.geometry.aspect import aspect_ratio_of
from renderflow.geometry.regions import require_non_degenerate
from renderflow.history.exceptions import NoCurrentRenderError
from renderflow.history.graph import VersionGraph
from renderflow.history.nodes import RenderNode
from renderflow.orchestrator.directives import (
    CompositePlacement,
    Directive,
    GlobalEdit,
    MultiViewGrid,
    SelectiveEdit,
    ZoneView,
)
from renderflow.orchestrator.exceptions import (
    ApplyCancelledError,
    OperationInProgressError,
)
from renderflow.utils.logging import correlation_context, get_logger

logger = get_logger(__name__)


class EditOrchestrator:
    """Applies edit directives to a project's version graph.

    Usage:
        orchestrator = EditOrchestrator(graph, ChatImageGateway())
        node = await orchestrator.apply(GlobalEdit(text="Warmer lighting"))
        assert graph.current_id == node.id
    """

    __slots__ = (
        "_analysis",
        "_crop_engine",
        "_epoch",
        "_gateway",
        "_graph",
        "_in_flight",
        "_pending",
        "_settings",
    )

    def __init__(
        self,
        graph: VersionGraph,
        gateway: GenerationGateway,
        analysis_gateway: AnalysisGateway | None = None,
        crop_engine: CropEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            graph: The project's version graph.
            gateway: Image generation gateway.
            analysis_gateway: Optional analysis gateway for zone views.
            crop_engine: Crop engine for zone crops. Defaults to CropEngine().
            settings: Settings; defaults to the module singleton.
        """
        self._graph = graph
        self._gateway = gateway
        self._analysis = analysis_gateway
        self._settings = settings or default_settings
        self._crop_engine = crop_engine or CropEngine(settings=self._settings)
        self._in_flight = False
        self._epoch = 0
        self._pending: asyncio.Future[GeneratedArtifact] | None = None

    @property
    def graph(self) -> VersionGraph:
        return self._graph

    @property
    def in_flight(self) -> bool:
        """Whether this orchestrator's apply is currently running."""
        return self._in_flight

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    async def apply(self, directive: Directive) -> RenderNode:
        """Apply ``directive`` to the current render.

        Returns:
            The new node, which is now current.

        Raises:
            OperationInProgressError: Another apply is in flight.
            NoCurrentRenderError: The graph has no current render.
            InvalidRegionError: The directive's region is degenerate.
            SourceUnavailableError: A zone crop source could not be read.
            ApplyCancelledError: cancel() was called before the edit committed.
            GatewayError: The generation service failed (classified).
        """
        self._require_idle("apply an edit")
        self._graph.begin_edit(self)
        self._in_flight = True
        epoch = self._epoch
        request_id = uuid.uuid4().hex[:12]

        try:
            with correlation_context(
                project_id=self._graph.project_id, request_id=request_id
            ):
                return await self._apply(directive, epoch, request_id)
        finally:
            self._in_flight = False
            self._pending = None
            self._graph.end_edit(self)

    async def _apply(self, directive: Directive, epoch: int, request_id: str) -> RenderNode:
        try:
            source = self._graph.current
            if source is None:
                raise NoCurrentRenderError(
                    f"Project {self._graph.project_id} has no current render"
                )

            logger.info("Applying edit", shape=directive.shape, source=source.id)
            request = await self._build_request(directive, source)
            self._check_epoch(epoch, request_id)

            artifact = await self._generate(request, epoch, request_id)
            self._check_epoch(epoch, request_id)

            node = self._graph.create_child(
                source.id,
                artifact.artifact_ref,
                directive.text,
                directive.node_kind,
            )
            logger.info(
                "Edit applied",
                render_node=node.id,
                kind=node.kind.value,
                latency_ms=round(artifact.latency_ms),
            )
            return node
        except asyncio.CancelledError:
            logger.info("Edit task cancelled")
            raise
        except Exception as e:
            logger.warning("Edit failed", error=str(e), error_type=type(e).__name__)
            raise

    def cancel(self) -> bool:
        """Abandon the in-flight apply, if any.

        The pending gateway call is cancelled and a late response is
        discarded; the apply raises ApplyCancelledError.

        Returns:
            True if an apply was in flight.
        """
        if not self._in_flight:
            return False
        self._epoch += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        logger.info("Edit cancellation requested", project_id=self._graph.project_id)
        return True

    # ------------------------------------------------------------------
    # Guarded graph mutations
    # ------------------------------------------------------------------

    def undo(self, node_id: str | None = None) -> RenderNode:
        """Undo via the graph; refused while an edit is in flight."""
        self._require_idle("undo")
        return self._graph.undo(node_id)

    def select_existing(self, node_id: str) -> RenderNode:
        """Select an existing render; refused while an edit is in flight."""
        self._require_idle("select a render")
        return self._graph.select_existing(node_id)

    def delete_node(self, node_id: str) -> RenderNode:
        """Delete a render; refused while an edit is in flight."""
        self._require_idle("delete a render")
        return self._graph.delete_node(node_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_idle(self, action: str) -> None:
        if self._graph.edit_in_progress:
            raise OperationInProgressError(
                f"Cannot {action} while an edit is in progress",
                project_id=self._graph.project_id,
            )

    def _check_epoch(self, epoch: int, request_id: str) -> None:
        if epoch != self._epoch:
            raise ApplyCancelledError("Edit was cancelled", request_id=request_id)

    async def _generate(
        self,
        request: GenerationRequest,
        epoch: int,
        request_id: str,
    ) -> GeneratedArtifact:
        timeout = self._settings.GENERATION_TIMEOUT_SECONDS
        task = asyncio.ensure_future(self._gateway.generate(request))
        self._pending = task
        try:
            return await asyncio.wait_for(task, timeout=timeout)
        except TimeoutError as e:
            raise GatewayUnavailableError(
                f"Generation timed out after {timeout:.0f}s"
            ) from e
        except asyncio.CancelledError:
            if epoch != self._epoch:
                raise ApplyCancelledError(
                    "Edit was cancelled", request_id=request_id
                ) from None
            raise
        finally:
            if not task.done():
                task.cancel()

    async def _build_request(
        self,
        directive: Directive,
        source: RenderNode,
    ) -> GenerationRequest:
        default_ratio = directive.aspect_ratio or self._settings.DEFAULT_ASPECT_RATIO

        if isinstance(directive, GlobalEdit):
            return GenerationRequest(
                kind=directive.node_kind,
                source_artifact_ref=source.artifact_ref,
                directive=directive.text,
                aspect_ratio=default_ratio,
            )

        if isinstance(directive, SelectiveEdit):
            require_non_degenerate(directive.region)
            width, height = directive.mask_size or (
                self._settings.MASK_WIDTH,
                self._settings.MASK_HEIGHT,
            )
            mask = build_selection_mask(directive.region, width, height)
            references = (directive.reference_artifact,) if directive.reference_artifact else ()
            return GenerationRequest(
                kind=directive.node_kind,
                source_artifact_ref=source.artifact_ref,
                directive=directive.text,
                region=directive.region,
                mask_raster=encode_png(mask),
                reference_artifacts=references,
                aspect_ratio=default_ratio,
            )

        if isinstance(directive, ZoneView):
            return await self._build_zone_request(directive, source)

        if isinstance(directive, CompositePlacement):
            return GenerationRequest(
                kind=directive.node_kind,
                source_artifact_ref=source.artifact_ref,
                directive=directive.text,
                placements=directive.placements,
                aspect_ratio=default_ratio,
            )

        if isinstance(directive, MultiViewGrid):
            if directive.focus_region is not None:
                require_non_degenerate(directive.focus_region)
            return GenerationRequest(
                kind=directive.node_kind,
                source_artifact_ref=source.artifact_ref,
                directive=directive.text,
                region=directive.focus_region,
                views=directive.views,
                aspect_ratio=default_ratio,
            )

        raise TypeError(f"Unsupported directive: {type(directive).__name__}")

    async def _build_zone_request(
        self,
        directive: ZoneView,
        source: RenderNode,
    ) -> GenerationRequest:
        require_non_degenerate(directive.zone_region)
        layout = directive.layout_artifact or source.artifact_ref
        crop = await self._crop_engine.crop_region(layout, directive.zone_region)

        text = directive.text
        if directive.analyze and self._analysis is not None:
            description = await self._analyze(crop.data_url, directive.zone_name or "")
            if description is not None:
                analysis_text = description.to_prompt_text()
                text = f"{text}\n\n{analysis_text}".strip() if analysis_text else text

        max_styles = self._settings.MAX_STYLE_REFERENCES
        styles = directive.style_references
        if len(styles) > max_styles:
            logger.warning(
                "Dropping extra style references",
                provided=len(styles),
                kept=max_styles,
            )
            styles = styles[:max_styles]

        return GenerationRequest(
            kind=directive.node_kind,
            source_artifact_ref=crop.data_url,
            directive=text,
            region=directive.zone_region,
            reference_artifacts=(*styles, *directive.product_references),
            aspect_ratio=directive.aspect_ratio or aspect_ratio_of(*crop.size),
        )

    async def _analyze(self, image_ref: str, hint: str) -> StructuredDescription | None:
        assert self._analysis is not None
        timeout = self._settings.ANALYSIS_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(
                self._analysis.analyze(image_ref, hint), timeout=timeout
            )
        except TimeoutError:
            logger.warning("Zone analysis timed out; continuing without it", timeout=timeout)
        except Exception as e:
            # CancelledError is a BaseException and still propagates.
            logger.warning(
                "Zone analysis failed; continuing without it",
                error=str(e),
                error_type=type(e).__name__,
            )
        return None
