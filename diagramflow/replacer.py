"""DiagramReplacer: swaps diagram blocks in a document for rendered containers."""

from __future__ import annotations

import asyncio
import logging
import os

from diagramflow.classifier import classify, log_diagram_error
from diagramflow.config.loader import load_config
from diagramflow.config.models import DiagramflowConfig
from diagramflow.extractor import extract_diagram_blocks, split_segments
from diagramflow.ids import IdFactory, uuid_ids
from diagramflow.markup import error_container, loading_placeholder, success_container
from diagramflow.models import (
    DiagramBlock,
    DiagramSegment,
    RenderFailure,
    RenderOutcome,
    RenderSuccess,
    TextSegment,
)
from diagramflow.registry import RendererRegistry
from diagramflow.timeout import with_timeout

logger = logging.getLogger(__name__)


class DiagramReplacer:
    """Renders every diagram block of a document through a ``RendererRegistry``.

    Processing runs in four steps: extract the blocks, split the document into
    ordered segments (assigning container ids up front), render each block
    independently, then join the segments. Output order therefore follows the
    source, whatever order the renders finish in, and a failing block turns into
    an error container without affecting the others.
    """

    def __init__(
        self,
        registry: RendererRegistry,
        *,
        timeout_ms: int = 30000,
        id_factory: IdFactory | None = None,
        include_source: bool = True,
        concurrent: bool = True,
    ) -> None:
        self.registry = registry
        self.timeout_ms = timeout_ms
        self.id_factory = id_factory or uuid_ids()
        self.include_source = include_source
        self.concurrent = concurrent

    @classmethod
    def from_config(
        cls,
        registry: RendererRegistry,
        config: DiagramflowConfig,
        id_factory: IdFactory | None = None,
    ) -> DiagramReplacer:
        return cls(
            registry,
            timeout_ms=config.render.timeout_ms,
            id_factory=id_factory,
            include_source=config.render.include_source,
            concurrent=config.render.concurrent,
        )

    async def process(self, document: str) -> str:
        blocks = extract_diagram_blocks(document)
        if not blocks:
            return document

        segments = split_segments(document, blocks, self.id_factory)
        diagrams = [s for s in segments if isinstance(s, DiagramSegment)]
        logger.debug("Rendering %d diagram(s)", len(diagrams))

        if self.concurrent:
            rendered = await asyncio.gather(*(self._render_segment(s) for s in diagrams))
        else:
            rendered = [await self._render_segment(s) for s in diagrams]

        containers = iter(rendered)
        return "".join(
            s.text if isinstance(s, TextSegment) else next(containers) for s in segments
        )

    def render_pending(self, document: str) -> str:
        """The document with a loading placeholder standing in for each diagram."""
        blocks = extract_diagram_blocks(document)
        if not blocks:
            return document
        segments = split_segments(document, blocks, self.id_factory)
        return "".join(
            loading_placeholder(s.diagram_id, s.block.language)
            if isinstance(s, DiagramSegment)
            else s.text
            for s in segments
        )

    async def render_outcome(self, block: DiagramBlock) -> RenderOutcome:
        try:
            drawable = await with_timeout(
                self.registry.render_diagram(block.language, block.code),
                self.timeout_ms,
                f"{block.language} diagram rendering",
            )
        except Exception as exc:
            return RenderFailure(record=classify(exc, block.language))
        return RenderSuccess(drawable=drawable)

    async def _render_segment(self, segment: DiagramSegment) -> str:
        block = segment.block
        outcome = await self.render_outcome(block)
        if isinstance(outcome, RenderSuccess):
            try:
                return success_container(segment.diagram_id, block.language, outcome.drawable)
            except Exception as exc:
                # A drawable that cannot be serialized fails its own block only.
                record = classify(exc, block.language)
        else:
            record = outcome.record

        log_diagram_error(record, block.language, block.code)
        code = block.code if self.include_source else None
        return error_container(segment.diagram_id, block.language, record, code)


async def render_document(
    document: str,
    registry: RendererRegistry | None = None,
    config: DiagramflowConfig | None = None,
    config_path: str | os.PathLike | None = None,
) -> str:
    """One-shot helper: build a replacer from *config* and process *document*.

    Without *config*, settings are read with ``load_config(config_path)``.
    """
    if config is None:
        config = await asyncio.to_thread(load_config, config_path)
    registry = registry or RendererRegistry(config)
    return await DiagramReplacer.from_config(registry, config).process(document)
