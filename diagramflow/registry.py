"""Language-keyed registry of lazily loaded diagram renderers."""

from __future__ import annotations

import asyncio
import importlib
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass

from diagramflow.config.models import DiagramflowConfig
from diagramflow.errors import DiagramRenderError, ErrorKind, RendererNotFoundError
from diagramflow.interfaces.renderer import Drawable, RendererCapability
from diagramflow.models import DIAGRAM_LANGUAGES

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[RendererCapability]]

# Lazy import paths. Languages sharing a path share one renderer instance.
RENDERER_MODULES: dict[str, tuple[str, str]] = {
    "mermaid": ("diagramflow.renderers.mermaid", "MermaidRenderer"),
    "dot": ("diagramflow.renderers.graphviz", "GraphvizRenderer"),
    "graphviz": ("diagramflow.renderers.graphviz", "GraphvizRenderer"),
    "nomnoml": ("diagramflow.renderers.nomnoml", "NomnomlRenderer"),
    "pikchr": ("diagramflow.renderers.pikchr", "PikchrRenderer"),
}


@dataclass(frozen=True)
class LoadingCallbacks:
    on_complete: Callable[[], None] | None = None
    on_error: Callable[[Exception], None] | None = None


def _module_loader(module_path: str, class_name: str, config: DiagramflowConfig) -> Loader:
    async def load() -> RendererCapability:
        module = await asyncio.to_thread(importlib.import_module, module_path)
        renderer_cls = getattr(module, class_name)
        return renderer_cls(config)

    return load


def default_loaders(config: DiagramflowConfig) -> dict[str, Loader]:
    """Build one loader per import path and map every alias onto it."""
    by_path: dict[tuple[str, str], Loader] = {}
    loaders: dict[str, Loader] = {}
    for language, target in RENDERER_MODULES.items():
        if target not in by_path:
            by_path[target] = _module_loader(*target, config=config)
        loaders[language] = by_path[target]
    return loaders


class RendererRegistry:
    """Owns the language -> renderer mapping and deduplicates concurrent loads.

    Every key is in one of three states: absent, pending (an ``asyncio.Task``
    performing the load) or resolved (the renderer instance). Transitions happen
    without an intervening ``await``, so concurrent callers on the event loop
    either start the single load or await the one already running.
    """

    def __init__(
        self,
        config: DiagramflowConfig | None = None,
        loaders: Mapping[str, Loader] | None = None,
    ) -> None:
        self._config = config or DiagramflowConfig()
        if loaders is None:
            loaders = default_loaders(self._config)
        self._loaders = {lang.lower(): loader for lang, loader in loaders.items()}
        self._slots: dict[str, RendererCapability | asyncio.Task] = {}
        self._initializing: dict[int, asyncio.Task] = {}
        # ids of slot instances whose initialize() completed through this registry
        self._initialized: set[int] = set()
        self._callbacks: dict[str, LoadingCallbacks] = {}

    # -- Language support ---------------------------------------------------

    def supports_language(self, language: str | None) -> bool:
        if not language:
            return False
        return language.lower() in DIAGRAM_LANGUAGES

    def supported_languages(self) -> list[str]:
        return list(DIAGRAM_LANGUAGES)

    # -- Manual registration ------------------------------------------------

    def register(self, language: str, capability: RendererCapability) -> None:
        """Install *capability* under *language*, replacing any existing entry."""
        if capability is None:
            raise TypeError(f"Cannot register null renderer for language: {language}")
        if not callable(getattr(capability, "render", None)):
            raise TypeError(f"Renderer must implement render() for language: {language}")
        self._slots[language.lower()] = capability

    def unregister(self, language: str) -> bool:
        removed = self._slots.pop(language.lower(), None)
        if removed is None:
            return False
        if all(slot is not removed for slot in self._slots.values()):
            self._initialized.discard(id(removed))
        return True

    def clear_renderers(self) -> None:
        self._slots.clear()
        self._initialized.clear()

    def get_renderer(self, language: str) -> RendererCapability | None:
        slot = self._slots.get(language.lower())
        if slot is None or isinstance(slot, asyncio.Future):
            return None
        return slot

    def register_loading_callbacks(
        self,
        language: str,
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._callbacks[language.lower()] = LoadingCallbacks(on_complete, on_error)

    # -- Loading ------------------------------------------------------------

    async def load_renderer(self, language: str) -> RendererCapability:
        """Return the renderer for *language*, loading it at most once."""
        key = language.lower()
        slot = self._slots.get(key)
        if isinstance(slot, asyncio.Future):
            return await asyncio.shield(slot)
        if slot is not None:
            return slot

        loader = self._loaders.get(key)
        if loader is None:
            raise RendererNotFoundError(language)

        shared = self._resolved_alias(key, loader)
        if shared is not None:
            self._slots[key] = shared
            return shared

        task = asyncio.create_task(self._load(key, loader), name=f"load-renderer-{key}")
        self._slots[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: str, loader: Loader) -> RendererCapability:
        task = asyncio.current_task()
        logger.debug("Loading %s renderer", key)
        try:
            capability = await loader()
        except Exception as exc:
            if self._slots.get(key) is task:
                del self._slots[key]
            logger.warning("Failed to load %s renderer: %s", key, exc)
            self._notify_error(key, exc)
            raise DiagramRenderError(
                f"Failed to load {key} renderer: {exc}",
                ErrorKind.library_load_error,
                exc,
            ) from exc

        # An unregister/clear during the load leaves the slot alone.
        if self._slots.get(key) is task:
            self._slots[key] = capability
        logger.debug("Loaded %s renderer: %s", key, type(capability).__name__)
        self._notify_complete(key)
        return capability

    def _resolved_alias(self, key: str, loader: Loader) -> RendererCapability | None:
        for alias, other in self._loaders.items():
            if alias == key or other is not loader:
                continue
            slot = self._slots.get(alias)
            if slot is not None and not isinstance(slot, asyncio.Future):
                return slot
        return None

    # -- Rendering ----------------------------------------------------------

    async def render_diagram(self, language: str, code: str) -> Drawable:
        """Load, initialize if needed, and render. Errors propagate unclassified."""
        capability = await self.load_renderer(language)
        if id(capability) not in self._initialized and not getattr(capability, "initialized", False):
            await self._initialize(capability)
        return await capability.render(code)

    async def _initialize(self, capability: RendererCapability) -> None:
        ident = id(capability)
        task = self._initializing.get(ident)
        if task is None:
            task = asyncio.ensure_future(capability.initialize())
            self._initializing[ident] = task
            task.add_done_callback(lambda _t: self._initializing.pop(ident, None))
        await asyncio.shield(task)
        self._initialized.add(ident)

    # -- Callbacks ----------------------------------------------------------

    def _notify_complete(self, key: str) -> None:
        callbacks = self._callbacks.get(key)
        if callbacks is None or callbacks.on_complete is None:
            return
        try:
            callbacks.on_complete()
        except Exception:
            logger.exception("Loading callback failed for %s", key)

    def _notify_error(self, key: str, error: Exception) -> None:
        callbacks = self._callbacks.get(key)
        if callbacks is None or callbacks.on_error is None:
            return
        try:
            callbacks.on_error(error)
        except Exception:
            logger.exception("Loading error callback failed for %s", key)
