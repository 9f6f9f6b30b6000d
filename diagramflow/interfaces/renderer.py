"""Renderer capability interface."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# Opaque rendered output. Built-in renderers return an ElementTree SVG root.
Drawable = Any


@runtime_checkable
class RendererCapability(Protocol):
    """A diagram backend able to turn source code into a drawable."""

    initialized: bool

    async def initialize(self) -> None: ...

    async def render(self, code: str) -> Drawable: ...
