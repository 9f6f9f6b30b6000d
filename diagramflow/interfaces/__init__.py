"""Plugin interfaces for diagram rendering backends."""

from diagramflow.interfaces.renderer import Drawable, RendererCapability

__all__ = [
    "Drawable",
    "RendererCapability",
]
