"""Built-in diagram renderers.

Submodules are imported on demand by ``RendererRegistry``; only the base
class is exposed here.
"""

from diagramflow.renderers.base import DiagramRenderer, RendererError

__all__ = [
    "DiagramRenderer",
    "RendererError",
]
