"""Pydantic models shared across the diagram pipeline."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from diagramflow.errors import ErrorRecord

DIAGRAM_LANGUAGES: tuple[str, ...] = ("mermaid", "dot", "graphviz", "nomnoml", "pikchr")


class DiagramBlock(BaseModel):
    """A fenced diagram source region found in a document."""

    model_config = ConfigDict(frozen=True)

    language: str
    code: str
    start_index: int
    end_index: int

    @property
    def key(self) -> str:
        return self.language.lower()


class RenderSuccess(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: Literal["success"] = "success"
    drawable: Any


class RenderFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    record: ErrorRecord


RenderOutcome = RenderSuccess | RenderFailure


class TextSegment(BaseModel):
    """Static document text copied through unchanged."""

    model_config = ConfigDict(frozen=True)

    text: str


class DiagramSegment(BaseModel):
    """A diagram block plus the container id assigned to it at dispatch time."""

    model_config = ConfigDict(frozen=True)

    block: DiagramBlock
    diagram_id: str


Segment = TextSegment | DiagramSegment
