"""Shared test fixtures for diagramflow."""

from __future__ import annotations

import asyncio

import pytest

from diagramflow.config.models import DiagramflowConfig
from diagramflow.ids import counter_ids
from diagramflow.registry import RendererRegistry


class FakeRenderer:
    """In-memory renderer that records calls and can fail or stall on demand."""

    def __init__(self, name: str = "fake", *, error: Exception | None = None, delay: float = 0.0):
        self.name = name
        self.error = error
        self.delay = delay
        self.initialized = False
        self.init_calls = 0
        self.rendered: list[str] = []

    async def initialize(self) -> None:
        self.init_calls += 1
        await asyncio.sleep(0)
        self.initialized = True

    async def render(self, code: str) -> str:
        self.rendered.append(code)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return f'<svg class="{self.name}"><text>{code}</text></svg>'


class CountingLoader:
    """Async loader returning *renderer* and counting invocations."""

    def __init__(self, renderer=None, *, error: Exception | None = None, delay: float = 0.01):
        self.renderer = renderer
        self.error = error
        self.delay = delay
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.renderer


def make_registry(**renderers: FakeRenderer) -> RendererRegistry:
    """Registry whose loaders hand out the given fake renderers."""
    return RendererRegistry(loaders={lang: CountingLoader(r) for lang, r in renderers.items()})


@pytest.fixture
def sample_config():
    return DiagramflowConfig()


@pytest.fixture
def ids():
    return counter_ids()


@pytest.fixture
def fake_renderers():
    return {
        "mermaid": FakeRenderer("mermaid"),
        "dot": FakeRenderer("dot"),
        "graphviz": FakeRenderer("graphviz"),
        "nomnoml": FakeRenderer("nomnoml"),
        "pikchr": FakeRenderer("pikchr"),
    }


@pytest.fixture
def fake_registry(fake_renderers):
    return make_registry(**fake_renderers)
