"""Mermaid flowcharts, sequence diagrams, Gantt charts and friends."""

from diagramflow.renderers.kroki import KrokiRenderer


class MermaidRenderer(KrokiRenderer):
    name = "Mermaid"
    provider = "mermaid"

    def diagram_options(self) -> dict[str, str]:
        return {"Theme": self.config.mermaid.theme}
