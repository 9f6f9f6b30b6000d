"""Nomnoml UML-style sketches."""

from diagramflow.renderers.kroki import KrokiRenderer


class NomnomlRenderer(KrokiRenderer):
    name = "Nomnoml"
    provider = "nomnoml"
