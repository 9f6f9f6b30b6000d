from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator
from typing import Literal


def validate_kroki_url(url: str) -> str:
    """Reject non-http(s) schemes and header injection in the Kroki URL."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Kroki url must be http(s), got {parsed.scheme or 'nothing'}")
    if "\r" in url or "\n" in url:
        raise ValueError("CRLF injection detected in Kroki url")
    if not parsed.hostname:
        raise ValueError(f"Kroki url has no host: {url}")
    return url.rstrip("/")


class RenderSettings(BaseModel):
    timeout_ms: int = Field(default=30000, gt=0)
    concurrent: bool = True
    include_source: bool = True


class KrokiConfig(BaseModel):
    url: str = "https://kroki.io"
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "diagramflow/0.1"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return validate_kroki_url(v)


class GraphvizConfig(BaseModel):
    dot_path: str = "dot"
    engine: Literal["dot", "neato", "fdp", "sfdp", "circo", "twopi"] = "dot"
    timeout: float = Field(default=30.0, gt=0)


class MermaidConfig(BaseModel):
    theme: Literal["default", "neutral", "dark", "forest", "base"] = "default"


class DiagramflowConfig(BaseModel):
    render: RenderSettings = Field(default_factory=RenderSettings)
    kroki: KrokiConfig = Field(default_factory=KrokiConfig)
    graphviz: GraphvizConfig = Field(default_factory=GraphvizConfig)
    mermaid: MermaidConfig = Field(default_factory=MermaidConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
