"""Heuristic classification of render failures.

Backends raise plain exceptions with free-form messages, so the kind is
inferred from keywords in the message rather than from exception types.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable

from diagramflow.errors import USER_MESSAGES, DiagramRenderError, ErrorKind, ErrorRecord
from diagramflow.interfaces.renderer import Drawable
from diagramflow.timeout import with_timeout

logger = logging.getLogger(__name__)

SYNTAX_PATTERNS: dict[str, tuple[str, ...]] = {
    "mermaid": ("syntax", "parse", "no diagram type detected", "strange syntax"),
    "dot": ("syntax", "parse", "syntax error in line"),
    "graphviz": ("syntax", "parse"),
    "nomnoml": ("parse", "syntax"),
    "pikchr": ("parse", "syntax", "invalid"),
}

LIBRARY_LOAD_PATTERNS: tuple[str, ...] = (
    "failed to load",
    "failed to initialize",
    "network",
    "404",
    "fetch",
    "import",
)

_LINE_RE = re.compile(r"line\s+(\d+)", re.IGNORECASE)


def _message_of(error: BaseException) -> str:
    if isinstance(error, DiagramRenderError):
        return error.message
    return str(error)


def is_syntax_error(message: str, language: str) -> bool:
    lowered = message.lower()
    return any(p in lowered for p in SYNTAX_PATTERNS.get(language.lower(), ()))


def is_library_load_error(message: str) -> bool:
    lowered = message.lower()
    return any(p in lowered for p in LIBRARY_LOAD_PATTERNS)


def _syntax_message(message: str, language: str) -> str:
    match = _LINE_RE.search(message)
    if match:
        return f"Syntax error at line {match.group(1)}. Please check your {language} diagram code."
    return f"Invalid {language} diagram syntax. Please check your code for errors."


def _library_load_message(message: str) -> str:
    lowered = message.lower()
    if "cdn" in lowered or "network" in lowered:
        return "Could not load diagram library from CDN. Check your internet connection."
    return "Failed to load diagram library. Please refresh the page and try again."


def _record(kind: ErrorKind, message: str, cause: BaseException | None) -> ErrorRecord:
    return ErrorRecord(kind=kind, message=message, user_message=USER_MESSAGES[kind], cause=cause)


def classify(error: BaseException, language: str) -> ErrorRecord:
    """Map *error* raised while rendering a *language* diagram onto an ``ErrorRecord``."""
    # Timeouts and registry load failures arrive already classified.
    if isinstance(error, DiagramRenderError) and error.kind is not ErrorKind.unknown_error:
        return _record(error.kind, error.message, error.cause)

    message = _message_of(error)
    cause = error.cause if isinstance(error, DiagramRenderError) and error.cause else error

    if is_syntax_error(message, language):
        return _record(ErrorKind.syntax_error, _syntax_message(message, language), cause)
    if is_library_load_error(message):
        return _record(ErrorKind.library_load_error, _library_load_message(message), cause)
    return _record(ErrorKind.unknown_error, message, cause)


def with_error_handling(
    render_fn: Callable[[str], Awaitable[Drawable]],
    language: str,
    *,
    timeout_ms: int = 30000,
    enable_timeout: bool = True,
) -> Callable[[str], Awaitable[Drawable]]:
    """Wrap *render_fn* so every failure surfaces as a classified ``DiagramRenderError``."""

    async def safe_render(code: str) -> Drawable:
        try:
            if enable_timeout:
                return await with_timeout(
                    render_fn(code), timeout_ms, f"{language} diagram rendering"
                )
            return await render_fn(code)
        except Exception as exc:
            record = classify(exc, language)
            raise record.to_exception() from exc

    return safe_render


def log_diagram_error(record: ErrorRecord, language: str, code: str | None = None) -> None:
    logger.error(
        "Diagram rendering error (%s): %s [%s] %s",
        language.upper(),
        record.user_message,
        record.kind.value,
        record.message,
    )
    if record.cause is not None:
        logger.debug("Original error for %s diagram: %r", language, record.cause)
    if code:
        logger.debug("Diagram code:\n%s", code)
