"""Error taxonomy for diagram rendering."""

from __future__ import annotations

import traceback
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    """Fixed set of failure kinds a diagram render can end in."""

    syntax_error = "syntax_error"
    library_load_error = "library_load_error"
    render_timeout = "render_timeout"
    unknown_error = "unknown_error"


USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.syntax_error: "The diagram syntax is invalid. Please check your diagram code for errors.",
    ErrorKind.library_load_error: "Failed to load the diagram library. Please check your internet connection.",
    ErrorKind.render_timeout: "The diagram took too long to render. Try simplifying it.",
    ErrorKind.unknown_error: "An unexpected error occurred while rendering the diagram.",
}


def build_debug_message(kind: ErrorKind, message: str, cause: BaseException | None) -> str:
    """``<kind>: <message>``, followed by the cause and its traceback when present."""
    text = f"{kind.value}: {message}"
    if cause is not None:
        text += f"\n\nOriginal error: {cause}"
        stack = "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
        if stack:
            text += f"\n\nStack trace:\n{stack.rstrip()}"
    return text


class DiagramRenderError(Exception):
    """A render failure that already carries its classified kind."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.unknown_error,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.kind]

    @property
    def debug_message(self) -> str:
        return build_debug_message(self.kind, self.message, self.cause)


class RendererNotFoundError(LookupError):
    """Raised when no renderer is known for a diagram language."""

    def __init__(self, language: str):
        self.language = language
        super().__init__(f"No loader found for language: {language}")


class ErrorRecord(BaseModel):
    """A classified failure, ready to be turned into an error container."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ErrorKind
    message: str
    user_message: str
    cause: BaseException | None = None

    @property
    def debug_message(self) -> str:
        return build_debug_message(self.kind, self.message, self.cause)

    def to_exception(self) -> DiagramRenderError:
        return DiagramRenderError(self.message, self.kind, self.cause)
