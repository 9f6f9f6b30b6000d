"""HTML containers substituted in place of diagram blocks."""

from __future__ import annotations

import re
from html import escape

from diagramflow.errors import ErrorRecord
from diagramflow.interfaces.renderer import Drawable
from diagramflow.svg import serialize

_LOADING_TEXT_RE = re.compile(r'(<p class="diagram-loading-text">)(.*?)(</p>)', re.DOTALL)


def _title_case(language: str) -> str:
    return language[:1].upper() + language[1:]


def success_container(diagram_id: str, language: str, drawable: Drawable) -> str:
    return (
        f'<div class="diagram-container" id="{escape(diagram_id)}" '
        f'data-language="{escape(language)}">{serialize(drawable)}</div>'
    )


def error_container(
    diagram_id: str,
    language: str,
    record: ErrorRecord,
    code: str | None = None,
) -> str:
    """Error box: title, fixed user message, and a collapsible details section."""
    parts = [
        f'<div class="diagram-container diagram-error" id="{escape(diagram_id)}" '
        f'data-error-type="{record.kind.value}">',
        f'<p class="diagram-error-title">{escape(_title_case(language))} Diagram Error</p>',
        f'<p class="diagram-error-message">{escape(record.user_message)}</p>',
        '<details class="diagram-error-details">',
        "<summary>Technical details</summary>",
        f'<pre class="diagram-error-debug">{escape(record.debug_message)}</pre>',
    ]
    if code:
        parts += [
            '<div class="diagram-error-code">',
            '<p class="diagram-error-code-label">Diagram code:</p>',
            f'<pre class="diagram-error-code-content">{escape(code)}</pre>',
            "</div>",
        ]
    parts += ["</details>", "</div>"]
    return "\n".join(parts)


def loading_placeholder(diagram_id: str, language: str) -> str:
    return (
        f'<div class="diagram-container diagram-loading" id="{escape(diagram_id)}" '
        f'data-language="{escape(language)}">'
        '<div class="diagram-loading-spinner"></div>'
        f'<p class="diagram-loading-text">Rendering {escape(language)} diagram...</p>'
        "</div>"
    )


def update_loading_progress(placeholder: str, message: str) -> str:
    """Swap the status text of a loading placeholder; unchanged if there is none."""
    return _LOADING_TEXT_RE.sub(
        lambda m: f"{m.group(1)}{escape(message)}{m.group(3)}", placeholder, count=1
    )
