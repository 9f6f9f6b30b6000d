"""Locate fenced diagram blocks in markdown text."""

from __future__ import annotations

import re

from diagramflow.ids import IdFactory
from diagramflow.models import DIAGRAM_LANGUAGES, DiagramBlock, DiagramSegment, Segment, TextSegment

# Up to three spaces of indent, then ``` or ~~~ (three or more) and an info string.
_FENCE_OPEN_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<info>[^\r\n]*)")


def _closes(line: str, fence: str) -> bool:
    stripped = line.rstrip("\r\n")
    body = stripped.lstrip(" ")
    if len(stripped) - len(body) > 3:
        return False
    run = len(body) - len(body.lstrip(fence[0]))
    return run >= len(fence) and not body[run:].strip()


def extract_fenced_blocks(document: str) -> list[DiagramBlock]:
    """Every closed fenced code block, diagram or not, in document order."""
    blocks: list[DiagramBlock] = []
    # Only \n ends a line; form feeds and Unicode separators belong to the code.
    lines = [line for line in re.split(r"(?<=\n)", document) if line]
    offsets = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line)

    i = 0
    while i < len(lines):
        m = _FENCE_OPEN_RE.match(lines[i])
        if not m or (m.group("fence")[0] == "`" and "`" in m.group("info")):
            i += 1
            continue
        fence = m.group("fence")
        close = next((j for j in range(i + 1, len(lines)) if _closes(lines[j], fence)), None)
        if close is None:
            # Unclosed fence: leave the rest of the document alone.
            break
        info = m.group("info").split()
        code = "".join(lines[i + 1 : close]).rstrip("\r\n")
        blocks.append(
            DiagramBlock(
                language=info[0] if info else "",
                code=code,
                start_index=offsets[i],
                end_index=offsets[close] + len(lines[close].rstrip("\r\n")),
            )
        )
        i = close + 1
    return blocks


def extract_diagram_blocks(document: str) -> list[DiagramBlock]:
    """Fenced blocks tagged with a known diagram language (case-insensitive)."""
    return [b for b in extract_fenced_blocks(document) if b.key in DIAGRAM_LANGUAGES]


def split_segments(document: str, blocks: list[DiagramBlock], id_factory: IdFactory) -> list[Segment]:
    """Cut *document* into static text and diagram segments, in source order.

    Ids are drawn from *id_factory* here, before any rendering starts.
    """
    segments: list[Segment] = []
    cursor = 0
    for block in sorted(blocks, key=lambda b: b.start_index):
        if block.start_index > cursor:
            segments.append(TextSegment(text=document[cursor : block.start_index]))
        segments.append(DiagramSegment(block=block, diagram_id=id_factory()))
        cursor = block.end_index
    if cursor < len(document):
        segments.append(TextSegment(text=document[cursor:]))
    return segments
