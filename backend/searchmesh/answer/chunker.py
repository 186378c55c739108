"""
Split a formatted document into transport-sized chunks.

Cuts go right before a section header when one falls inside the window;
otherwise the window is hard-sliced. Chunks are plain slices of the input,
so joining them gives back the document unchanged.
"""

import re

DEFAULT_CHUNK_LIMIT = 4096

_SECTION_START_RE = re.compile(r"(?m)^#{1,6}[ \t]")


def _section_starts(document: str) -> list[int]:
    return [m.start() for m in _SECTION_START_RE.finditer(document) if m.start() > 0]


def split_chunks(document: str, limit: int = DEFAULT_CHUNK_LIMIT) -> list[str]:
    if limit <= 0:
        raise ValueError("limit must be positive")
    if len(document) <= limit:
        return [document]

    boundaries = _section_starts(document)
    chunks: list[str] = []
    start = 0
    while len(document) - start > limit:
        window_end = start + limit
        cut = max((b for b in boundaries if start < b <= window_end), default=None)
        if cut is None:
            cut = window_end
        chunks.append(document[start:cut])
        start = cut
    chunks.append(document[start:])
    return chunks
