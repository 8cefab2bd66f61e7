"""Textual scopes: paragraph boundaries and contexts where markers are ignored."""

import re

_PARAGRAPH_BREAK_RE = re.compile(r"\n(?:[ \t]*\n)+")
_FENCED_CODE_RE = re.compile(
    r"^[ \t]*(```|~~~)[^\n]*\n.*?(?:^[ \t]*\1[ \t]*$|\Z)",
    re.MULTILINE | re.DOTALL,
)
_DISPLAY_MATH_RE = re.compile(r"\$\$.+?\$\$", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
_INLINE_MATH_RE = re.compile(r"(?<!\$)\$[^$\n]+\$(?!\$)")


def paragraph_spans(text: str) -> list[tuple[int, int]]:
    """Split text into (start, end) spans of blank-line separated paragraphs.

    Whitespace-only spans are left out.
    """
    spans: list[tuple[int, int]] = []
    start = 0
    for match in _PARAGRAPH_BREAK_RE.finditer(text):
        if text[start : match.start()].strip():
            spans.append((start, match.start()))
        start = match.end()
    if text[start:].strip():
        spans.append((start, len(text)))
    return spans


def paragraph_bounds(text: str, position: int) -> tuple[int, int] | None:
    """Return the paragraph span containing position, or None between paragraphs."""
    for start, end in paragraph_spans(text):
        if start <= position <= end:
            return start, end
    return None


class ParagraphScopeResolver:
    """Resolve scopes as blank-line separated paragraphs.

    Remembers the spans of the last text it saw, so resolving every marker of one
    document only splits it once.
    """

    def __init__(self) -> None:
        self._text: str | None = None
        self._spans: list[tuple[int, int]] = []

    def get_scope_boundaries(self, position: int, text: str) -> tuple[int, int] | None:
        """Return (start, end) of the paragraph containing position."""
        if text is not self._text:
            self._text = text
            self._spans = paragraph_spans(text)
        for start, end in self._spans:
            if start <= position <= end:
                return start, end
        return None


def find_excluded_ranges(text: str) -> list[tuple[int, int]]:
    """Find fenced code, inline code and math spans.

    Markers overlapping any of these spans are not treated as markers.
    """
    ranges: list[tuple[int, int]] = []
    for pattern in (_FENCED_CODE_RE, _DISPLAY_MATH_RE, _INLINE_CODE_RE, _INLINE_MATH_RE):
        ranges.extend((m.start(), m.end()) for m in pattern.finditer(text))
    return sorted(ranges)


def range_within_excluded(start: int, end: int, excluded: list[tuple[int, int]]) -> bool:
    """Check whether [start, end) overlaps any excluded range."""
    return any(ex_start < end and start < ex_end for ex_start, ex_end in excluded)
