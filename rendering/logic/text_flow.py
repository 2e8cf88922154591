"""
Text-flow layout for contract bodies.

Wraps each logical line to the printable width using the font's metrics and
assigns every visual line a page and a baseline. The page boundary is checked
before every logical line AND before every wrapped sub-line, so a long
paragraph that crosses the bottom limit continues on the next page.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from reportlab.pdfbase.pdfmetrics import stringWidth

from rendering.models.layout import PositionedLine
from rendering.models.renderer_config import RendererConfig


def sanitize_text(text: str) -> str:
    """Replace characters the standard PDF fonts cannot encode."""
    text = text.replace("\t", "    ")
    return text.encode("cp1252", "replace").decode("cp1252")


@dataclass(frozen=True)
class FlowResult:
    lines: List[PositionedLine]
    page_count: int
    cursor_y: float

    @property
    def last_page_index(self) -> int:
        return self.page_count - 1


class TextFlow:
    def __init__(self, config: RendererConfig):
        self._config = config

    def width(self, text: str) -> float:
        return stringWidth(text, self._config.font_name, self._config.font_size)

    def wrap(self, text: str, max_width: Optional[float] = None) -> List[str]:
        """
        Greedy word wrap. Words wider than the line are hard-broken.

        Returns:
            At least one line; an empty string wraps to [""].
        """
        limit = self._config.text_width if max_width is None else max_width
        if self.width(text) <= limit:
            return [text]

        lines: List[str] = []
        current = ""
        for word in text.split(" "):
            candidate = f"{current} {word}" if current else word
            if self.width(candidate) <= limit:
                current = candidate
                continue
            if current:
                lines.append(current)
            while self.width(word) > limit:
                cut = self._fit(word, limit)
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        if current or not lines:
            lines.append(current)
        return lines

    def _fit(self, word: str, limit: float) -> int:
        for i in range(1, len(word) + 1):
            if self.width(word[:i]) > limit:
                return max(1, i - 1)
        return len(word)

    def layout(self, text: str, *, start_y: float, start_page: int = 0) -> FlowResult:
        cfg = self._config
        y = start_y
        page = start_page
        out: List[PositionedLine] = []

        for line_no, raw in enumerate((text or "").split("\n")):
            raw = sanitize_text(raw.rstrip("\r"))
            if y > cfg.text_bottom:
                page += 1
                y = cfg.top_margin
            if not raw.strip():
                y += cfg.blank_line_advance
                continue
            for i, part in enumerate(self.wrap(raw.rstrip())):
                if y > cfg.text_bottom:
                    page += 1
                    y = cfg.top_margin
                out.append(PositionedLine(
                    page_index=page,
                    y=y,
                    text=part,
                    line_no=line_no,
                    source_text=raw,
                    is_continuation=i > 0,
                ))
                y += cfg.line_height

        return FlowResult(lines=out, page_count=page + 1, cursor_y=y)
