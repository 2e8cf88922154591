from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Tuple

from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.units import mm

if TYPE_CHECKING:
    from core.config.config_service import ConfigService, RendererSettings


class PageFormat(str, Enum):
    LETTER = "letter"
    A4 = "a4"

    @property
    def size(self) -> Tuple[float, float]:
        return letter if self is PageFormat.LETTER else A4


@dataclass(frozen=True)
class RendererConfig:
    """
    Page geometry and typography of rendered contracts.

    All lengths are PDF points (1pt = 1/72 inch). Vertical positions are
    measured DOWN from the top edge of the page.
    """
    page_format: PageFormat = PageFormat.LETTER
    margin: float = 20 * mm
    top_margin: float = 30 * mm
    # text never starts a line below page_height - bottom_margin
    bottom_margin: float = 40 * mm
    # signature blocks may extend into the bottom margin, but not into the footer
    footer_reserve: float = 15 * mm

    font_name: str = "Times-Roman"
    bold_font_name: str = "Times-Bold"
    font_size: float = 12.0
    line_height: float = 16.0
    blank_line_advance: float = 8.0

    show_header: bool = True
    title_font_size: float = 18.0
    title_gap: float = 8 * mm
    header_gap: float = 12 * mm

    # anchor y = y of the detected label line + anchor_offset
    anchor_offset: float = 5 * mm
    embed_signatures: bool = True
    section_gap: float = 10 * mm
    heading_font_size: float = 14.0

    watermark: str = ""
    show_page_numbers: bool = True

    @property
    def page_size(self) -> Tuple[float, float]:
        return self.page_format.size

    @property
    def text_width(self) -> float:
        return self.page_size[0] - 2 * self.margin

    @property
    def text_bottom(self) -> float:
        return self.page_size[1] - self.bottom_margin

    @property
    def block_bottom(self) -> float:
        return self.page_size[1] - self.footer_reserve

    @classmethod
    def from_settings(cls, settings: "RendererSettings") -> "RendererConfig":
        return cls(
            page_format=PageFormat(str(settings.page_format).strip().lower()),
            margin=float(settings.margin_mm) * mm,
            font_name=settings.font_name,
            font_size=float(settings.font_size),
            show_header=settings.show_header,
            embed_signatures=settings.embed_signatures,
            watermark=settings.watermark,
            show_page_numbers=settings.show_page_numbers,
        )

    @classmethod
    def from_config(cls, config: "ConfigService") -> "RendererConfig":
        return cls.from_settings(config.renderer)
