from __future__ import annotations
from dataclasses import dataclass

from reportlab.lib.units import mm


@dataclass(frozen=True)
class SignatureBoxLayout:
    """
    Geometry of one signature block, in PDF points.

    Horizontal offsets are measured from the left margin, vertical offsets
    from the anchor y (positive = further down the page):
      - the image box top sits image_top_offset ABOVE the anchor
      - marker ("DIGITALLY SIGNED") and date sit right of the image
      - the signer's name sits beneath the image
      - unsigned blocks print rule_text instead of image/marker/date
    """
    image_x_offset: float = 80 * mm
    image_width: float = 60 * mm
    image_height: float = 20 * mm
    image_top_offset: float = 10 * mm

    marker_x_offset: float = 145 * mm
    marker_y_offset: float = -5 * mm
    date_y_offset: float = 2 * mm
    rule_y_offset: float = 5 * mm
    name_y_offset: float = 15 * mm

    marker_text: str = "DIGITALLY SIGNED"
    rule_text: str = "______________________  Date: ________"
    marker_font_size: float = 10.0
    date_font_size: float = 8.0
    name_font_size: float = 10.0

    # distance between stacked blocks (synthesized section, continuation pages)
    pitch: float = 35 * mm

    @property
    def extent_above(self) -> float:
        return self.image_top_offset

    @property
    def extent_below(self) -> float:
        return max(self.image_height - self.image_top_offset, self.name_y_offset)

    @property
    def span(self) -> float:
        return self.extent_above + self.extent_below
