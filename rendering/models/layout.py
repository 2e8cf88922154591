"""Value objects produced by the layout pass and consumed by the PDF writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from contracts.enum.contract_status import SignerRole


@dataclass(frozen=True)
class PositionedLine:
    """
    One visual line of body text.

    ``y`` is the baseline measured from the top of the page. A logical line
    that wraps produces several PositionedLines sharing ``line_no``; all but
    the first are flagged ``is_continuation``.
    """
    page_index: int
    y: float
    text: str
    line_no: int = 0
    source_text: Optional[str] = None
    is_continuation: bool = False

    @property
    def logical_text(self) -> str:
        return self.source_text if self.source_text is not None else self.text


@dataclass(frozen=True)
class Anchor:
    role: SignerRole
    page_index: int
    y: float
    text: str = ""


@dataclass(frozen=True)
class SignatureAnchors:
    client: Optional[Anchor] = None
    contractor: Optional[Anchor] = None

    def get(self, role: SignerRole) -> Optional[Anchor]:
        return self.client if role == SignerRole.CLIENT else self.contractor

    @property
    def client_y(self) -> Optional[float]:
        return self.client.y if self.client else None

    @property
    def contractor_y(self) -> Optional[float]:
        return self.contractor.y if self.contractor else None


@dataclass(frozen=True)
class TextRun:
    x: float
    y: float
    text: str
    font_name: str
    font_size: float
    align: str = "left"


@dataclass(frozen=True)
class ImagePlacement:
    x: float
    y_top: float
    width: float
    height: float
    image: Any  # PIL.Image.Image, RGBA
    role: Optional[SignerRole] = None


@dataclass(eq=False)
class PageLayout:
    runs: List[TextRun] = field(default_factory=list)
    images: List[ImagePlacement] = field(default_factory=list)
    continuation: bool = False


@dataclass(frozen=True)
class SignatureBlock:
    """
    Where and how a party's signature ended up.

    placement is one of:
      - "anchor":       drawn at the label detected in the body
      - "continuation": anchor too close to the page end, moved to a
                        continuation page inserted after the anchor's page
      - "section":      no label in the body, drawn in the trailing
                        SIGNATURES section
    """
    role: SignerRole
    page_index: int
    anchor_y: float
    placement: str
    signed: bool
    has_image: bool
    image_box: Optional[Tuple[float, float, float, float]] = None


@dataclass(frozen=True)
class DocumentLayout:
    page_size: Tuple[float, float]
    pages: List[PageLayout]
    lines: List[PositionedLine]
    anchors: SignatureAnchors
    blocks: Dict[SignerRole, SignatureBlock] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page_text(self, index: int) -> List[str]:
        return [run.text for run in self.pages[index].runs]
