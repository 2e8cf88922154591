"""
===============================================================================
DocumentRenderer – contract PDF with embedded signatures
-------------------------------------------------------------------------------
Two passes:
    layout()  – pure geometry: header, wrapped body text, signature anchors
                and signature blocks, assigned to pages (top-down y).
    render()  – draws the layout with reportlab, then PageStamper merges the
                watermark / "Page X of Y" footer with pypdf.

Signature placement:
    - a party label in the body ("Client:", "Contractor:", ...) anchors the
      party's block at the label's line
    - if the block would run into the footer there, it moves to a
      continuation page inserted right after the anchor's page
    - parties without a label get a block in a trailing SIGNATURES section
    - unsigned parties get a blank rule so the printout can be signed by hand
===============================================================================
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from reportlab.lib.colors import black
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from contracts.enum.contract_status import SignerRole
from contracts.logic.formatting import format_short_date
from contracts.models.contract_models import Contract
from rendering.logic.anchor_detection import detect_anchors
from rendering.logic.page_stamps import PageStamper
from rendering.logic.rendered_document import RenderedDocument
from rendering.logic.signature_image import SignatureImageError, decode_signature_image
from rendering.logic.text_flow import TextFlow, sanitize_text
from rendering.models.layout import (
    DocumentLayout,
    ImagePlacement,
    PageLayout,
    SignatureAnchors,
    SignatureBlock,
    TextRun,
)
from rendering.models.renderer_config import RendererConfig
from rendering.models.signature_box import SignatureBoxLayout

logger = logging.getLogger(__name__)

ROLE_LABELS = {SignerRole.CLIENT: "Client:", SignerRole.CONTRACTOR: "Contractor:"}
SECTION_HEADING = "SIGNATURES"


class DocumentRenderer:
    def __init__(
        self,
        config: Optional[RendererConfig] = None,
        *,
        box: Optional[SignatureBoxLayout] = None,
        stamper: Optional[PageStamper] = None,
    ) -> None:
        self._config = config or RendererConfig()
        self._box = box or SignatureBoxLayout()
        self._stamper = stamper or PageStamper()
        self._flow = TextFlow(self._config)

    @property
    def config(self) -> RendererConfig:
        return self._config

    # ---- public API ---- #
    def render(self, contract: Contract) -> RenderedDocument:
        layout = self.layout(contract)
        data = self._draw(layout, contract)
        cfg = self._config
        if cfg.watermark or cfg.show_page_numbers:
            data = self._stamper.stamp(data, watermark=cfg.watermark, page_numbers=cfg.show_page_numbers)
        logger.info("Rendered contract %s (%d page(s))", contract.id, layout.page_count)
        return RenderedDocument(data=data, filename=f"contract-{contract.id}.pdf", page_count=layout.page_count)

    def layout(self, contract: Contract) -> DocumentLayout:
        cfg = self._config
        page_w, _ = cfg.page_size
        y = cfg.top_margin

        header: List[TextRun] = []
        if cfg.show_header:
            header.append(TextRun(page_w / 2.0, y, "CONTRACT", cfg.bold_font_name, cfg.title_font_size, "center"))
            y += cfg.title_gap
            header.append(TextRun(
                page_w / 2.0, y, sanitize_text(f"Contract #: {contract.id}"), cfg.font_name, cfg.font_size, "center",
            ))
            y += cfg.header_gap

        flow = self._flow.layout(contract.contract_content, start_y=y)
        pages = [PageLayout() for _ in range(flow.page_count)]
        pages[0].runs.extend(header)
        for line in flow.lines:
            pages[line.page_index].runs.append(
                TextRun(cfg.margin, line.y, line.text, cfg.font_name, cfg.font_size)
            )

        anchors = detect_anchors(flow.lines, offset=cfg.anchor_offset)
        blocks: Dict[SignerRole, SignatureBlock] = {}
        if cfg.embed_signatures:
            blocks = self._place_signatures(contract, pages, anchors, flow.cursor_y)

        return DocumentLayout(
            page_size=cfg.page_size,
            pages=pages,
            lines=flow.lines,
            anchors=anchors,
            blocks=blocks,
        )

    # ---- signature placement ---- #
    def _place_signatures(
        self,
        contract: Contract,
        pages: List[PageLayout],
        anchors: SignatureAnchors,
        cursor_y: float,
    ) -> Dict[SignerRole, SignatureBlock]:
        cfg = self._config
        box = self._box
        originals = list(pages)
        continuation: Dict[int, Tuple[PageLayout, float]] = {}
        # role -> (page object, anchor y, placement); indices resolved at the end
        placed: List[Tuple[SignerRole, PageLayout, float, str]] = []
        unanchored: List[SignerRole] = []

        anchored = []
        for role in (SignerRole.CLIENT, SignerRole.CONTRACTOR):
            anchor = anchors.get(role)
            if anchor is None:
                unanchored.append(role)
            else:
                anchored.append((role, anchor))
        anchored.sort(key=lambda item: (item[1].page_index, item[1].y))

        last_on_page: Dict[int, float] = {}
        for role, anchor in anchored:
            y = anchor.y
            previous = last_on_page.get(anchor.page_index)
            if previous is not None and y - previous < box.span:
                # stacked body labels: keep the blocks from overlapping
                y = previous + box.pitch
            if y + box.extent_below <= cfg.block_bottom:
                placed.append((role, originals[anchor.page_index], y, "anchor"))
                last_on_page[anchor.page_index] = y
                continue
            # too close to the end of the page: continue on an inserted page
            page, next_y = continuation.get(anchor.page_index, (None, cfg.top_margin + box.extent_above))
            if page is None:
                page = PageLayout(continuation=True)
                pages.insert(pages.index(originals[anchor.page_index]) + 1, page)
            self._label(page, role, next_y)
            placed.append((role, page, next_y, "continuation"))
            continuation[anchor.page_index] = (page, next_y + box.pitch)

        if unanchored:
            page = originals[-1]
            y = cursor_y + cfg.section_gap
            needed = cfg.section_gap + box.extent_above + len(unanchored) * box.pitch
            if y + needed > cfg.block_bottom:
                page = PageLayout()
                pages.append(page)
                y = cfg.top_margin
            page.runs.append(TextRun(cfg.margin, y, SECTION_HEADING, cfg.bold_font_name, cfg.heading_font_size))
            y += cfg.section_gap + box.extent_above - cfg.anchor_offset
            for role in unanchored:
                anchor_y = y + cfg.anchor_offset
                self._label(page, role, anchor_y)
                placed.append((role, page, anchor_y, "section"))
                y += box.pitch

        blocks: Dict[SignerRole, SignatureBlock] = {}
        for role, page, anchor_y, placement in placed:
            blocks[role] = self._block(contract, role, page, pages.index(page), anchor_y, placement)
        return blocks

    def _label(self, page: PageLayout, role: SignerRole, anchor_y: float) -> None:
        cfg = self._config
        page.runs.append(TextRun(cfg.margin, anchor_y - cfg.anchor_offset, ROLE_LABELS[role], cfg.font_name, cfg.font_size))

    def _block(
        self,
        contract: Contract,
        role: SignerRole,
        page: PageLayout,
        page_index: int,
        anchor_y: float,
        placement: str,
    ) -> SignatureBlock:
        cfg = self._config
        box = self._box
        track = contract.track(role)
        party = contract.party(role)
        default_name = "Client" if role == SignerRole.CLIENT else "Contractor"
        name = sanitize_text(party.name or default_name)
        x = cfg.margin + box.image_x_offset
        marker_x = cfg.margin + box.marker_x_offset

        signed = track.is_signed and bool(track.image)
        has_image = False
        image_box = None
        if signed:
            image = self._decode(contract, role, track.image)
            if image is not None:
                image_box = (x, anchor_y - box.image_top_offset, box.image_width, box.image_height)
                page.images.append(ImagePlacement(*image_box, image=image, role=role))
                has_image = True
            page.runs.append(TextRun(marker_x, anchor_y + box.marker_y_offset, box.marker_text, cfg.font_name, box.marker_font_size))
            page.runs.append(TextRun(
                marker_x,
                anchor_y + box.date_y_offset,
                format_short_date(track.signed_at, default=""),
                cfg.font_name,
                box.date_font_size,
            ))
        else:
            page.runs.append(TextRun(x, anchor_y + box.rule_y_offset, box.rule_text, cfg.font_name, box.name_font_size))
        page.runs.append(TextRun(x, anchor_y + box.name_y_offset, f"Name: {name}", cfg.font_name, box.name_font_size))

        return SignatureBlock(
            role=role,
            page_index=page_index,
            anchor_y=anchor_y,
            placement=placement,
            signed=signed,
            has_image=has_image,
            image_box=image_box,
        )

    @staticmethod
    def _decode(contract: Contract, role: SignerRole, data: str):
        try:
            return decode_signature_image(data)
        except SignatureImageError as exc:
            logger.warning("Skipping %s signature image of contract %s: %s", role.value, contract.id, exc)
            return None

    # ---- drawing ---- #
    def _draw(self, layout: DocumentLayout, contract: Contract) -> bytes:
        page_w, page_h = layout.page_size
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))
        c.setTitle(f"Contract {contract.id}")
        if contract.project_name:
            c.setSubject(sanitize_text(contract.project_name))

        for page in layout.pages:
            c.setFillColor(black)
            for run in page.runs:
                c.setFont(run.font_name, run.font_size)
                if run.align == "center":
                    c.drawCentredString(run.x, page_h - run.y, run.text)
                else:
                    c.drawString(run.x, page_h - run.y, run.text)
            for img in page.images:
                c.drawImage(
                    ImageReader(img.image),
                    img.x,
                    page_h - img.y_top - img.height,
                    width=img.width,
                    height=img.height,
                    mask="auto",
                    preserveAspectRatio=True,
                )
            c.showPage()

        c.save()
        return buf.getvalue()
