"""
Page stamps applied once the total page count is known.

Draws a diagonal watermark and a "Page X of Y" footer on a reportlab overlay
and merges it onto every page with pypdf.
"""
from __future__ import annotations

from io import BytesIO
from typing import Optional

from pypdf import PdfReader, PdfWriter
from reportlab.lib.colors import Color
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas


class PageStamper:
    def __init__(
        self,
        *,
        watermark_font: str = "Helvetica-Bold",
        watermark_size: float = 60,
        footer_font: str = "Times-Roman",
        footer_size: float = 8,
        footer_offset: float = 10 * mm,
    ) -> None:
        self._wm_font = watermark_font
        self._wm_size = watermark_size
        self._footer_font = footer_font
        self._footer_size = footer_size
        self._footer_offset = footer_offset

    @staticmethod
    def page_label(index: int, total: int) -> str:
        return f"Page {index + 1} of {total}"

    def stamp(self, pdf: bytes, *, watermark: Optional[str] = None, page_numbers: bool = True) -> bytes:
        """
        Args:
            pdf: Source PDF bytes
            watermark: Diagonal text; empty/None draws none
            page_numbers: Draw the "Page X of Y" footer

        Returns:
            New PDF bytes (the input is returned unchanged if nothing to stamp)
        """
        if not watermark and not page_numbers:
            return pdf

        reader = PdfReader(BytesIO(pdf))
        overlay = PdfReader(BytesIO(self._make_overlay(reader, watermark, page_numbers)))

        writer = PdfWriter()
        for i, page in enumerate(reader.pages):
            page.merge_page(overlay.pages[i])
            writer.add_page(page)
        if reader.metadata:
            writer.add_metadata(reader.metadata)

        out = BytesIO()
        writer.write(out)
        return out.getvalue()

    # ---- helpers ---- #
    def _make_overlay(self, reader: PdfReader, watermark: Optional[str], page_numbers: bool) -> bytes:
        total = len(reader.pages)
        buf = BytesIO()
        c = canvas.Canvas(buf)
        for i, page in enumerate(reader.pages):
            w = float(page.mediabox.width)
            h = float(page.mediabox.height)
            c.setPageSize((w, h))

            if watermark:
                c.saveState()
                c.translate(w / 2.0, h / 2.0)
                c.rotate(45)
                c.setFillColor(Color(0.78, 0.78, 0.78, alpha=0.5))
                c.setFont(self._wm_font, self._wm_size)
                c.drawCentredString(0, 0, watermark)
                c.restoreState()

            if page_numbers:
                c.setFillColor(Color(0.5, 0.5, 0.5))
                c.setFont(self._footer_font, self._footer_size)
                c.drawCentredString(w / 2.0, self._footer_offset, self.page_label(i, total))

            c.showPage()
        c.save()
        return buf.getvalue()
