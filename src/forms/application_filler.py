#!/usr/bin/env python3
"""
Employment Application PDF Filler
- Overlays a validated SubmissionRecord onto page 1 of the committed template
- Positions come from application_layout.json (mm from top-left)
- Montserrat if the bundled TTF registers, Helvetica otherwise
- Corrupt template -> blank page, overlay still produced
- Missing template -> no document, caller carries on without one

Usage:
    from src.forms.application_filler import ApplicationFiller
    result = ApplicationFiller(config).compose(record)
    # {"ok": True, "path": ".../app_Jane_Doe_20260219143005123456.pdf", ...}
"""

import io
import os
import re
import logging
from datetime import datetime

from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas as rl_canvas

from src.core.errors import FontUnavailable, TemplateImportFailed, TemplateMissing
from src.forms.layout import load_layout, field_value

log = logging.getLogger("hiring.filler")

CREATOR = "Discount Cuts"
TEXT_PAD = 1.0 * mm
ELLIPSIS = "..."


def artifact_name(full_name: str, now: datetime = None) -> str:
    """app_<name>_<timestamp>.pdf — non-alphanumerics become underscores."""
    safe = re.sub(r"[^a-zA-Z0-9]", "_", full_name.strip()) or "applicant"
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S%f")
    return f"app_{safe}_{stamp}.pdf"


def _fit(text: str, font: str, size: float, width: float) -> str:
    """Trim text so it fits inside width; the cell never grows."""
    if pdfmetrics.stringWidth(text, font, size) <= width:
        return text
    while text and pdfmetrics.stringWidth(text + ELLIPSIS, font, size) > width:
        text = text[:-1]
    return text + ELLIPSIS if text else ""


class ApplicationFiller:
    """Template + record -> transient PDF artifact."""

    def __init__(self, config, layout: dict = None):
        self.template_path = config.template_path
        self.font_path = config.font_path
        self.output_dir = config.output_dir
        self.debug = config.debug
        self.layout = layout or load_layout()

    def _debug(self, msg, *args):
        if self.debug:
            log.warning(msg, *args)

    # ── Font ──────────────────────────────────────────────────────────────

    def _register_font(self) -> str:
        name = self.layout["font"]["name"]
        if name in pdfmetrics.getRegisteredFontNames():
            return name
        try:
            pdfmetrics.registerFont(TTFont(name, self.font_path))
        except Exception as e:
            raise FontUnavailable(f"{self.font_path}: {e}") from e
        return name

    def select_font(self) -> str:
        """Bundled typeface, or the built-in fallback. Never raises."""
        try:
            return self._register_font()
        except FontUnavailable as e:
            self._debug("Font unavailable, using fallback: %s", e)
            return self.layout["font"].get("fallback", "Helvetica")

    # ── Template ──────────────────────────────────────────────────────────

    def load_background(self):
        """First template page. Raises TemplateMissing or TemplateImportFailed."""
        if not os.path.exists(self.template_path):
            raise TemplateMissing(self.template_path)
        try:
            reader = PdfReader(self.template_path)
            page = reader.pages[0]
            # Touch the mediabox now so a broken page fails here
            float(page.mediabox.width), float(page.mediabox.height)
            return page
        except Exception as e:
            raise TemplateImportFailed(f"{self.template_path}: {e}") from e

    def _page_size(self, background) -> tuple:
        if background is not None:
            return float(background.mediabox.width), float(background.mediabox.height)
        page = self.layout.get("page", {})
        if page.get("width_mm") and page.get("height_mm"):
            return page["width_mm"] * mm, page["height_mm"] * mm
        return A4

    # ── Overlay ───────────────────────────────────────────────────────────

    def draw_overlay(self, record, page_width: float, page_height: float, font: str) -> io.BytesIO:
        """Render every layout field onto a single transparent page."""
        packet = io.BytesIO()
        c = rl_canvas.Canvas(packet, pagesize=(page_width, page_height))
        default_size = self.layout["font"].get("size", 12)
        glyph = self.layout.get("checkbox_glyph", "X")

        # layout y = from top; reportlab y = from bottom
        def Y(top_mm):
            return page_height - top_mm * mm

        c.setFillColorRGB(0, 0, 0)
        c.setStrokeColorRGB(0, 0, 0)
        c.setLineWidth(0.5)

        for name, spec in self.layout["fields"].items():
            x, w, h = spec["x"] * mm, spec["w"] * mm, spec["h"] * mm
            top, bottom = Y(spec["y"]), Y(spec["y"] + spec["h"])
            size = spec.get("size", default_size)
            value = field_value(record, name, spec)
            c.setFont(font, size)

            if spec["kind"] == "checkbox":
                c.rect(x, bottom, w, h, fill=0, stroke=1)
                if value:
                    c.drawCentredString(x + w / 2, bottom + (h - size * 0.7) / 2, glyph)

            elif spec["kind"] == "box":
                c.rect(x, bottom, w, h, fill=0, stroke=1)
                line_h = spec.get("line_height", 5) * mm
                inner_w = w - 2 * TEXT_PAD
                max_lines = max(int((h - TEXT_PAD) // line_h), 1)
                lines = []
                for line in simpleSplit(str(value), font, size, inner_w):
                    lines.append(_fit(line, font, size, inner_w))
                if len(lines) > max_lines:
                    lines = lines[:max_lines]
                    lines[-1] = _fit(lines[-1] + ELLIPSIS, font, size, inner_w)
                y = top - TEXT_PAD - size * 0.8
                for line in lines:
                    c.drawString(x + TEXT_PAD, y, line)
                    y -= line_h

            else:
                text = _fit(str(value), font, size, w)
                c.drawString(x, bottom + 1, text)

        c.save()
        packet.seek(0)
        return packet

    # ── Output ────────────────────────────────────────────────────────────

    def _open_artifact(self, full_name: str):
        """Create a fresh artifact file; bump a suffix if the name is taken."""
        os.makedirs(self.output_dir, exist_ok=True)
        base = artifact_name(full_name)
        path = os.path.join(self.output_dir, base)
        n = 1
        while True:
            try:
                return path, open(path, "xb")
            except FileExistsError:
                path = os.path.join(self.output_dir, base.replace(".pdf", f"_{n}.pdf"))
                n += 1

    def compose(self, record) -> dict:
        """
        Fill the template for one applicant.

        Returns:
            {"ok": True, "path": str, "background": bool, "font": str}
            {"ok": False, "error": str}
        """
        if not os.path.exists(self.template_path):
            self._debug("PDF template missing: %s", self.template_path)
            return {"ok": False, "error": "template_missing"}

        path = None
        try:
            font = self.select_font()
            try:
                background = self.load_background()
            except TemplateImportFailed as e:
                self._debug("Template import failed, using blank page: %s", e)
                background = None

            pw, ph = self._page_size(background)
            overlay = PdfReader(self.draw_overlay(record, pw, ph, font)).pages[0]

            writer = PdfWriter()
            if background is not None:
                try:
                    page = writer.add_page(background)
                    page.merge_page(overlay)
                except Exception as e:
                    self._debug("Template merge failed, using blank page: %s", e)
                    writer = PdfWriter()
                    background = None
            if background is None:
                page = writer.add_blank_page(width=pw, height=ph)
                page.merge_page(overlay)

            writer.add_metadata({
                "/Creator": CREATOR,
                "/Author": record.full_name,
                "/Title": f"Filled Application: {record.full_name}",
            })

            path, f = self._open_artifact(record.full_name)
            with f:
                writer.write(f)
        except Exception as e:
            self._debug("PDF generation failed: %s", e)
            if path and os.path.exists(path):
                os.remove(path)
            return {"ok": False, "error": str(e)}

        log.info("Application PDF generated for %s (background=%s, font=%s)",
                 record.full_name[:40], background is not None, font)
        return {"ok": True, "path": path, "background": background is not None, "font": font}


def remove_artifact(path) -> bool:
    """Delete a transient artifact. No-op for None or a file already gone."""
    if not path:
        return False
    try:
        os.remove(path)
        return True
    except FileNotFoundError:
        return False
