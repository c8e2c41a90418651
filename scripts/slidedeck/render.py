"""Export the active slide sequence to a PPTX deck.

One handler per layout type (cover, pdf, comparison, qr, standard). Images
are looked up under ``assets_dir``; anything missing or unreadable is drawn
as a grey placeholder so a deck always renders.
"""

from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from PIL import Image
from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LABEL_POSITION
from pptx.enum.shapes import MSO_AUTO_SHAPE_TYPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Emu, Inches, Pt

from .models import ActiveSlide, Module
from .modules import short_name

_NUMERIC_TOKEN = re.compile(r"(\d+(?:[.,]\d+)?%?)")

_NATIVE_PICTURE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff"}


def split_numeric_tokens(text: str) -> list[Tuple[str, bool]]:
    """Split text into (part, is_number) pieces, e.g. "up 40%" -> [("up ", False), ("40%", True)]."""
    parts = _NUMERIC_TOKEN.split(text or "")
    return [(part, bool(_NUMERIC_TOKEN.fullmatch(part))) for part in parts if part]


def _hex_to_rgb(value: str) -> RGBColor:
    return RGBColor.from_string(value.lstrip("#").upper())


class PptxDeckRenderer:
    """Render ActiveSlides to a python-pptx Presentation."""

    SLIDE_WIDTH = Inches(10)
    SLIDE_HEIGHT = Inches(5.625)

    COLORS = {
        "bg": RGBColor(255, 250, 252),
        "card": RGBColor(255, 255, 255),
        "primary": RGBColor(0xFF, 0x69, 0xB4),  # hot pink
        "secondary": RGBColor(0xFF, 0xE1, 0x56),  # lemon yellow
        "accent": RGBColor(0x00, 0xA6, 0xFB),  # electric blue
        "text_primary": RGBColor(30, 41, 59),
        "text_secondary": RGBColor(100, 116, 139),
        "muted": RGBColor(226, 232, 240),
        "placeholder": RGBColor(224, 224, 224),
        "black": RGBColor(0, 0, 0),
        "white": RGBColor(255, 255, 255),
    }

    CHART_BAR_COLORS = (RGBColor(0x63, 0x66, 0xF1), RGBColor(0xEC, 0x48, 0x99))

    def __init__(
        self,
        slides: Sequence[ActiveSlide],
        modules: Optional[Sequence[Module]] = None,
        *,
        assets_dir: Optional[Path] = None,
        title: str = "",
    ):
        self.slides = list(slides)
        self.modules = list(modules or [])
        self.assets_dir = Path(assets_dir).resolve() if assets_dir else None
        self.title = title
        self.prs = Presentation()
        self.prs.slide_width = self.SLIDE_WIDTH
        self.prs.slide_height = self.SLIDE_HEIGHT
        self.missing_assets: list[str] = []

    def render(self) -> Presentation:
        layout_handlers = {
            "cover": self._add_cover_slide,
            "pdf": self._add_pdf_slide,
            "comparison": self._add_comparison_slide,
            "qr": self._add_qr_slide,
            "standard": self._add_standard_slide,
        }
        if self.title:
            self.prs.core_properties.title = self.title

        module_colors = {m.full_name: m.color for m in self.modules}
        for slide_config in self.slides:
            handler = layout_handlers.get(slide_config.layout_type, self._add_standard_slide)
            slide = self.prs.slides.add_slide(self.prs.slide_layouts[6])
            handler(slide, slide_config)
            if slide_config.layout_type not in {"cover", "pdf"}:
                self._add_module_pill(slide, slide_config, module_colors.get(slide_config.module))
            self._add_progress_bar(slide, slide_config)
        return self.prs

    def save(self, output_path: str) -> Path:
        path = Path(output_path).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.prs.save(str(path))
        return path

    # -- images -----------------------------------------------------------

    def _resolve_asset(self, ref: Optional[str]) -> Optional[Path]:
        if not ref:
            return None
        path = Path(ref)
        if not path.is_absolute() and self.assets_dir is not None:
            path = self.assets_dir / path
        if path.is_file():
            return path
        if ref not in self.missing_assets:
            self.missing_assets.append(ref)
        return None

    def _picture_source(self, path: Path) -> Any:
        if path.suffix.lower() in _NATIVE_PICTURE_SUFFIXES:
            return str(path)
        # WebP and friends are not embeddable as-is; re-encode as PNG.
        buf = io.BytesIO()
        with Image.open(path) as im:
            im.convert("RGBA").save(buf, format="PNG")
        buf.seek(0)
        return buf

    def _add_placeholder(self, slide, x, y, cx, cy) -> None:
        shape = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.RECTANGLE, x, y, cx, cy)
        shape.fill.solid()
        shape.fill.fore_color.rgb = self.COLORS["placeholder"]
        shape.line.fill.background()

    def _add_image(self, slide, ref: Optional[str], x, y, cx, cy, *, fit: str = "cover") -> bool:
        path = self._resolve_asset(ref)
        if path is None:
            self._add_placeholder(slide, x, y, cx, cy)
            return False
        try:
            with Image.open(path) as im:
                iw, ih = im.size
            source = self._picture_source(path)
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
            self._add_placeholder(slide, x, y, cx, cy)
            return False

        box_w, box_h = int(cx), int(cy)
        ratio = iw / max(1, ih)
        box_ratio = box_w / max(1, box_h)
        if fit == "contain":
            if ratio >= box_ratio:
                w, h = box_w, int(box_w / ratio)
            else:
                w, h = int(box_h * ratio), box_h
            left = int(x) + (box_w - w) // 2
            top = int(y) + (box_h - h) // 2
            slide.shapes.add_picture(source, Emu(left), Emu(top), width=Emu(w), height=Emu(h))
            return True

        picture = slide.shapes.add_picture(source, x, y, width=cx, height=cy)
        if ratio > box_ratio:
            trim = (1 - box_ratio / ratio) / 2
            picture.crop_left = trim
            picture.crop_right = trim
        elif ratio < box_ratio:
            trim = (1 - ratio / box_ratio) / 2
            picture.crop_top = trim
            picture.crop_bottom = trim
        return True

    # -- text -------------------------------------------------------------

    def _add_text(
        self,
        slide,
        text: str,
        x,
        y,
        cx,
        cy,
        *,
        size: int = 18,
        bold: bool = False,
        color: Optional[RGBColor] = None,
        align=PP_ALIGN.LEFT,
    ):
        box = slide.shapes.add_textbox(x, y, cx, cy)
        frame = box.text_frame
        frame.word_wrap = True
        paragraph = frame.paragraphs[0]
        paragraph.text = text or ""
        paragraph.alignment = align
        paragraph.font.size = Pt(size)
        paragraph.font.bold = bold
        paragraph.font.color.rgb = color or self.COLORS["text_primary"]
        return frame

    def _fill_highlighted(self, paragraph, text: str, *, size: int) -> None:
        for part, is_number in split_numeric_tokens(text):
            run = paragraph.add_run()
            run.text = part
            run.font.size = Pt(size + 4 if is_number else size)
            run.font.bold = is_number
            run.font.color.rgb = self.COLORS["accent"] if is_number else self.COLORS["text_primary"]

    def _add_box(self, slide, x, y, cx, cy, *, fill: RGBColor, line: Optional[RGBColor] = None):
        shape = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.ROUNDED_RECTANGLE, x, y, cx, cy)
        shape.fill.solid()
        shape.fill.fore_color.rgb = fill
        if line is None:
            shape.line.fill.background()
        else:
            shape.line.color.rgb = line
        return shape

    def _slide_number(self, slide_config: ActiveSlide) -> str:
        return f"#{slide_config.id:02d}"

    # -- chrome -----------------------------------------------------------

    def _set_background(self, slide, color: RGBColor) -> None:
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = color

    def _add_module_pill(self, slide, slide_config: ActiveSlide, color: Optional[str]) -> None:
        pill = self._add_box(
            slide,
            Inches(7.6),
            Inches(0.2),
            Inches(2.1),
            Inches(0.45),
            fill=_hex_to_rgb(color) if color else self.COLORS["secondary"],
        )
        frame = pill.text_frame
        frame.text = short_name(slide_config.module)
        frame.vertical_anchor = MSO_ANCHOR.MIDDLE
        frame.paragraphs[0].alignment = PP_ALIGN.CENTER
        frame.paragraphs[0].font.size = Pt(14)
        frame.paragraphs[0].font.bold = True
        frame.paragraphs[0].font.color.rgb = self.COLORS["text_primary"]

    def _add_progress_bar(self, slide, slide_config: ActiveSlide) -> None:
        total = max(1, len(self.slides))
        bar_h = Inches(0.08)
        top = self.SLIDE_HEIGHT - bar_h
        track = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.RECTANGLE, 0, top, self.SLIDE_WIDTH, bar_h)
        track.fill.solid()
        track.fill.fore_color.rgb = self.COLORS["muted"]
        track.line.fill.background()

        width = int(self.SLIDE_WIDTH * slide_config.id / total)
        if width <= 0:
            return
        bar = slide.shapes.add_shape(MSO_AUTO_SHAPE_TYPE.RECTANGLE, 0, top, Emu(width), bar_h)
        bar.fill.solid()
        bar.fill.fore_color.rgb = self.COLORS["primary"]
        bar.line.fill.background()

    # -- layouts ----------------------------------------------------------

    def _add_cover_slide(self, slide, slide_config: ActiveSlide) -> None:
        self._add_image(slide, slide_config.image, 0, 0, self.SLIDE_WIDTH, self.SLIDE_HEIGHT)

        card = self._add_box(
            slide, Inches(1.5), Inches(1.2), Inches(7), Inches(3.1), fill=self.COLORS["card"], line=self.COLORS["white"]
        )
        card.shadow.inherit = False
        self._add_text(
            slide,
            slide_config.title,
            Inches(1.8),
            Inches(1.5),
            Inches(6.4),
            Inches(1.4),
            size=40,
            bold=True,
            color=self.COLORS["primary"],
            align=PP_ALIGN.CENTER,
        )
        if slide_config.content:
            self._add_text(
                slide,
                slide_config.content[0],
                Inches(1.8),
                Inches(3.0),
                Inches(6.4),
                Inches(0.7),
                size=22,
                bold=True,
                color=self.COLORS["accent"],
                align=PP_ALIGN.CENTER,
            )

    def _add_pdf_slide(self, slide, slide_config: ActiveSlide) -> None:
        self._set_background(slide, self.COLORS["black"])
        self._add_image(slide, slide_config.image, 0, 0, self.SLIDE_WIDTH, self.SLIDE_HEIGHT, fit="contain")
        self._add_text(
            slide,
            slide_config.title,
            Inches(0.2),
            Inches(0.15),
            Inches(6),
            Inches(0.5),
            size=16,
            bold=True,
            color=self.COLORS["white"],
        )
        self._add_text(
            slide,
            self._slide_number(slide_config),
            Inches(8.6),
            Inches(4.9),
            Inches(1.2),
            Inches(0.4),
            size=12,
            color=self.COLORS["white"],
            align=PP_ALIGN.RIGHT,
        )

    def _add_comparison_slide(self, slide, slide_config: ActiveSlide) -> None:
        self._set_background(slide, self.COLORS["bg"])
        self._add_text(
            slide,
            slide_config.title,
            Inches(0.5),
            Inches(0.7),
            Inches(9),
            Inches(0.7),
            size=32,
            bold=True,
            color=self.COLORS["primary"],
            align=PP_ALIGN.CENTER,
        )

        content = list(slide_config.content)
        cards = ((content[0:1], Inches(0.6), self.COLORS["primary"]), (content[1:2], Inches(5.1), self.COLORS["secondary"]))
        for lines, left, color in cards:
            box = self._add_box(slide, left, Inches(1.6), Inches(4.3), Inches(2.2), fill=self.COLORS["card"], line=color)
            frame = box.text_frame
            frame.word_wrap = True
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            frame.text = lines[0] if lines else ""
            frame.paragraphs[0].alignment = PP_ALIGN.CENTER
            frame.paragraphs[0].font.size = Pt(24)
            frame.paragraphs[0].font.bold = True
            frame.paragraphs[0].font.color.rgb = self.COLORS["text_primary"]

        insight = content[2] if len(content) > 2 else slide_config.data_support
        if insight:
            box = self._add_box(slide, Inches(1.5), Inches(4.1), Inches(7), Inches(0.9), fill=self.COLORS["accent"])
            frame = box.text_frame
            frame.word_wrap = True
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            frame.text = insight
            frame.paragraphs[0].alignment = PP_ALIGN.CENTER
            frame.paragraphs[0].font.size = Pt(20)
            frame.paragraphs[0].font.bold = True
            frame.paragraphs[0].font.color.rgb = self.COLORS["white"]

    def _add_qr_slide(self, slide, slide_config: ActiveSlide) -> None:
        self._set_background(slide, self.COLORS["white"])
        self._add_text(
            slide,
            slide_config.title,
            Inches(0.5),
            Inches(0.3),
            Inches(7),
            Inches(0.7),
            size=30,
            bold=True,
            color=self.COLORS["primary"],
            align=PP_ALIGN.CENTER,
        )
        self._add_image(slide, slide_config.image, Inches(3.25), Inches(1.1), Inches(3.5), Inches(2.6), fit="contain")

        frame = self._add_text(slide, "", Inches(1), Inches(3.8), Inches(8), Inches(0.6), align=PP_ALIGN.CENTER)
        self._fill_highlighted(frame.paragraphs[0], slide_config.data_support, size=18)
        for item in slide_config.content:
            paragraph = frame.add_paragraph()
            paragraph.text = item
            paragraph.alignment = PP_ALIGN.CENTER
            paragraph.font.size = Pt(14)
            paragraph.font.italic = True
            paragraph.font.color.rgb = self.COLORS["text_secondary"]

    def _add_standard_slide(self, slide, slide_config: ActiveSlide) -> None:
        self._set_background(slide, self.COLORS["bg"])
        col_w = int(self.SLIDE_WIDTH * 0.45)
        height = self.SLIDE_HEIGHT

        if slide_config.video:
            self._add_placeholder(slide, 0, 0, Emu(col_w), height)
            frame = self._add_text(
                slide, "", Inches(0.3), Inches(2.4), Emu(col_w - Inches(0.6)), Inches(0.8), align=PP_ALIGN.CENTER
            )
            run = frame.paragraphs[0].add_run()
            run.text = "▶ Play video"
            run.font.size = Pt(20)
            run.font.bold = True
            run.hyperlink.address = slide_config.video
        elif slide_config.images and len(slide_config.images) == 2:
            half = int(height) // 2
            self._add_image(slide, slide_config.images[0], 0, 0, Emu(col_w), Emu(half))
            self._add_image(slide, slide_config.images[1], 0, Emu(half), Emu(col_w), Emu(int(height) - half))
        else:
            self._add_image(slide, slide_config.image, 0, 0, Emu(col_w), height)

        self._add_text(
            slide,
            self._slide_number(slide_config),
            Inches(0.25),
            Inches(4.8),
            Inches(1.2),
            Inches(0.45),
            size=16,
            bold=True,
            color=self.COLORS["white"],
        )

        left = Emu(col_w + Inches(0.4))
        width = Emu(int(self.SLIDE_WIDTH) - col_w - Inches(0.7))
        cursor = Inches(0.75)
        self._add_text(
            slide, slide_config.title, left, cursor, width, Inches(0.8), size=26, bold=True, color=self.COLORS["primary"]
        )
        cursor += Inches(0.9)

        if slide_config.data_support:
            bubble = self._add_box(slide, left, cursor, width, Inches(1.0), fill=self.COLORS["card"], line=self.COLORS["secondary"])
            frame = bubble.text_frame
            frame.word_wrap = True
            heading = frame.paragraphs[0]
            heading.text = "DATA INSIGHT"
            heading.font.size = Pt(10)
            heading.font.bold = True
            heading.font.color.rgb = self.COLORS["text_secondary"]
            self._fill_highlighted(frame.add_paragraph(), slide_config.data_support, size=14)
            cursor += Inches(1.15)

        if slide_config.chart_data:
            self._add_bar_chart(slide, slide_config, left, cursor, width, Inches(1.7))
            cursor += Inches(1.8)

        if slide_config.content:
            remaining = max(int(Inches(0.5)), int(self.SLIDE_HEIGHT) - int(cursor) - int(Inches(0.3)))
            frame = self._add_text(slide, "", left, cursor, width, Emu(remaining))
            for i, paragraph_text in enumerate(slide_config.content):
                paragraph = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
                paragraph.text = paragraph_text
                paragraph.font.size = Pt(14)
                paragraph.font.color.rgb = self.COLORS["text_secondary"]
                paragraph.space_after = Pt(8)

    def _add_bar_chart(self, slide, slide_config: ActiveSlide, x, y, cx, cy) -> None:
        points = list(slide_config.chart_data or ())
        chart_data = CategoryChartData()
        chart_data.categories = [p.year for p in points]
        chart_data.add_series("cost", [p.cost for p in points])

        chart = slide.shapes.add_chart(XL_CHART_TYPE.COLUMN_CLUSTERED, x, y, cx, cy, chart_data).chart
        chart.has_legend = False
        chart.value_axis.visible = False
        chart.value_axis.has_major_gridlines = False

        series = chart.plots[0].series[0]
        for idx, point_data in enumerate(points):
            point = series.points[idx]
            point.format.fill.solid()
            point.format.fill.fore_color.rgb = self.CHART_BAR_COLORS[0 if idx == 0 else 1]
            if point_data.label:
                label = point.data_label
                label.position = XL_LABEL_POSITION.OUTSIDE_END
                label.text_frame.text = point_data.label
