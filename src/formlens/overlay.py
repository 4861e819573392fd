"""Draw field boxes over rendered page images.

Every pass starts from a fresh copy of the page image, so redrawing never
accumulates stale strokes.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from PIL import Image, ImageDraw

from .interaction import NO_SELECTION, Selected, Selection
from .models import FieldPosition, RenderedPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoxStyle:
    color: str
    width: int
    dash: Tuple[int, int] | None = None


STANDARD_STYLE = BoxStyle(color="#FFA500", width=3, dash=(5, 5))  # Orange
HIGHLIGHT_STYLE = BoxStyle(color="#E53935", width=6, dash=(12, 6))  # Red


def _dashed_line(
    draw: ImageDraw.ImageDraw,
    start: Tuple[int, int],
    end: Tuple[int, int],
    style: BoxStyle,
) -> None:
    (x1, y1), (x2, y2) = start, end
    length = max(abs(x2 - x1), abs(y2 - y1))
    if style.dash is None or length == 0:
        draw.line([start, end], fill=style.color, width=style.width)
        return

    on, off = style.dash
    dx = (x2 - x1) / length
    dy = (y2 - y1) / length
    pos = 0
    while pos < length:
        seg_end = min(pos + on, length)
        draw.line(
            [(x1 + dx * pos, y1 + dy * pos), (x1 + dx * seg_end, y1 + dy * seg_end)],
            fill=style.color,
            width=style.width,
        )
        pos += on + off


def draw_box(draw: ImageDraw.ImageDraw, position: FieldPosition, style: BoxStyle) -> None:
    """Stroke the outline of ``position`` with ``style``."""
    x1, y1, x2, y2 = position.rect
    if style.dash is None:
        draw.rectangle([x1, y1, x2, y2], outline=style.color, width=style.width)
        return
    _dashed_line(draw, (x1, y1), (x2, y1), style)
    _dashed_line(draw, (x2, y1), (x2, y2), style)
    _dashed_line(draw, (x2, y2), (x1, y2), style)
    _dashed_line(draw, (x1, y2), (x1, y1), style)


def draw_page_overlay(
    image: Image.Image,
    page_index: int,
    positions: Mapping[str, FieldPosition],
    selection: Selection = NO_SELECTION,
) -> Image.Image:
    """Return a copy of ``image`` with the boxes of ``page_index`` drawn on it.

    Every positioned field on the page gets the standard stroke; the selected
    field, if it sits on this page, is stroked again in the highlight style.
    """
    canvas = image.convert("RGB")
    draw = ImageDraw.Draw(canvas)

    for position in positions.values():
        if position.page == page_index:
            draw_box(draw, position, STANDARD_STYLE)

    if isinstance(selection, Selected):
        highlighted = positions.get(selection.name)
        if highlighted is not None and highlighted.page == page_index:
            draw_box(draw, highlighted, HIGHLIGHT_STYLE)

    return canvas


class OverlayRenderer:
    """Keeps decoded page images and redraws overlays on demand."""

    def __init__(self, pages: Sequence[RenderedPage]):
        self._images: Dict[int, Image.Image] = {}
        for page in pages:
            with Image.open(io.BytesIO(page.png)) as img:
                img.load()
                self._images[page.index] = img.copy()

    @property
    def page_count(self) -> int:
        return len(self._images)

    def render_page(
        self,
        page_index: int,
        positions: Mapping[str, FieldPosition],
        selection: Selection = NO_SELECTION,
    ) -> Image.Image:
        return draw_page_overlay(self._images[page_index], page_index, positions, selection)

    def render_all(
        self,
        positions: Mapping[str, FieldPosition],
        selection: Selection = NO_SELECTION,
    ) -> List[Image.Image]:
        logger.debug("Redrawing %d page overlays", len(self._images))
        return [
            self.render_page(index, positions, selection)
            for index in sorted(self._images)
        ]
