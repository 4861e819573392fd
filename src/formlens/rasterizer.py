"""Render uploaded PDF bytes to PNG page images with per-page geometry."""

import logging
from typing import List

import fitz  # PyMuPDF

from .errors import RenderError
from .models import PageDimensions, RenderedDocument, RenderedPage

logger = logging.getLogger(__name__)

DEFAULT_RENDER_SCALE = 2.0


def render_pdf(data: bytes, render_scale: float = DEFAULT_RENDER_SCALE) -> RenderedDocument:
    """Rasterize every page of a PDF.

    Args:
        data: Raw PDF bytes
        render_scale: Uniform multiplier applied to the native page size

    Returns:
        RenderedDocument with one RenderedPage per PDF page, in document order

    Raises:
        RenderError: If the bytes are not a PDF, the PDF has no pages, or any
            page fails to render. Partial results are never returned.
    """
    if render_scale <= 0:
        raise ValueError(f"render_scale must be positive, got {render_scale}")

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.error(f"Failed to open PDF: {e}")
        raise RenderError(f"Not a readable PDF document: {e}") from e

    try:
        if doc.page_count == 0:
            raise RenderError("PDF contains no pages")

        matrix = fitz.Matrix(render_scale, render_scale)
        pages: List[RenderedPage] = []
        for index in range(doc.page_count):
            try:
                page = doc[index]
                rect = page.rect
                pix = page.get_pixmap(matrix=matrix, alpha=False)
                png = pix.tobytes("png")
            except Exception as e:
                logger.error(f"Failed to render page {index + 1}: {e}")
                raise RenderError(f"Failed to render page {index + 1}: {e}") from e

            dimensions = PageDimensions(
                original_width=rect.width,
                original_height=rect.height,
                render_width=pix.width,
                render_height=pix.height,
            )
            pages.append(RenderedPage(index=index, png=png, dimensions=dimensions))

        logger.info(f"Rendered {len(pages)} pages at scale {render_scale}")
        return RenderedDocument(pages=tuple(pages), render_scale=render_scale)
    finally:
        doc.close()
