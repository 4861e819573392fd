"""Upload-to-form flow for a single document.

``DocumentSession`` wires the rasterizer, the extraction client and the form
state together. Any ``FormlensError`` raised along the way ends up as the one
``alert`` message and leaves the previous document untouched.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PIL import Image

from .client import ExtractionClient
from .config import settings
from .errors import FormlensError, UploadInProgressError
from .form_state import FormState
from .interaction import Selection
from .models import RenderedDocument
from .overlay import OverlayRenderer
from .rasterizer import render_pdf

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"

Rasterizer = Callable[[bytes, float], RenderedDocument]


def is_pdf_upload(filename: str, data: bytes, content_type: Optional[str] = None) -> bool:
    """Accept a file when its media type, extension or header says PDF."""
    if content_type is not None:
        return content_type.split(";")[0].strip().lower() == PDF_MEDIA_TYPE
    if Path(filename).suffix.lower() == ".pdf":
        return True
    return data[:4] == PDF_MAGIC


class DocumentSession:
    """One user's upload, extraction, editing and submit cycle."""

    def __init__(
        self,
        client: Optional[ExtractionClient] = None,
        *,
        state: Optional[FormState] = None,
        render_scale: Optional[float] = None,
        rasterizer: Rasterizer = render_pdf,
    ) -> None:
        self.client = client or ExtractionClient()
        self.state = state or FormState()
        self.render_scale = render_scale or settings.render_scale
        self._rasterizer = rasterizer
        self._overlay: Optional[OverlayRenderer] = None

    @property
    def upload_enabled(self) -> bool:
        return not self.state.loading

    async def upload(self, filename: str, data: bytes, content_type: Optional[str] = None) -> bool:
        """Render, extract and load a PDF.

        Returns:
            True when the new document replaced the form, False when the file
            was ignored or the pipeline failed (see ``state.alert``).

        Raises:
            UploadInProgressError: If another upload is still loading
        """
        if not is_pdf_upload(filename, data, content_type):
            logger.debug("Ignoring non-PDF upload %s", filename)
            return False

        if self.state.loading:
            raise UploadInProgressError("An upload is already being processed")

        self.state.loading = True
        self.state.alert = None
        try:
            document = await asyncio.to_thread(self._rasterizer, data, self.render_scale)
            result = await self.client.extract_document(document)
        except FormlensError as exc:
            logger.error("Processing %s failed: %s", filename, exc)
            self.state.alert = str(exc)
            return False
        finally:
            self.state.loading = False

        self.state.apply_extraction(document, result, filename=filename)
        self._overlay = OverlayRenderer(document.pages)
        return True

    # ------------------------------------------------------------------
    # Interaction passthroughs
    # ------------------------------------------------------------------

    def focus(self, name: str) -> Selection:
        return self.state.interaction.focus(name)

    def blur(self) -> Selection:
        return self.state.interaction.blur()

    def click(
        self,
        page: int,
        x: float,
        y: float,
        display_size: Optional[Tuple[float, float]] = None,
    ) -> Selection:
        natural_size = None
        if display_size is not None and 0 <= page < len(self.state.dimensions):
            dims = self.state.dimensions[page]
            natural_size = (dims.render_width, dims.render_height)
        return self.state.interaction.click(page, x, y, display_size, natural_size)

    async def submit(self) -> bool:
        submitted = await self.state.submit()
        if submitted:
            self._overlay = None
        return submitted

    def render_overlays(self) -> List[Image.Image]:
        """Redraw every page with its boxes and the current highlight."""
        if self._overlay is None:
            return []
        return self._overlay.render_all(self.state.positions, self.state.interaction.selection)
