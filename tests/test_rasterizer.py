"""Tests for PDF page rasterization."""
import io

import fitz  # PyMuPDF
import pytest
from PIL import Image

from formlens.errors import RenderError
from formlens.rasterizer import render_pdf


class TestRenderPdf:
    def test_renders_every_page_in_order(self, pdf_bytes):
        document = render_pdf(pdf_bytes, render_scale=2.0)

        assert document.page_count == 2
        assert [page.index for page in document.pages] == [0, 1]
        first, second = document.dimensions
        assert (first.original_width, first.original_height) == (200, 100)
        assert (first.render_width, first.render_height) == (400, 200)
        assert (second.render_width, second.render_height) == (600, 800)

    def test_scale_factors(self, pdf_factory):
        document = render_pdf(pdf_factory((612, 792)), render_scale=1.5)
        dims = document.dimensions[0]
        assert dims.scale_x == pytest.approx(1.5, abs=0.01)
        assert dims.scale_y == pytest.approx(1.5, abs=0.01)

    def test_pages_are_png(self, pdf_bytes):
        page = render_pdf(pdf_bytes).pages[0]
        assert page.png.startswith(b"\x89PNG")
        with Image.open(io.BytesIO(page.png)) as img:
            assert img.size == (400, 200)
        assert page.data_url().startswith("data:image/png;base64,")

    def test_not_a_pdf(self):
        with pytest.raises(RenderError):
            render_pdf(b"this is not a pdf")

    def test_rejects_non_positive_scale(self, pdf_bytes):
        with pytest.raises(ValueError):
            render_pdf(pdf_bytes, render_scale=0)

    def test_failing_page_aborts_whole_document(self, pdf_factory, monkeypatch):
        real_get_pixmap = fitz.Page.get_pixmap
        rendered = []

        def flaky_get_pixmap(page, *args, **kwargs):
            if page.number == 1:
                raise RuntimeError("corrupt content stream")
            rendered.append(page.number)
            return real_get_pixmap(page, *args, **kwargs)

        monkeypatch.setattr(fitz.Page, "get_pixmap", flaky_get_pixmap)

        with pytest.raises(RenderError, match="page 2"):
            render_pdf(pdf_factory((200, 100), (200, 100), (200, 100)))
        assert rendered == [0]
