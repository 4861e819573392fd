"""Tests for the upload-to-form flow."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from formlens.errors import RenderError, ResponseFormatError, UploadInProgressError
from formlens.form_state import FormState
from formlens.interaction import NO_SELECTION, Selected
from formlens.models import ExtractionResult
from formlens.session import DocumentSession, is_pdf_upload


@pytest.fixture
def result(extraction_payload):
    return ExtractionResult.model_validate(extraction_payload)


@pytest.fixture
def mock_client(result):
    client = MagicMock()
    client.extract_document = AsyncMock(return_value=result)
    return client


@pytest.fixture
def session(mock_client):
    return DocumentSession(mock_client, state=FormState(submit_delay=0), render_scale=2.0)


class TestIsPdfUpload:
    @pytest.mark.parametrize(
        "filename, data, content_type, expected",
        [
            ("form.pdf", b"", None, True),
            ("FORM.PDF", b"", None, True),
            ("blob", b"%PDF-1.7", None, True),
            ("form.png", b"\x89PNG", None, False),
            ("form.pdf", b"%PDF", "image/png", False),
            ("upload", b"", "application/pdf", True),
        ],
    )
    def test_detection(self, filename, data, content_type, expected):
        assert is_pdf_upload(filename, data, content_type) is expected


class TestUpload:
    @pytest.mark.asyncio
    async def test_successful_upload(self, session, pdf_bytes, mock_client):
        assert await session.upload("form.pdf", pdf_bytes) is True

        mock_client.extract_document.assert_awaited_once()
        document = mock_client.extract_document.await_args.args[0]
        assert document.page_count == 2
        assert session.state.loading is False
        assert session.state.alert is None
        assert len(session.state.fields) == 3
        assert len(session.render_overlays()) == 2

    @pytest.mark.asyncio
    async def test_non_pdf_is_ignored(self, session, mock_client):
        assert await session.upload("photo.png", b"\x89PNG....") is False
        mock_client.extract_document.assert_not_awaited()
        assert session.state.alert is None

    @pytest.mark.asyncio
    async def test_upload_while_loading_is_rejected(self, session, pdf_bytes):
        session.state.loading = True
        assert session.upload_enabled is False
        with pytest.raises(UploadInProgressError):
            await session.upload("form.pdf", pdf_bytes)

    @pytest.mark.asyncio
    async def test_render_error_becomes_alert(self, session, pdf_bytes):
        await session.upload("form.pdf", pdf_bytes)
        fields_before = list(session.state.fields)

        assert await session.upload("broken.pdf", b"%PDF-garbage") is False
        assert session.state.alert
        assert session.state.loading is False
        assert session.state.fields == fields_before
        assert session.state.filename == "form.pdf"

    @pytest.mark.asyncio
    async def test_extraction_error_leaves_prior_state(self, session, pdf_bytes, mock_client):
        await session.upload("form.pdf", pdf_bytes)
        positions_before = dict(session.state.positions)

        mock_client.extract_document.side_effect = ResponseFormatError("bad output", raw_text="nope")
        assert await session.upload("other.pdf", pdf_bytes) is False
        assert session.state.alert == "bad output"
        assert session.state.positions == positions_before

    @pytest.mark.asyncio
    async def test_custom_rasterizer_failure(self, mock_client, pdf_bytes):
        def failing(data, scale):
            raise RenderError("page 2 failed")

        session = DocumentSession(mock_client, rasterizer=failing)
        assert await session.upload("form.pdf", pdf_bytes) is False
        assert session.state.alert == "page 2 failed"
        mock_client.extract_document.assert_not_awaited()


class TestInteraction:
    @pytest.mark.asyncio
    async def test_click_and_focus(self, session, pdf_bytes):
        await session.upload("form.pdf", pdf_bytes)
        full_name = session.state.positions["Full Name"]

        assert session.click(0, full_name.x, full_name.y) == Selected("Full Name")
        assert session.click(0, 1, 199) == NO_SELECTION
        assert session.focus("Subscribe") == Selected("Subscribe")
        assert session.blur() == NO_SELECTION

    @pytest.mark.asyncio
    async def test_click_in_display_pixels(self, session, pdf_bytes):
        await session.upload("form.pdf", pdf_bytes)
        full_name = session.state.positions["Full Name"]
        # Page 0 renders at 400x200; shown at 200x100
        selection = session.click(0, full_name.x / 2, full_name.y / 2, display_size=(200, 100))
        assert selection == Selected("Full Name")

    @pytest.mark.asyncio
    async def test_submit_discards_overlays(self, session, pdf_bytes):
        await session.upload("form.pdf", pdf_bytes)
        assert await session.submit() is True
        assert session.render_overlays() == []
        assert session.state.fields == []
