"""Exception hierarchy shared by the formlens client and the extraction gateway."""

from __future__ import annotations


class FormlensError(Exception):
    """Base class for every error surfaced to the user as a single alert."""

    status_code = 500

    def to_payload(self) -> dict:
        """Return the JSON body the gateway sends for this error."""
        return {"error": str(self), "type": type(self).__name__}


class RenderError(FormlensError):
    """The uploaded bytes are not a parseable PDF or a page failed to render."""

    status_code = 400


class UploadInProgressError(FormlensError):
    """Raised when a second upload starts while one is still loading."""

    status_code = 409


class ExtractionError(FormlensError):
    """Base class for failures of the field-extraction request."""


class ConfigError(ExtractionError):
    """No credential is configured for the extraction endpoint."""


class UpstreamError(ExtractionError):
    """The extraction endpoint answered with a non-success status."""

    def __init__(self, status: int, body: str, message: str | None = None):
        super().__init__(message or f"Extraction endpoint returned HTTP {status}")
        self.status = status
        self.body = body

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.status

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["details"] = self.body
        return payload


class ResponseFormatError(ExtractionError):
    """The model answered, but no valid extraction JSON could be recovered.

    ``raw_text`` holds the untouched model output so an operator can see what
    the model actually said.
    """

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["details"] = self.raw_text
        return payload
