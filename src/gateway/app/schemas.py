"""Request and response bodies of the extraction endpoint."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PageSize(BaseModel):
    """Original page size; render metadata sent by the client is kept as extra."""

    model_config = ConfigDict(extra="allow")

    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)


class ExtractRequest(BaseModel):
    pdfImages: List[str]
    dimensions: List[PageSize] = Field(default_factory=list)
    scale: float = Field(1.0, gt=0)

    @field_validator("pdfImages")
    @classmethod
    def _require_images(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("pdfImages must contain at least one image")
        return v


class ExtractResponse(BaseModel):
    parsed: dict[str, Any]
    cached: bool


class ErrorResponse(BaseModel):
    error: str
    type: Optional[str] = None
    details: Optional[Any] = None


def strip_data_url(image: str) -> str:
    """Return the bare base64 payload of a data URL (or the input unchanged)."""
    if image.startswith("data:") and "," in image:
        return image.split(",", 1)[1]
    return image
