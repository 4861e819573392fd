"""Data model for rendered pages, extracted fields and overlay rectangles."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

# Pydantic v2
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class FieldType(str, Enum):
    """Kinds of form field the extraction prompt asks the model to report."""

    TEXT = "text"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DROPDOWN = "dropdown"
    DATE = "date"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Page geometry
# ---------------------------------------------------------------------------


class PageDimensions(BaseModel):
    """Original (unscaled) and rendered size of one page.

    The scale factors are derived per axis from the rendered pixmap size, so
    a rasterizer that rounds the render size unevenly still maps boxes
    correctly.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_width: float = Field(..., alias="width", gt=0)
    original_height: float = Field(..., alias="height", gt=0)
    render_width: float = Field(..., alias="renderWidth", gt=0)
    render_height: float = Field(..., alias="renderHeight", gt=0)

    @computed_field(alias="scaleX")  # type: ignore[prop-decorator]
    @property
    def scale_x(self) -> float:
        return self.render_width / self.original_width

    @computed_field(alias="scaleY")  # type: ignore[prop-decorator]
    @property
    def scale_y(self) -> float:
        return self.render_height / self.original_height

    def to_wire(self) -> dict:
        """Serialise with the camelCase keys the extraction proxy expects."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class RenderedPage:
    """A single rasterized page: its position, PNG bytes and geometry."""

    index: int
    png: bytes
    dimensions: PageDimensions

    def data_url(self) -> str:
        encoded = base64.b64encode(self.png).decode("ascii")
        return f"data:image/png;base64,{encoded}"


@dataclass(frozen=True)
class RenderedDocument:
    """All pages of one uploaded PDF, in document order."""

    pages: Tuple[RenderedPage, ...]
    render_scale: float

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def dimensions(self) -> List[PageDimensions]:
        return [page.dimensions for page in self.pages]

    def data_urls(self) -> List[str]:
        return [page.data_url() for page in self.pages]


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------


class BoxCoordinates(BaseModel):
    """A bounding box as reported by the model; every component may be absent."""

    model_config = ConfigDict(extra="ignore")

    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class ExtractedField(BaseModel):
    """One form field detected by the model.

    ``coordinates`` is the absolute box in original page units and
    ``coordinates_norm`` the box as fractions of the rendered page. Model
    output is free-form, so the validators below coerce the common
    deviations instead of rejecting the whole response.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    value: str = ""
    type: FieldType = FieldType.TEXT
    label: Optional[str] = None
    page_number: int = Field(0, alias="pageNumber")
    coordinates: Optional[BoxCoordinates] = None
    coordinates_norm: Optional[BoxCoordinates] = None
    confidence: Optional[float] = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, v):
        if v is None:
            return ""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v):
        if v is None or v == "":
            return FieldType.TEXT
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in FieldType._value2member_map_:
                return FieldType.OTHER
        return v

    @field_validator("page_number", mode="before")
    @classmethod
    def _coerce_page_number(cls, v):
        return 0 if v is None else v

    @field_validator("confidence", mode="before")
    @classmethod
    def _clip_confidence(cls, v):
        if v is None:
            return None
        return max(0.0, min(float(v), 1.0))


class ExtractionResult(BaseModel):
    """Structured answer of the extraction endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    fields: List[ExtractedField] = Field(default_factory=list)
    form_title: Optional[str] = Field(None, alias="formTitle")
    description: Optional[str] = None

    # Set by the client from the proxy's ``cached`` flag; never serialised.
    cached: bool = Field(False, exclude=True)

    @field_validator("fields", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return [] if v is None else v

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# Derived UI state
# ---------------------------------------------------------------------------


class FieldPosition(BaseModel):
    """Rounded render-pixel rectangle used for drawing and hit-testing."""

    model_config = ConfigDict(frozen=True)

    page: int
    x: int
    y: int
    width: int
    height: int

    def contains(self, x: float, y: float) -> bool:
        """Closed-interval containment on all four edges."""
        return (
            self.x <= x <= self.x + self.width
            and self.y <= y <= self.y + self.height
        )

    @property
    def rect(self) -> Tuple[int, int, int, int]:
        """(x1, y1, x2, y2) corners, the form PIL expects."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


class FormField(BaseModel):
    """Editable entry of the form panel."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str = ""
    type: FieldType = FieldType.TEXT
