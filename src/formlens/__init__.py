"""Form-field extraction from PDFs with a vision model.

This package provides:
- PDF page rasterization with per-page geometry
- A client for the extraction gateway
- Mapping of model-reported boxes onto rendered pixels
- Selection, overlay drawing and editable form state
"""

from .coordinates import build_position_map, map_field_position
from .errors import (
    ConfigError,
    ExtractionError,
    FormlensError,
    RenderError,
    ResponseFormatError,
    UploadInProgressError,
    UpstreamError,
)
from .models import (
    ExtractedField,
    ExtractionResult,
    FieldPosition,
    FieldType,
    FormField,
    PageDimensions,
    RenderedDocument,
    RenderedPage,
)

__all__ = [
    "build_position_map",
    "map_field_position",
    "ConfigError",
    "ExtractionError",
    "FormlensError",
    "RenderError",
    "ResponseFormatError",
    "UploadInProgressError",
    "UpstreamError",
    "ExtractedField",
    "ExtractionResult",
    "FieldPosition",
    "FieldType",
    "FormField",
    "PageDimensions",
    "RenderedDocument",
    "RenderedPage",
]
