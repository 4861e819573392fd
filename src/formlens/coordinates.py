"""Map model-reported bounding boxes onto rendered page pixels.

The extraction prompt asks for two representations of every box:

* ``coordinates_norm`` - fractions (0..1) of the rendered page size
* ``coordinates`` - absolute values in original, unscaled page units

Either may be missing from free-form model output. The normalized box wins
whenever it is present since it does not depend on the model measuring the
image it was shown in the right unit. All math stays in floating point until
the final ``FieldPosition`` is built.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .models import BoxCoordinates, ExtractedField, FieldPosition, PageDimensions

logger = logging.getLogger(__name__)

# Size assumed for an absolute box that only reports its origin, in
# original page units.
DEFAULT_ABSOLUTE_WIDTH = 100.0
DEFAULT_ABSOLUTE_HEIGHT = 30.0

# Fraction of the page beyond which the two representations "disagree".
DISAGREEMENT_TOLERANCE = 0.10

RenderBox = Tuple[float, float, float, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (browser semantics)."""
    return int(math.floor(value + 0.5))


def _component(value: Optional[float], default: float = 0.0) -> float:
    return default if value is None else float(value)


def normalized_to_render(box: BoxCoordinates, dims: PageDimensions) -> RenderBox:
    return (
        _component(box.x) * dims.render_width,
        _component(box.y) * dims.render_height,
        _component(box.width) * dims.render_width,
        _component(box.height) * dims.render_height,
    )


def absolute_to_render(box: BoxCoordinates, dims: PageDimensions) -> RenderBox:
    return (
        _component(box.x) * dims.scale_x,
        _component(box.y) * dims.scale_y,
        _component(box.width, DEFAULT_ABSOLUTE_WIDTH) * dims.scale_x,
        _component(box.height, DEFAULT_ABSOLUTE_HEIGHT) * dims.scale_y,
    )


def _disagrees(a: RenderBox, b: RenderBox, dims: PageDimensions) -> bool:
    tol_x = dims.render_width * DISAGREEMENT_TOLERANCE
    tol_y = dims.render_height * DISAGREEMENT_TOLERANCE
    return abs(a[0] - b[0]) > tol_x or abs(a[1] - b[1]) > tol_y


def field_render_box(field: ExtractedField, dims: PageDimensions) -> Optional[RenderBox]:
    """Return the unrounded render-pixel box for ``field`` on its page."""
    if field.coordinates_norm is not None:
        box = normalized_to_render(field.coordinates_norm, dims)
        if field.coordinates is not None:
            other = absolute_to_render(field.coordinates, dims)
            if _disagrees(box, other, dims):
                logger.debug(
                    "Field %r: normalized box %s disagrees with absolute box %s; "
                    "using normalized",
                    field.name,
                    box,
                    other,
                )
        return box

    if field.coordinates is not None:
        return absolute_to_render(field.coordinates, dims)

    return None


def map_field_position(
    field: ExtractedField, dimensions: Sequence[PageDimensions]
) -> Optional[FieldPosition]:
    """Materialise the rounded ``FieldPosition`` of ``field``.

    Returns None when the field references a page that does not exist or
    carries no bounding box at all; such fields still appear in the form.
    """
    page = field.page_number
    if page < 0 or page >= len(dimensions):
        logger.debug("Field %r references missing page %d", field.name, page)
        return None

    box = field_render_box(field, dimensions[page])
    if box is None:
        return None

    x, y, width, height = box
    return FieldPosition(
        page=page,
        x=round_half_up(x),
        y=round_half_up(y),
        width=round_half_up(width),
        height=round_half_up(height),
    )


def build_position_map(
    fields: Iterable[ExtractedField], dimensions: Sequence[PageDimensions]
) -> Dict[str, FieldPosition]:
    """Build the name-keyed position map in extraction order.

    Names are the join key with the form list. A duplicate name overwrites the
    earlier position but keeps its insertion slot; a duplicate without a box
    removes the earlier one so the overlay matches the surviving field.
    """
    positions: Dict[str, FieldPosition] = {}
    for field in fields:
        position = map_field_position(field, dimensions)
        if position is not None:
            positions[field.name] = position
        else:
            positions.pop(field.name, None)
    return positions
