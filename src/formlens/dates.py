"""Date conversions between model output, stored values and date controls.

Date fields are stored in ``DD/MM/YYYY`` display form. Date controls work in
``YYYY-MM-DD``. Both converters are best effort: anything they cannot
recognise is passed through unchanged.
"""

import re
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

_DAY_FIRST = re.compile(r"^\d{2}[/-]\d{2}[/-]\d{4}$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_generic(value: str) -> Optional[datetime]:
    try:
        return date_parser.parse(value)
    except (date_parser.ParserError, ValueError, OverflowError):
        return None


def to_dd_mm_yyyy(value: str) -> str:
    """Normalise a date string to ``DD/MM/YYYY``.

    Accepts ``DD/MM/YYYY``, ``DD-MM-YYYY``, ``YYYY-MM-DD`` and whatever the
    generic parser understands; unparseable input is returned as is.
    """
    if not value:
        return ""
    value = value.strip()

    if _DAY_FIRST.match(value):
        return value.replace("-", "/")

    if _ISO_DATE.match(value):
        year, month, day = value.split("-")
        return f"{day}/{month}/{year}"

    parsed = _parse_generic(value)
    if parsed is not None:
        return parsed.strftime("%d/%m/%Y")

    return value


def to_yyyy_mm_dd(value: str) -> str:
    """Convert a stored ``DD/MM/YYYY`` (or ``DD-MM-YYYY``) value for a date control."""
    if not value:
        return ""
    value = value.strip()

    if _DAY_FIRST.match(value):
        day, month, year = re.split(r"[/-]", value)
        return f"{year}-{month}-{day}"

    return value
