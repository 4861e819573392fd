"""Editable form state derived from one extraction response.

Field list, position map and page set always come from the same extraction
call and are swapped in together. Date fields are stored as ``DD/MM/YYYY``;
conversion to and from the date control's ``YYYY-MM-DD`` happens at the
control boundary.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional, Union

from .config import settings
from .coordinates import build_position_map
from .dates import to_dd_mm_yyyy, to_yyyy_mm_dd
from .interaction import SelectionController
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

logger = logging.getLogger(__name__)

CHECKED_VALUES = frozenset({"true", "checked"})


class ControlKind(str, Enum):
    """Input control used to edit a field."""

    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    DATE = "date"
    EMAIL = "email"
    TEL = "tel"
    TEXT = "text"


_CONTROL_FOR_TYPE = {
    FieldType.CHECKBOX: ControlKind.CHECKBOX,
    FieldType.RADIO: ControlKind.RADIO,
    FieldType.DROPDOWN: ControlKind.SELECT,
    FieldType.DATE: ControlKind.DATE,
    FieldType.EMAIL: ControlKind.EMAIL,
    FieldType.PHONE: ControlKind.TEL,
}


def control_kind(field_type: FieldType) -> ControlKind:
    return _CONTROL_FOR_TYPE.get(field_type, ControlKind.TEXT)


def to_form_field(field: ExtractedField) -> FormField:
    """Convert model output into a form entry, normalising date values."""
    value = field.value
    if field.type == FieldType.DATE and value:
        value = to_dd_mm_yyyy(value)
    return FormField(name=field.name, value=value, type=field.type)


def merge_fields(fields: List[ExtractedField]) -> List[FormField]:
    """Build the form list; a repeated name overwrites the earlier entry in place."""
    merged: Dict[str, FormField] = {}
    for field in fields:
        if field.name in merged:
            logger.warning("Duplicate field name %r in extraction result; keeping the last value", field.name)
        merged[field.name] = to_form_field(field)
    return list(merged.values())


class FormState:
    """Document-scoped state: pages, fields, positions, selection and submit flags."""

    def __init__(
        self,
        *,
        submit_delay: Optional[float] = None,
        notification_seconds: Optional[float] = None,
    ) -> None:
        self.submit_delay = settings.submit_delay if submit_delay is None else submit_delay
        self.notification_seconds = (
            settings.notification_seconds if notification_seconds is None else notification_seconds
        )

        self.document: Optional[RenderedDocument] = None
        self.filename: Optional[str] = None
        self.fields: List[FormField] = []
        self.positions: Dict[str, FieldPosition] = {}
        self.interaction = SelectionController()

        self.loading = False
        self.submitting = False
        self.submitted = False
        self.alert: Optional[str] = None
        self._notification_handle: Optional[asyncio.TimerHandle] = None

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def pages(self) -> List[RenderedPage]:
        return list(self.document.pages) if self.document else []

    @property
    def dimensions(self) -> List[PageDimensions]:
        return self.document.dimensions if self.document else []

    def get_field(self, name: str) -> Optional[FormField]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    # ------------------------------------------------------------------
    # Extraction results
    # ------------------------------------------------------------------

    def apply_extraction(
        self,
        document: RenderedDocument,
        result: ExtractionResult,
        filename: Optional[str] = None,
    ) -> None:
        """Replace pages, fields and positions with one extraction generation."""
        fields = merge_fields(result.fields)
        positions = build_position_map(result.fields, document.dimensions)

        self.document = document
        self.filename = filename
        self.fields = fields
        self.positions = positions
        self.interaction.reset(positions)

        logger.info(
            "Loaded %d fields (%d with boxes) across %d pages",
            len(fields),
            len(positions),
            document.page_count,
        )

    # ------------------------------------------------------------------
    # Controlled mutation
    # ------------------------------------------------------------------

    def set_field_value(self, name: str, value: str) -> None:
        """Replace the value of ``name``; unknown names are ignored."""
        for index, field in enumerate(self.fields):
            if field.name == name:
                self.fields[index] = field.model_copy(update={"value": value})
                return

    def control_value(self, name: str) -> Union[str, bool, None]:
        """Value to show in the control bound to ``name``."""
        field = self.get_field(name)
        if field is None:
            return None
        kind = control_kind(field.type)
        if kind is ControlKind.DATE:
            return to_yyyy_mm_dd(field.value)
        if kind is ControlKind.CHECKBOX:
            return field.value in CHECKED_VALUES
        return field.value

    def set_control_value(self, name: str, value: Union[str, bool]) -> None:
        """Store an edit coming from the control bound to ``name``."""
        field = self.get_field(name)
        if field is None:
            return
        kind = control_kind(field.type)
        if kind is ControlKind.CHECKBOX:
            stored = "true" if value is True or value in CHECKED_VALUES else "false"
        elif kind is ControlKind.DATE:
            stored = to_dd_mm_yyyy(str(value))
        else:
            stored = str(value)
        self.set_field_value(name, stored)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop all document-scoped state."""
        self.document = None
        self.filename = None
        self.fields = []
        self.positions = {}
        self.interaction.reset({})

    def _clear_notification(self) -> None:
        self.submitted = False
        self._notification_handle = None

    async def submit(self) -> bool:
        """Simulate submission, then discard the document.

        Returns False without doing anything when a submit is already in
        flight.
        """
        if self.submitting:
            logger.warning("Submit ignored: a submission is already in progress")
            return False

        self.submitting = True
        try:
            logger.info("Submitting %d fields", len(self.fields))
            await asyncio.sleep(self.submit_delay)
            self.clear()
            self.submitted = True

            if self._notification_handle is not None:
                self._notification_handle.cancel()
            loop = asyncio.get_running_loop()
            self._notification_handle = loop.call_later(
                self.notification_seconds, self._clear_notification
            )
        finally:
            self.submitting = False
        return True
