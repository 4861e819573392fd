"""Selection state machine linking form controls and overlay boxes.

Selection is either :data:`NO_SELECTION` or :class:`Selected`. Focus on a
form control, or a click inside a field's box, selects that field; blur or a
click that misses every box clears the selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .models import FieldPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoSelection:
    """No field is highlighted."""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Selected:
    """Field ``name`` is highlighted."""

    name: str


Selection = Union[NoSelection, Selected]
NO_SELECTION = NoSelection()

SelectionListener = Callable[[Selection], None]
FocusListener = Callable[[str], None]


def hit_test(
    positions: Mapping[str, FieldPosition], page: int, x: float, y: float
) -> Optional[str]:
    """Return the first field (in map order) whose box on ``page`` holds the point."""
    for name, position in positions.items():
        if position.page == page and position.contains(x, y):
            return name
    return None


def scale_click_point(
    x: float,
    y: float,
    display_size: Tuple[float, float],
    natural_size: Tuple[float, float],
) -> Tuple[float, float]:
    """Convert a click in displayed pixels into canvas (render) pixels.

    The canvas is drawn at the page image's natural resolution but shown
    stretched to the layout width.
    """
    display_w, display_h = display_size
    natural_w, natural_h = natural_size
    if display_w <= 0 or display_h <= 0:
        return x, y
    return x * natural_w / display_w, y * natural_h / display_h


class SelectionController:
    """Owns the highlighted-field selection and notifies listeners on change."""

    def __init__(self, positions: Optional[Mapping[str, FieldPosition]] = None):
        self._positions: Dict[str, FieldPosition] = dict(positions or {})
        self._selection: Selection = NO_SELECTION
        self._change_listeners: List[SelectionListener] = []
        self._focus_listeners: List[FocusListener] = []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_change(self, listener: SelectionListener) -> None:
        """Call ``listener`` with the new selection after every change."""
        self._change_listeners.append(listener)

    def on_focus(self, listener: FocusListener) -> None:
        """Call ``listener`` with the field name whenever a field becomes selected.

        UI bindings use this to move input focus to the bound control and
        scroll it into centred view.
        """
        self._focus_listeners.append(listener)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def highlighted(self) -> Optional[str]:
        if isinstance(self._selection, Selected):
            return self._selection.name
        return None

    @property
    def positions(self) -> Dict[str, FieldPosition]:
        return dict(self._positions)

    def _transition(self, selection: Selection) -> Selection:
        if selection == self._selection:
            return selection
        self._selection = selection
        logger.debug("Selection changed to %s", selection)
        if isinstance(selection, Selected):
            for listener in self._focus_listeners:
                listener(selection.name)
        for listener in self._change_listeners:
            listener(selection)
        return selection

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def focus(self, name: str) -> Selection:
        """Pointer focus entered the control bound to ``name``."""
        return self._transition(Selected(name))

    def blur(self) -> Selection:
        """Pointer focus left the bound control."""
        return self._transition(NO_SELECTION)

    def click(
        self,
        page: int,
        x: float,
        y: float,
        display_size: Optional[Tuple[float, float]] = None,
        natural_size: Optional[Tuple[float, float]] = None,
    ) -> Selection:
        """Canvas click on ``page``; selects the hit field or clears the selection."""
        if display_size is not None and natural_size is not None:
            x, y = scale_click_point(x, y, display_size, natural_size)
        name = hit_test(self._positions, page, x, y)
        return self._transition(Selected(name) if name is not None else NO_SELECTION)

    def reset(self, positions: Mapping[str, FieldPosition]) -> None:
        """Replace the position map (new extraction) and clear the selection."""
        self._positions = dict(positions)
        self._transition(NO_SELECTION)
