"""
Interfaces of the host UI surface consumed by the widget bridge.

None of these are implemented here; the notebook front-end supplies them.
"""
from typing import Any, Dict, Optional, Protocol


class OutputArea(Protocol):
    """Output-routing handle of a cell."""

    def handle_output(self, msg: Dict[str, Any]) -> None:
        ...

    def handle_clear_output(self, msg: Dict[str, Any]) -> None:
        ...


class DisplayRegion(Protocol):
    """Region of a cell that rendered widget views are attached to."""

    def append(self, element: Any) -> None:
        ...


class Cell(Protocol):
    output_area: Optional[OutputArea]
    widget_subarea: Optional[DisplayRegion]


class Notebook(Protocol):
    """UI root: knows which cell an executed message came from."""

    keyboard_manager: Any

    def get_msg_cell(self, msg_id: str) -> Optional[Cell]:
        ...


class KeyboardManager(Protocol):
    """Focus-capture collaborator."""

    def register_events(self, element: Any) -> None:
        """Suspend global keyboard handling while `element` has focus."""
        ...
