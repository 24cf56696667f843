"""
Type registry for widget model and view implementations.

Usage:
    registry = TypeRegistry()

    # In a widget extension:
    registry.register_model("IntSliderModel", IntSliderModel)
    registry.register_view("IntSliderView", IntSliderView)

    # In the factories:
    view_cls = registry.lookup_view("IntSliderView")

A registry is constructed once at process start and passed by reference to
every WidgetManager. Extensions installed as distributions can also announce
their types through the 'widget_bridge.types' entry point group.
"""
import logging
from importlib.metadata import entry_points
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT_GROUP = "widget_bridge.types"

MODEL = "model"
VIEW = "view"


class TypeRegistry:
    """
    Two independent namespaces mapping a name to a constructor.

    Registering a name twice silently replaces the earlier constructor.
    Constructors are not validated here; a bad one only fails when a
    factory instantiates it.
    """

    def __init__(self):
        self._model_types: Dict[str, Any] = {}
        self._view_types: Dict[str, Any] = {}

    def register_model(self, model_name: str, model_type: Any) -> None:
        """Register a widget model constructor by name."""
        self._model_types[model_name] = model_type
        logger.debug(f"Registered widget model: {model_name} -> {_type_name(model_type)}")

    def register_view(self, view_name: str, view_type: Any) -> None:
        """Register a widget view constructor by name."""
        self._view_types[view_name] = view_type
        logger.debug(f"Registered widget view: {view_name} -> {_type_name(view_type)}")

    def lookup_model(self, model_name: Optional[str]) -> Optional[Any]:
        if model_name is None:
            return None
        return self._model_types.get(model_name)

    def lookup_view(self, view_name: Optional[str]) -> Optional[Any]:
        if view_name is None:
            return None
        return self._view_types.get(view_name)

    def lookup(self, kind: str, name: Optional[str]) -> Optional[Any]:
        if kind == MODEL:
            return self.lookup_model(name)
        if kind == VIEW:
            return self.lookup_view(name)
        raise ValueError(f"Unknown widget type kind '{kind}'")

    def available_models(self) -> List[str]:
        return sorted(self._model_types.keys())

    def available_views(self) -> List[str]:
        return sorted(self._view_types.keys())

    def load_entry_points(self, group: str = DEFAULT_ENTRY_POINT_GROUP) -> int:
        """
        Register every type announced under an entry point group.

        The loaded object must carry a `widget_kind` attribute ("model" or
        "view"). It is registered under its `widget_name` attribute if it has
        one, otherwise under the entry point name.

        Returns:
            Number of types registered.
        """
        loaded = 0
        try:
            eps = entry_points(group=group)
        except Exception as e:
            logger.error(f"Failed to discover widget type entry points in '{group}': {e}")
            return 0

        for ep in eps:
            try:
                widget_type = ep.load()
            except Exception as e:
                logger.error(f"Failed to load widget type entry point '{ep.name}': {e}")
                continue

            kind = getattr(widget_type, "widget_kind", None)
            name = getattr(widget_type, "widget_name", None) or ep.name
            if kind == MODEL:
                self.register_model(name, widget_type)
            elif kind == VIEW:
                self.register_view(name, widget_type)
            else:
                logger.warning(f"Entry point '{ep.name}' does not declare widget_kind, skipping")
                continue
            loaded += 1
            logger.info(f"Loaded widget {kind} '{name}' from entry point '{ep.name}'")
        return loaded


def _type_name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or repr(obj)
