"""
Widget Bridge - model/view synchronization between an execution backend
and a notebook front-end.

This package provides:
- Type registry and resolution (registry.py, resolver.py)
- Widget model and view base classes (widget.py)
- Model/view factories (factories.py)
- The WidgetManager aggregate (manager.py)
- Comm abstractions and an in-process transport (transport/)
- Configuration, logging and CLI (config.py, logging_config.py, cli.py)
"""

from . import transport

from .exceptions import (
    WidgetBridgeException,
    ConfigError,
    ResolutionError,
    ModelResolutionError,
    ViewResolutionError,
    CellNotFoundError,
    StaleModelError,
    TransportError,
)
from .events import EventEmitter, Subscription
from .registry import TypeRegistry
from .resolver import TypeResolver, ModuleLoader, ImportlibModuleLoader
from .widget import WidgetModel, WidgetView, ViewOptions, Element
from .factories import CreationResult, ModelFactory, ViewFactory, WidgetCreationError
from .config import WidgetBridgeConfig, load_config
from .runtime import WidgetRuntime
from .manager import WidgetManager

__all__ = [
    # Submodules
    "transport",
    # Exceptions
    "WidgetBridgeException",
    "ConfigError",
    "ResolutionError",
    "ModelResolutionError",
    "ViewResolutionError",
    "CellNotFoundError",
    "StaleModelError",
    "TransportError",
    "WidgetCreationError",
    # Events
    "EventEmitter",
    "Subscription",
    # Registry / resolution
    "TypeRegistry",
    "TypeResolver",
    "ModuleLoader",
    "ImportlibModuleLoader",
    # Widgets
    "WidgetModel",
    "WidgetView",
    "ViewOptions",
    "Element",
    # Factories
    "CreationResult",
    "ModelFactory",
    "ViewFactory",
    # Runtime
    "WidgetBridgeConfig",
    "load_config",
    "WidgetRuntime",
    "WidgetManager",
]
