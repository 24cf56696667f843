"""
Process-wide runtime objects of the widget bridge.

A WidgetRuntime is constructed once at startup and passed to every
WidgetManager. It owns the type registry, the module loader and the list of
live managers.
"""
import importlib
import logging
from typing import List, Optional, TYPE_CHECKING

from .config import WidgetBridgeConfig
from .exceptions import ConfigError
from .registry import TypeRegistry
from .resolver import ImportlibModuleLoader, ModuleLoader

if TYPE_CHECKING:
    from .manager import WidgetManager

logger = logging.getLogger(__name__)

REGISTER_HOOK = "register_widgets"


class WidgetRuntime:

    def __init__(self, registry: Optional[TypeRegistry] = None,
                 loader: Optional[ModuleLoader] = None,
                 config: Optional[WidgetBridgeConfig] = None):
        self.config = config or WidgetBridgeConfig()
        self.registry = registry if registry is not None else TypeRegistry()
        self.loader = loader if loader is not None else ImportlibModuleLoader()
        self._managers: List["WidgetManager"] = []

    @classmethod
    def from_config(cls, config: WidgetBridgeConfig) -> "WidgetRuntime":
        runtime = cls(config=config)
        runtime.bootstrap()
        return runtime

    def bootstrap(self) -> None:
        """
        Populate the registry: preload modules first, then installed entry points.

        A preloaded module registers its types through a
        `register_widgets(registry)` function.
        """
        for module_name in self.config.preload_modules:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigError(f"Failed to preload widget module '{module_name}': {e}") from e
            hook = getattr(module, REGISTER_HOOK, None)
            if hook is None:
                logger.warning(f"Preloaded module '{module_name}' has no {REGISTER_HOOK}() hook")
                continue
            hook(self.registry)
            logger.info(f"Registered widgets from module '{module_name}'")

        if self.config.load_entry_points:
            self.registry.load_entry_points(self.config.entry_point_group)

    @property
    def managers(self) -> List["WidgetManager"]:
        return list(self._managers)

    def add_manager(self, manager: "WidgetManager") -> None:
        self._managers.append(manager)

    def remove_manager(self, manager: "WidgetManager") -> None:
        try:
            self._managers.remove(manager)
        except ValueError:
            pass
