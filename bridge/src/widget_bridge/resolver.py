"""
Resolution of widget implementations by name.

A name resolves either against the local TypeRegistry or, when a module is
named, by loading that module and extracting the export of the same name.
Both branches sit behind `TypeResolver.resolve()` so the model and view
factories share identical semantics.
"""
import asyncio
import importlib
import logging
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, Dict, Optional, Type

from .exceptions import ModelResolutionError, ResolutionError, ViewResolutionError
from .registry import MODEL, VIEW, TypeRegistry

logger = logging.getLogger(__name__)


_ERRORS: Dict[str, Type[ResolutionError]] = {
    MODEL: ModelResolutionError,
    VIEW: ViewResolutionError,
}


def resolution_error(kind: str, name: Optional[str], module: Optional[str] = None,
                     detail: Optional[str] = None) -> ResolutionError:
    """Build the ResolutionError subclass matching `kind`."""
    return _ERRORS.get(kind, ResolutionError)(name, module, detail=detail)


class ModuleLoader(ABC):
    """Asynchronous lookup of a module by name."""

    @abstractmethod
    async def load(self, module_name: str) -> Any:
        """
        Load a module.

        Returns:
            An object exposing the module's exports as attributes.

        Raises:
            ImportError: if the module cannot be located.
        """
        raise NotImplementedError


class ImportlibModuleLoader(ModuleLoader):
    """
    Loads modules with importlib on the event loop thread.

    Import-time code of a widget module typically registers its types, so it
    must run on the same thread as everything else touching the TypeRegistry.
    The load still yields to the loop once before importing. Concurrent loads
    of the same module are served by the interpreter's module cache; nothing
    is de-duplicated here.
    """

    async def load(self, module_name: str) -> ModuleType:
        await asyncio.sleep(0)
        return importlib.import_module(module_name)


class ResolutionStrategy(ABC):
    tag: str = ""

    @abstractmethod
    async def resolve(self, kind: str, name: Optional[str], module: Optional[str]) -> Any:
        raise NotImplementedError


class RegistryLookup(ResolutionStrategy):
    """Resolve against the local registry. Completes without suspending."""
    tag = "registry"

    def __init__(self, registry: TypeRegistry):
        self.registry = registry

    async def resolve(self, kind: str, name: Optional[str], module: Optional[str] = None) -> Any:
        found = self.registry.lookup(kind, name)
        if found is None:
            raise resolution_error(kind, name, None)
        return found


class ModuleLookup(ResolutionStrategy):
    """Load `module` through the module loader, then take its `name` export."""
    tag = "module"

    def __init__(self, loader: ModuleLoader):
        self.loader = loader

    async def resolve(self, kind: str, name: Optional[str], module: Optional[str]) -> Any:
        try:
            mod = await self.loader.load(module)
        except Exception as e:
            raise resolution_error(
                kind, name, module,
                detail=f"Failed to load module '{module}' for {kind} '{name}': {e}"
            ) from e

        found = getattr(mod, name, None) if name else None
        if found is None:
            raise resolution_error(
                kind, name, module,
                detail=f"{kind.capitalize()} '{name}' not found in module '{module}'"
            )
        return found


class TypeResolver:
    """
    resolve(kind, name, module) -> constructor, or raises ResolutionError.
    """

    def __init__(self, registry: TypeRegistry, loader: Optional[ModuleLoader] = None):
        self.registry = registry
        self.loader = loader or ImportlibModuleLoader()
        self._registry_lookup = RegistryLookup(registry)
        self._module_lookup = ModuleLookup(self.loader)

    def strategy_for(self, module: Optional[str]) -> ResolutionStrategy:
        return self._module_lookup if module else self._registry_lookup

    async def resolve(self, kind: str, name: Optional[str], module: Optional[str] = None) -> Any:
        strategy = self.strategy_for(module)
        logger.debug(f"Resolving {kind} '{name}' via {strategy.tag}" + (f" ({module})" if module else ""))
        return await strategy.resolve(kind, name, module)

    async def resolve_model(self, name: Optional[str], module: Optional[str] = None) -> Any:
        return await self.resolve(MODEL, name, module)

    async def resolve_view(self, name: Optional[str], module: Optional[str] = None) -> Any:
        return await self.resolve(VIEW, name, module)
