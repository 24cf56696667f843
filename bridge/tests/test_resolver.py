import collections
import sys
import threading

import pytest

from widget_bridge.exceptions import ModelResolutionError, ViewResolutionError
from widget_bridge.registry import TypeRegistry
from widget_bridge.resolver import (
    ImportlibModuleLoader,
    ModuleLookup,
    RegistryLookup,
    TypeResolver,
)

from conftest import FakeLoader, RecordingView, fake_module


@pytest.fixture
def resolver(registry):
    loader = FakeLoader({"ext.widgets": fake_module(ExtView=RecordingView, ExtModel=object)})
    return TypeResolver(registry, loader)


def test_strategy_selection(resolver):
    assert isinstance(resolver.strategy_for(None), RegistryLookup)
    assert isinstance(resolver.strategy_for(""), RegistryLookup)
    assert isinstance(resolver.strategy_for("ext.widgets"), ModuleLookup)


@pytest.mark.asyncio
async def test_resolve_from_registry(resolver):
    assert await resolver.resolve_view("V") is RecordingView
    assert resolver.loader.calls == []


@pytest.mark.asyncio
async def test_unregistered_local_name_fails_explicitly(resolver):
    with pytest.raises(ModelResolutionError) as exc_info:
        await resolver.resolve_model("Nope")
    assert exc_info.value.descriptor == {
        "unknown_model": True, "model_name": "Nope", "model_module": None,
    }


@pytest.mark.asyncio
async def test_resolve_from_module(resolver):
    assert await resolver.resolve_view("ExtView", "ext.widgets") is RecordingView
    assert await resolver.resolve_model("ExtModel", "ext.widgets") is object
    assert resolver.loader.calls == ["ext.widgets", "ext.widgets"]


@pytest.mark.asyncio
async def test_module_does_not_fall_back_to_registry(resolver):
    # "V" is registered locally but not exported by the module.
    with pytest.raises(ViewResolutionError) as exc_info:
        await resolver.resolve_view("V", "ext.widgets")
    assert exc_info.value.module == "ext.widgets"
    assert "not found in module" in exc_info.value.detail


@pytest.mark.asyncio
async def test_module_load_failure(resolver):
    with pytest.raises(ViewResolutionError) as exc_info:
        await resolver.resolve_view("ExtView", "missing.module")
    assert isinstance(exc_info.value.__cause__, ImportError)
    assert exc_info.value.descriptor == {
        "unknown_view": True, "view_name": "ExtView", "view_module": "missing.module",
    }


@pytest.mark.asyncio
async def test_importlib_loader():
    loader = ImportlibModuleLoader()
    resolver = TypeResolver(TypeRegistry(), loader)

    assert await resolver.resolve_model("OrderedDict", "collections") is collections.OrderedDict
    with pytest.raises(ModelResolutionError):
        await resolver.resolve_model("Anything", "widget_bridge_no_such_module")


@pytest.mark.asyncio
async def test_importlib_loader_imports_on_loop_thread(tmp_path, monkeypatch):
    (tmp_path / "widget_bridge_import_thread_mod.py").write_text(
        "import threading\n"
        "IMPORT_THREAD = threading.get_ident()\n"
        "class ThreadModel:\n"
        "    pass\n"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, "widget_bridge_import_thread_mod", raising=False)
    resolver = TypeResolver(TypeRegistry(), ImportlibModuleLoader())

    try:
        model_type = await resolver.resolve_model("ThreadModel", "widget_bridge_import_thread_mod")
        module = sys.modules["widget_bridge_import_thread_mod"]
    finally:
        sys.modules.pop("widget_bridge_import_thread_mod", None)

    assert model_type is module.ThreadModel
    assert module.IMPORT_THREAD == threading.get_ident()
