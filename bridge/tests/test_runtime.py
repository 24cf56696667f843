import sys
import types

import pytest
from unittest.mock import patch

from widget_bridge.config import WidgetBridgeConfig
from widget_bridge.exceptions import ConfigError
from widget_bridge.runtime import WidgetRuntime
from widget_bridge.widget import WidgetModel, WidgetView


@pytest.fixture
def preload_module():
    module = types.ModuleType("widget_bridge_test_preload")

    def register_widgets(registry):
        registry.register_model("PreloadedModel", WidgetModel)
        registry.register_view("PreloadedView", WidgetView)

    module.register_widgets = register_widgets
    sys.modules[module.__name__] = module
    yield module.__name__
    del sys.modules[module.__name__]


def test_bootstrap_runs_preload_hooks(preload_module):
    config = WidgetBridgeConfig(preload_modules=[preload_module], load_entry_points=False)

    runtime = WidgetRuntime.from_config(config)

    assert runtime.registry.lookup_model("PreloadedModel") is WidgetModel
    assert runtime.registry.lookup_view("PreloadedView") is WidgetView


def test_bootstrap_loads_entry_points():
    config = WidgetBridgeConfig(entry_point_group="custom.group")
    runtime = WidgetRuntime(config=config)

    with patch.object(runtime.registry, "load_entry_points", return_value=0) as load:
        runtime.bootstrap()

    load.assert_called_once_with("custom.group")


def test_missing_preload_module():
    config = WidgetBridgeConfig(preload_modules=["widget_bridge_no_such_module"], load_entry_points=False)

    with pytest.raises(ConfigError):
        WidgetRuntime.from_config(config)


def test_preload_module_without_hook():
    config = WidgetBridgeConfig(preload_modules=["json"], load_entry_points=False)

    runtime = WidgetRuntime.from_config(config)

    assert runtime.registry.available_models() == []


def test_manager_list():
    runtime = WidgetRuntime()
    first, second = object(), object()

    runtime.add_manager(first)
    runtime.add_manager(second)
    runtime.remove_manager(first)
    runtime.remove_manager(first)

    assert runtime.managers == [second]
