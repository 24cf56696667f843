import asyncio
import types

import pytest
from unittest.mock import MagicMock

from widget_bridge import TypeRegistry, WidgetManager, WidgetModel, WidgetRuntime, WidgetView
from widget_bridge.resolver import ModuleLoader
from widget_bridge.transport import LocalCommManager, make_msg, new_id


class FakeOutputArea:
    def __init__(self):
        self.outputs = []
        self.cleared = []

    def handle_output(self, msg):
        self.outputs.append(msg)

    def handle_clear_output(self, msg):
        self.cleared.append(msg)


class FakeRegion:
    def __init__(self):
        self.children = []

    def append(self, element):
        self.children.append(element)


class FakeCell:
    def __init__(self, name, with_output_area=True, with_subarea=True):
        self.name = name
        self.output_area = FakeOutputArea() if with_output_area else None
        self.widget_subarea = FakeRegion() if with_subarea else None

    def __repr__(self):
        return f"<FakeCell {self.name}>"


class FakeNotebook:
    def __init__(self):
        self.keyboard_manager = MagicMock()
        self.msg_cells = {}

    def get_msg_cell(self, msg_id):
        return self.msg_cells.get(msg_id)


class RecordingView(WidgetView):
    instances = []

    def __init__(self, model, options=None):
        super().__init__(model, options)
        self.render_count = 0
        RecordingView.instances.append(self)

    def render(self):
        self.render_count += 1


class FakeLoader(ModuleLoader):
    """Module loader serving in-memory modules; suspends once per load."""

    def __init__(self, modules=None):
        self.modules = modules or {}
        self.calls = []

    async def load(self, module_name):
        self.calls.append(module_name)
        await asyncio.sleep(0)
        if module_name not in self.modules:
            raise ImportError(f"No module named {module_name!r}")
        return self.modules[module_name]


def fake_module(**exports):
    return types.SimpleNamespace(**exports)


def comm_open_msg(data, comm_id=None, target_name="ipython.widget"):
    return make_msg("comm_open", {
        "comm_id": comm_id or new_id(),
        "target_name": target_name,
        "data": data,
    })


def display_msg(parent_msg_id):
    return make_msg("comm_msg", {"comm_id": "unused", "data": {"method": "display"}},
                    parent_msg_id=parent_msg_id)


@pytest.fixture(autouse=True)
def reset_recording_views():
    RecordingView.instances = []
    yield
    RecordingView.instances = []


@pytest.fixture
def registry():
    reg = TypeRegistry()
    reg.register_model("M", WidgetModel)
    reg.register_view("V", RecordingView)
    return reg


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def runtime(registry, loader):
    return WidgetRuntime(registry=registry, loader=loader)


@pytest.fixture
def comm_manager():
    return LocalCommManager()


@pytest.fixture
def notebook():
    return FakeNotebook()


@pytest.fixture
def manager(comm_manager, notebook, runtime):
    return WidgetManager(comm_manager, notebook, runtime=runtime)
