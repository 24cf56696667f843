"""
WidgetManager: the aggregate root of the widget bridge.

One manager serves one front-end/back-end connection. It registers the
widget comm target, keeps the table of live models keyed by comm id, and
turns display requests into rendered views attached to the cell the request
came from.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from .exceptions import CellNotFoundError
from .factories import CreationResult, ModelFactory, ViewFactory
from .host import Cell, KeyboardManager, Notebook
from .resolver import TypeResolver
from .runtime import WidgetRuntime
from .transport.comm import Callbacks, Comm, CommManager, Message
from .widget import ViewOptions, WidgetModel

logger = logging.getLogger(__name__)


class WidgetManager:
    """
    Mediates between a CommManager and the notebook UI.

    Usage:
        runtime = WidgetRuntime.from_config(load_config())
        manager = WidgetManager(comm_manager, notebook, runtime=runtime)

        result = await manager.create_model("IntSliderModel", "my.target")
        await manager.display_view(msg, result.value)
    """

    def __init__(self, comm_manager: CommManager, notebook: Optional[Notebook],
                 runtime: Optional[WidgetRuntime] = None,
                 target_name: Optional[str] = None):
        self.runtime = runtime if runtime is not None else WidgetRuntime()
        self.keyboard_manager: Optional[KeyboardManager] = getattr(notebook, "keyboard_manager", None)
        self.notebook = notebook
        self.comm_manager = comm_manager
        self.target_name = target_name or self.runtime.config.target_name
        self._models: Dict[str, WidgetModel] = {}  # model id -> model instance
        self._pending: Set[asyncio.Task] = set()

        self.resolver = TypeResolver(self.runtime.registry, self.runtime.loader)
        self.model_factory = ModelFactory(self, self.resolver)
        self.view_factory = ViewFactory(self, self.resolver)

        self.runtime.add_manager(self)
        self.comm_manager.register_target(self.target_name, self._handle_comm_open)

    @property
    def registry(self):
        return self.runtime.registry

    # --- Views ---

    async def display_view(self, msg: Message, model: WidgetModel,
                           errback: Optional[Callable[[Any], Any]] = None) -> CreationResult:
        """
        Display a view of `model` in the cell `msg` originated from.

        If the cell cannot be determined nothing is created; the error is
        passed to `errback` when given and logged otherwise.
        """
        msg_id = (msg.get("parent_header") or {}).get("msg_id")
        cell = self.get_msg_cell(msg_id) if msg_id else None
        if cell is None:
            error = CellNotFoundError(msg_id)
            if errback is not None:
                errback(error)
            else:
                logger.warning("Could not determine where the display message was from. "
                               "Widget will not be displayed")
            return CreationResult(error=error)

        def _on_view_created(view):
            self._handle_display_view(view)
            subarea = getattr(cell, "widget_subarea", None)
            if subarea is not None:
                subarea.append(view.el)
            view.trigger("displayed", view)

        return await self.create_view(model, ViewOptions(cell=cell, callback=_on_view_created, errback=errback))

    def schedule_display(self, msg: Message, model: WidgetModel) -> asyncio.Task:
        """
        Run `display_view` as a task; used from synchronous comm handlers.

        Must be called from code running on the event loop.
        """
        task = asyncio.get_running_loop().create_task(self.display_view(msg, model))
        self._pending.add(task)
        task.add_done_callback(self._on_display_done)
        return task

    def _on_display_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Scheduled display failed: {error}", exc_info=error)

    def _handle_display_view(self, view: Any) -> None:
        # Only the outermost view of a display request is registered;
        # nested views share its focus-capture region.
        if self.keyboard_manager is None:
            return
        self.keyboard_manager.register_events(view.el)
        for element in getattr(view, "additional_elements", None) or []:
            self.keyboard_manager.register_events(element)

    async def create_view(self, model: WidgetModel, options: Optional[ViewOptions] = None) -> CreationResult:
        """Create and render a view for a model."""
        return await self.view_factory.create(model, options)

    # --- Message routing ---

    def get_msg_cell(self, msg_id: str) -> Optional[Cell]:
        """
        Find the cell a message originated from.

        Checks the notebook's execution index first, then the get_cell
        callback of a message sent by a widget.
        """
        cell = None
        if self.notebook is not None:
            cell = self.notebook.get_msg_cell(msg_id)
        if cell is not None:
            return cell

        kernel = getattr(self.comm_manager, "kernel", None)
        if kernel is not None:
            callbacks = kernel.get_callbacks_for_msg(msg_id)
            iopub = callbacks.get("iopub") if callbacks else None
            get_cell = iopub.get("get_cell") if iopub else None
            if callable(get_cell):
                return get_cell()

        return None

    def callbacks(self, view: Any) -> Callbacks:
        """
        Callback bundle routing backend output for messages sent by `view`.

        Empty when the view has no cell.
        """
        options = getattr(view, "options", None)
        cell = getattr(options, "cell", None)
        if cell is None:
            return {}

        handle_output = None
        handle_clear_output = None
        output_area = getattr(cell, "output_area", None)
        if output_area is not None:
            handle_output = output_area.handle_output
            handle_clear_output = output_area.handle_clear_output

        return {
            "iopub": {
                "output": handle_output,
                "clear_output": handle_clear_output,
                # Lets get_msg_cell find the cell for messages sent with this bundle.
                "get_cell": lambda: cell,
            },
        }

    callbacks_for = callbacks

    # --- Models ---

    def get_model(self, model_id: str) -> Optional[WidgetModel]:
        model = self._models.get(model_id)
        if model is not None and model.id == model_id:
            return model
        return None

    @property
    def models(self) -> List[WidgetModel]:
        return list(self._models.values())

    async def _handle_comm_open(self, comm: Comm, msg: Message) -> CreationResult:
        data = msg.get("content", {}).get("data", {}) or {}
        return await self.model_factory.create(
            model_name=data.get("model_name") or data.get("target_name"),
            comm=comm,
            model_module=data.get("model_module"),
        )

    async def create_model(self, model_name: str, target_name: Optional[str] = None,
                           init_state_callback: Optional[Callable[[WidgetModel], Any]] = None,
                           model_module: Optional[str] = None,
                           errback: Optional[Callable[[Any], Any]] = None) -> CreationResult:
        """
        Create a new widget model, opening a comm for it.

        Args:
            model_name: Name of the widget model to create.
            target_name: Target name of the widget in the back-end.
            init_state_callback: Called when the first state push from the
                back-end is received.
            model_module: Module holding the model implementation.
            errback: Receives the error if the model cannot be created.
        """
        return await self.model_factory.create(
            model_name=model_name,
            target_name=target_name,
            model_module=model_module,
            init_state_callback=init_state_callback,
            errback=errback,
        )

    def _remove_model(self, model_id: str, model: WidgetModel) -> None:
        if self._models.get(model_id) is model:
            del self._models[model_id]
            logger.debug(f"Removed widget model {model_id}")

    # --- Lifecycle ---

    def close(self) -> None:
        """Stop serving the comm target and leave the runtime."""
        self.comm_manager.unregister_target(self.target_name, self._handle_comm_open)
        for task in list(self._pending):
            task.cancel()
        self.runtime.remove_manager(self)
