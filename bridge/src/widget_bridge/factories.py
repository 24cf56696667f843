"""
Model and view factories.

Both factories resolve the implementation through the shared TypeResolver
and report the outcome as a CreationResult. A failure is additionally handed
to the caller's errback when one is supplied, and only logged otherwise.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, TYPE_CHECKING

from .exceptions import (
    ResolutionError,
    StaleModelError,
    TransportError,
    ViewResolutionError,
    WidgetBridgeException,
)
from .resolver import TypeResolver
from .transport.comm import Comm
from .widget import VIEW_MODULE_KEY, VIEW_NAME_KEY, ViewOptions, WidgetModel, WidgetView

if TYPE_CHECKING:
    from .manager import WidgetManager

logger = logging.getLogger(__name__)


class WidgetCreationError(WidgetBridgeException):
    """Raised when a resolved constructor fails while instantiating or rendering."""

    def __init__(self, detail: str = "Widget creation failed", context: Optional[dict] = None):
        super().__init__(detail=detail, context=context)


@dataclass
class CreationResult:
    """Result of a model/view creation."""
    value: Any = None
    error: Optional[WidgetBridgeException] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.value is not None


class ModelFactory:
    """
    Creates WidgetModels bound to a comm and stores them in the manager's table.
    """

    def __init__(self, manager: "WidgetManager", resolver: TypeResolver):
        self.manager = manager
        self.resolver = resolver

    async def create(
        self,
        model_name: Optional[str],
        comm: Optional[Comm] = None,
        target_name: Optional[str] = None,
        model_module: Optional[str] = None,
        init_state_callback: Optional[Callable[[WidgetModel], Any]] = None,
        errback: Optional[Callable[[Any], Any]] = None,
    ) -> CreationResult:
        """
        Create a model.

        Args:
            model_name: Name of the model implementation.
            comm: An already-open comm (backend-initiated open). When omitted
                a comm is opened against `target_name`.
            target_name: Target name of the widget in the back-end.
            model_module: Module to load the implementation from, instead of
                the local registry.
            init_state_callback: Called with the model when the first state
                push from the back-end is received.
            errback: Receives the error if creation fails.
        """
        opened_here = comm is None
        if comm is None:
            try:
                comm = self.manager.comm_manager.new_comm(
                    self.manager.target_name, {"target_name": target_name}
                )
            except Exception as e:
                error = e if isinstance(e, TransportError) else TransportError(
                    f"Could not open a comm for model '{model_name}': {e}",
                    context={"target_name": target_name},
                )
                return self._fail(error, errback)

        try:
            model_type = await self.resolver.resolve_model(model_name, model_module)
        except ResolutionError as e:
            if opened_here:
                comm.close()
            return self._fail(e, errback)

        model_id = comm.comm_id
        if getattr(comm, "closed", False):
            return self._fail(StaleModelError(model_id), errback)

        try:
            widget_model = model_type(self.manager, model_id, comm, init_state_callback)
        except Exception as e:
            if opened_here:
                comm.close()
            error = WidgetCreationError(
                f"Error creating widget model '{model_name}': {e}",
                context={"model_name": model_name, "model_module": model_module},
            )
            return self._fail(error, errback)

        widget_model.on("comm:close", lambda *_: self.manager._remove_model(model_id, widget_model))
        self.manager._models[model_id] = widget_model
        logger.info(f"Created widget model '{model_name}' with id {model_id}")
        return CreationResult(widget_model)

    def _fail(self, error: WidgetBridgeException, errback: Optional[Callable[[Any], Any]]) -> CreationResult:
        if errback is not None:
            errback(error)
        else:
            logger.error(f"Error creating widget model: {error}")
        return CreationResult(error=error)


class ViewFactory:
    """
    Creates and renders WidgetViews for a model.
    """

    def __init__(self, manager: "WidgetManager", resolver: TypeResolver):
        self.manager = manager
        self.resolver = resolver

    async def create(self, model: WidgetModel, options: Optional[ViewOptions] = None) -> CreationResult:
        """
        Create a view for a model.

        The view class is named by the model's `_view_name` / `_view_module`
        state. When `options.parent` is set the new view always uses the
        parent's cell. `options.callback` receives the rendered view;
        `options.errback` receives `{"unknown_view": True, "view_name": ...,
        "view_module": ...}` when the view cannot be resolved.
        """
        options = options if options is not None else ViewOptions()
        view_name = model.get(VIEW_NAME_KEY)
        view_module = model.get(VIEW_MODULE_KEY)

        try:
            view_type = await self.resolver.resolve_view(view_name, view_module)
        except ResolutionError as e:
            if not isinstance(e, ViewResolutionError):
                e = ViewResolutionError(view_name, view_module, detail=e.detail)
            return self._fail(e, options)

        # The model may have been destroyed while the module was loading.
        if model.destroyed:
            return self._fail(StaleModelError(model.id), options)

        if options.parent is not None:
            options.cell = options.parent.options.cell

        try:
            view = view_type(model=model, options=options)
            view.render()
        except Exception as e:
            error = WidgetCreationError(
                f"Error creating view '{view_name}' for model {model.id}: {e}",
                context={"view_name": view_name, "view_module": view_module},
            )
            return self._fail(error, options)

        if isinstance(view, WidgetView):
            view.bind_to_model()
        else:
            model.on("destroy", lambda *_: view.remove())

        if options.callback is not None:
            options.callback(view)
        return CreationResult(view)

    def _fail(self, error: WidgetBridgeException, options: ViewOptions) -> CreationResult:
        payload = error.descriptor if isinstance(error, ResolutionError) else error
        if options.errback is not None:
            options.errback(payload)
        else:
            logger.error(f"Error creating widget view: {payload}")
        return CreationResult(error=error)
