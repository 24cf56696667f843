"""
Base classes for widget models and views.

A WidgetModel mirrors backend state over its comm. A WidgetView renders a
model inside a cell; many views may share one model. Views are not owned by
the model: a view subscribes to the model's 'destroy' event and removes
itself when it fires.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from .events import EventEmitter, Subscription
from .transport.comm import Callbacks, Comm, Message

if TYPE_CHECKING:
    from .manager import WidgetManager

logger = logging.getLogger(__name__)

VIEW_NAME_KEY = "_view_name"
VIEW_MODULE_KEY = "_view_module"


class WidgetModel(EventEmitter):
    """
    Stateful entity synchronized with the backend over one comm.

    Inbound comm messages carry a `method`:
      - "update":  `state` is merged into the model state
      - "custom":  `content` is re-emitted as 'msg:custom'
      - "display": the manager is asked to display a view of this model

    Events: 'change', 'change:<key>', 'msg:custom', 'comm:close', 'destroy'.
    """
    widget_kind = "model"

    def __init__(self, widget_manager: "WidgetManager", model_id: str, comm: Optional[Comm],
                 init_state_callback: Optional[Callable[["WidgetModel"], Any]] = None):
        super().__init__()
        self.widget_manager = widget_manager
        self.id = model_id
        self.comm = comm
        self.state: Dict[str, Any] = {}
        self.comm_live = False
        self.destroyed = False
        self._init_state_callback = init_state_callback

        if comm is not None:
            comm.on_msg(self._handle_comm_msg)
            comm.on_close(self._handle_comm_closed)
            self.comm_live = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.set_state({key: value})

    def set_state(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a state patch, emitting change events for keys whose value changed."""
        changed = {}
        for key, value in state.items():
            if key not in self.state or self.state[key] != value:
                changed[key] = value
        self.state.update(state)
        for key, value in changed.items():
            self.trigger(f"change:{key}", self, value)
        if changed:
            self.trigger("change", self, changed)
        return changed

    def send(self, content: Any, callbacks: Optional[Callbacks] = None) -> Optional[str]:
        """Send a custom message to the backend counterpart."""
        if not self._check_comm("send"):
            return None
        return self.comm.send({"method": "custom", "content": content}, callbacks)

    def save_changes(self, keys: Optional[List[str]] = None,
                     callbacks: Optional[Callbacks] = None) -> Optional[str]:
        """Push (part of) the current state to the backend."""
        if not self._check_comm("sync"):
            return None
        state = self.state if keys is None else {k: self.state.get(k) for k in keys}
        return self.comm.send({"method": "update", "state": dict(state)}, callbacks)

    def close(self) -> None:
        """Close the comm from the front-end; fires 'comm:close' then 'destroy'."""
        if self.comm is not None and self.comm_live:
            self.comm.close()
        else:
            self._destroy()

    def _check_comm(self, action: str) -> bool:
        if self.comm is None or not self.comm_live:
            logger.warning(f"Cannot {action} model {self.id}: comm is not live")
            return False
        return True

    def _handle_comm_msg(self, msg: Message) -> None:
        data = msg.get("content", {}).get("data", {})
        method = data.get("method")
        if method == "update":
            self.set_state(data.get("state", {}))
            if self._init_state_callback is not None:
                callback, self._init_state_callback = self._init_state_callback, None
                callback(self)
        elif method == "custom":
            self.trigger("msg:custom", data.get("content"))
        elif method == "display":
            self.widget_manager.schedule_display(msg, self)
        else:
            logger.debug(f"Ignoring comm message with method {method!r} for model {self.id}")

    def _handle_comm_closed(self, msg: Message) -> None:
        self.comm_live = False
        self.trigger("comm:close", self)
        self._destroy()

    def _destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        self.trigger("destroy", self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


@dataclass
class ViewOptions:
    """
    Options bundle for creating a view.

    `callback` receives the rendered view; `errback` receives a failure.
    """
    cell: Any = None
    parent: Optional["WidgetView"] = None
    callback: Optional[Callable[["WidgetView"], Any]] = None
    errback: Optional[Callable[[Any], Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Element:
    """Opaque render handle attached to a cell's display region."""
    tag_name: str = "div"
    attrs: Dict[str, Any] = field(default_factory=dict)
    children: List[Any] = field(default_factory=list)


class WidgetView(EventEmitter):
    """
    Rendering of a WidgetModel in a cell.

    Subclasses override `render()`. Events: 'displayed', 'remove'.
    """
    widget_kind = "view"
    tag_name = "div"

    def __init__(self, model: WidgetModel, options: Optional[ViewOptions] = None):
        super().__init__()
        self.model = model
        self.options = options if options is not None else ViewOptions()
        self.el = Element(self.tag_name)
        self.additional_elements: List[Any] = []
        self.removed = False
        self._model_subscription: Optional[Subscription] = None

    @property
    def cell(self) -> Any:
        return self.options.cell

    def render(self) -> None:
        pass

    def bind_to_model(self) -> Subscription:
        """Remove this view when its model is destroyed."""
        if self._model_subscription is None or not self._model_subscription.active:
            self._model_subscription = self.model.on("destroy", lambda *_: self.remove())
        return self._model_subscription

    def discard(self) -> None:
        """Drop the view without removing it; detaches from the model's lifecycle."""
        if self._model_subscription is not None:
            self._model_subscription.cancel()
            self._model_subscription = None

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        self.discard()
        self.trigger("remove", self)
        self.off()

    def callbacks(self) -> Callbacks:
        return self.model.widget_manager.callbacks(self)

    def send(self, content: Any) -> Optional[str]:
        return self.model.send(content, self.callbacks())

    def touch(self) -> Optional[str]:
        """Push the model state to the backend with this view's routing callbacks."""
        return self.model.save_changes(callbacks=self.callbacks())

    async def create_child_view(self, child_model: WidgetModel, **options) -> Optional["WidgetView"]:
        """Create a view nested under this one; it renders in this view's cell."""
        result = await self.model.widget_manager.create_view(
            child_model, ViewOptions(parent=self, **options)
        )
        return result.value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} model={self.model.id!r}>"
