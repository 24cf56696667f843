"""
Comm abstractions for the widget bridge.

A Comm is a bidirectional, named channel to the execution backend. The
CommManager owns the open comms, routes comm_open/comm_msg/comm_close frames
to them, and dispatches backend-initiated opens to the handler registered
for the comm's target name.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)


Message = Dict[str, Any]
Callbacks = Dict[str, Any]

# Handler invoked when the backend opens a comm against a registered target.
# It may return a value or an awaitable.
TargetHandler = Callable[["Comm", Message], Union[Any, Awaitable[Any]]]


class Kernel(Protocol):
    """The part of the backend connection the bridge consults directly."""

    def get_callbacks_for_msg(self, msg_id: str) -> Optional[Callbacks]:
        """Return the callback bundle registered when `msg_id` was sent, if any."""
        ...


class Comm(ABC):
    """
    Abstract base class for a single channel.

    Subclasses implement the outbound side (`send`, `close`); inbound frames
    are delivered through `handle_msg` / `handle_close`, which fan out to the
    listeners registered with `on_msg` / `on_close`.
    """

    def __init__(self, target_name: str, comm_id: str):
        self.target_name = target_name
        self.comm_id = comm_id
        self.closed = False
        self._msg_callbacks: List[Callable[[Message], Any]] = []
        self._close_callbacks: List[Callable[[Message], Any]] = []
        self.logger = logging.getLogger(f"{__name__}.{comm_id}")

    @abstractmethod
    def send(self, data: Dict[str, Any], callbacks: Optional[Callbacks] = None,
             metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Send a comm_msg frame.

        Returns:
            The msg_id of the outbound message.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self, data: Optional[Dict[str, Any]] = None,
              callbacks: Optional[Callbacks] = None,
              metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """Close the comm from the front-end side."""
        raise NotImplementedError

    def on_msg(self, callback: Callable[[Message], Any]) -> None:
        self._msg_callbacks.append(callback)

    def on_close(self, callback: Callable[[Message], Any]) -> None:
        self._close_callbacks.append(callback)

    def handle_msg(self, msg: Message) -> None:
        for callback in list(self._msg_callbacks):
            try:
                callback(msg)
            except Exception as e:
                self.logger.error(f"Exception handling comm msg: {e}", exc_info=True)

    def handle_close(self, msg: Message) -> None:
        if self.closed:
            return
        self.closed = True
        for callback in list(self._close_callbacks):
            try:
                callback(msg)
            except Exception as e:
                self.logger.error(f"Exception handling comm close: {e}", exc_info=True)


class CommManager(ABC):
    """
    Abstract base class for the comm registry of one backend connection.
    """

    def __init__(self, kernel: Optional[Kernel] = None):
        self.kernel = kernel
        self.targets: Dict[str, TargetHandler] = {}
        self.comms: Dict[str, Comm] = {}

    def register_target(self, target_name: str, handler: TargetHandler) -> None:
        """Register the handler for comms the backend opens against `target_name`."""
        self.targets[target_name] = handler
        logger.debug(f"Registered comm target '{target_name}'")

    def unregister_target(self, target_name: str, handler: Optional[TargetHandler] = None) -> None:
        """Remove a target; when `handler` is given only remove it if it is still the registered one."""
        current = self.targets.get(target_name)
        if current is None:
            return
        if handler is not None and current != handler:
            return
        del self.targets[target_name]

    def register_comm(self, comm: Comm) -> str:
        self.comms[comm.comm_id] = comm
        return comm.comm_id

    def unregister_comm(self, comm: Comm) -> None:
        self.comms.pop(comm.comm_id, None)

    def get_comm(self, comm_id: str) -> Optional[Comm]:
        return self.comms.get(comm_id)

    @abstractmethod
    def new_comm(self, target_name: str, data: Optional[Dict[str, Any]] = None,
                 callbacks: Optional[Callbacks] = None,
                 metadata: Optional[Dict[str, Any]] = None) -> Comm:
        """Open a comm from the front-end side."""
        raise NotImplementedError
