"""
In-process comm transport.

LocalKernel records every outbound frame instead of writing it to a socket,
and the backend side is driven by calling `LocalCommManager.comm_open`,
`comm_msg` and `comm_close` with message dicts. Used by the test-suite and by
hosts that embed the bridge next to the backend in one process.
"""
import inspect
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..exceptions import TransportError
from .comm import Callbacks, Comm, CommManager, Message

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


def make_msg(msg_type: str, content: Dict[str, Any],
             parent_msg_id: Optional[str] = None,
             metadata: Optional[Dict[str, Any]] = None,
             msg_id: Optional[str] = None) -> Message:
    """Build a message envelope in the shape the bridge reads."""
    return {
        "header": {"msg_id": msg_id or new_id(), "msg_type": msg_type},
        "parent_header": {"msg_id": parent_msg_id} if parent_msg_id else {},
        "metadata": metadata or {},
        "content": content,
    }


class LocalKernel:
    """
    Records outbound shell messages and the callback bundle each was sent with.
    """

    def __init__(self):
        self.sent: List[Message] = []
        self._msg_callbacks: Dict[str, Callbacks] = {}

    def send_shell_message(self, msg_type: str, content: Dict[str, Any],
                           callbacks: Optional[Callbacks] = None,
                           metadata: Optional[Dict[str, Any]] = None) -> str:
        msg = make_msg(msg_type, content, metadata=metadata)
        msg_id = msg["header"]["msg_id"]
        self.sent.append(msg)
        if callbacks:
            self.set_callbacks_for_msg(msg_id, callbacks)
        return msg_id

    def set_callbacks_for_msg(self, msg_id: str, callbacks: Callbacks) -> None:
        self._msg_callbacks[msg_id] = callbacks

    def get_callbacks_for_msg(self, msg_id: str) -> Optional[Callbacks]:
        return self._msg_callbacks.get(msg_id)

    def clear_callbacks_for_msg(self, msg_id: str) -> None:
        self._msg_callbacks.pop(msg_id, None)

    def messages_of_type(self, msg_type: str) -> List[Message]:
        return [m for m in self.sent if m["header"]["msg_type"] == msg_type]


class LocalComm(Comm):

    def __init__(self, target_name: str, comm_id: Optional[str] = None,
                 manager: Optional["LocalCommManager"] = None):
        super().__init__(target_name, comm_id or new_id())
        self.manager = manager

    @property
    def kernel(self) -> Optional[LocalKernel]:
        return self.manager.kernel if self.manager else None

    def _send_frame(self, msg_type: str, content: Dict[str, Any],
                    callbacks: Optional[Callbacks], metadata: Optional[Dict[str, Any]]) -> str:
        if self.kernel is None:
            raise TransportError(f"Comm {self.comm_id} is not attached to a kernel")
        return self.kernel.send_shell_message(msg_type, content, callbacks=callbacks, metadata=metadata)

    def open(self, data: Optional[Dict[str, Any]] = None,
             callbacks: Optional[Callbacks] = None,
             metadata: Optional[Dict[str, Any]] = None) -> str:
        content = {"comm_id": self.comm_id, "target_name": self.target_name, "data": data or {}}
        return self._send_frame("comm_open", content, callbacks, metadata)

    def send(self, data: Dict[str, Any], callbacks: Optional[Callbacks] = None,
             metadata: Optional[Dict[str, Any]] = None) -> str:
        if self.closed:
            raise TransportError(f"Cannot send on closed comm {self.comm_id}")
        content = {"comm_id": self.comm_id, "data": data}
        return self._send_frame("comm_msg", content, callbacks, metadata)

    def close(self, data: Optional[Dict[str, Any]] = None,
              callbacks: Optional[Callbacks] = None,
              metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        if self.closed:
            return None
        content = {"comm_id": self.comm_id, "data": data or {}}
        msg_id = self._send_frame("comm_close", content, callbacks, metadata)
        self.handle_close(make_msg("comm_close", content))
        if self.manager:
            self.manager.unregister_comm(self)
        return msg_id


class LocalCommManager(CommManager):
    """
    CommManager over a LocalKernel.
    """

    def __init__(self, kernel: Optional[LocalKernel] = None):
        super().__init__(kernel if kernel is not None else LocalKernel())

    def new_comm(self, target_name: str, data: Optional[Dict[str, Any]] = None,
                 callbacks: Optional[Callbacks] = None,
                 metadata: Optional[Dict[str, Any]] = None) -> LocalComm:
        comm = LocalComm(target_name, manager=self)
        self.register_comm(comm)
        try:
            comm.open(data, callbacks, metadata)
        except TransportError:
            self.unregister_comm(comm)
            raise
        return comm

    async def comm_open(self, msg: Message) -> Any:
        """
        Handle a backend-initiated comm_open frame.

        Returns whatever the target handler returned (awaited if needed), or
        None when the target is unknown, in which case the comm is closed
        again immediately.
        """
        content = msg["content"]
        comm_id = content["comm_id"]
        target_name = content["target_name"]
        handler = self.targets.get(target_name)
        comm = LocalComm(target_name, comm_id, manager=self)
        self.register_comm(comm)

        if handler is None:
            logger.error(f"No such target registered: {target_name}")
            comm.close()
            return None

        try:
            result = handler(comm, msg)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Exception opening new comm for target '{target_name}': {e}", exc_info=True)
            comm.close()
            return None

    def comm_msg(self, msg: Message) -> None:
        comm = self.get_comm(msg["content"]["comm_id"])
        if comm is None:
            logger.warning(f"Message for unknown comm {msg['content']['comm_id']}")
            return
        comm.handle_msg(msg)

    def comm_close(self, msg: Message) -> None:
        comm = self.get_comm(msg["content"]["comm_id"])
        if comm is None:
            return
        self.unregister_comm(comm)
        comm.handle_close(msg)
