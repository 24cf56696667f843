# widget_bridge.transport - Comm abstractions and the in-process transport

from .comm import Comm, CommManager, Kernel, Message, Callbacks, TargetHandler
from .local import LocalComm, LocalCommManager, LocalKernel, make_msg, new_id

__all__ = [
    "Comm",
    "CommManager",
    "Kernel",
    "Message",
    "Callbacks",
    "TargetHandler",
    "LocalComm",
    "LocalCommManager",
    "LocalKernel",
    "make_msg",
    "new_id",
]
