"""
Widget Bridge Exceptions.

Every failure in this package degrades to "this one model/view did not
materialize"; none of these errors is fatal to the process.
"""
from typing import Optional, Any, Dict


class WidgetBridgeException(Exception):
    """Base exception for all widget bridge errors."""

    def __init__(self, detail: str = "An error occurred", context: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class ConfigError(WidgetBridgeException):
    """Raised when the bridge configuration cannot be loaded or is invalid."""

    def __init__(self, detail: str = "Configuration error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class ResolutionError(WidgetBridgeException):
    """
    Raised when a named model/view implementation cannot be found,
    either in the local registry or through a module load.
    """
    kind: str = "type"

    def __init__(
        self,
        name: Optional[str],
        module: Optional[str] = None,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.module = module
        if detail is None:
            where = f"module '{module}'" if module else "the local registry"
            detail = f"Unknown {self.kind} '{name}' (not found in {where})"
        super().__init__(detail=detail, context=context)

    @property
    def descriptor(self) -> Dict[str, Any]:
        """Structured description handed to error callbacks."""
        return {
            f"unknown_{self.kind}": True,
            f"{self.kind}_name": self.name,
            f"{self.kind}_module": self.module,
        }


class ModelResolutionError(ResolutionError):
    kind = "model"


class ViewResolutionError(ResolutionError):
    kind = "view"


class CellNotFoundError(WidgetBridgeException):
    """Raised when no originating cell can be determined for a display request."""

    def __init__(self, msg_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.msg_id = msg_id
        super().__init__(
            detail=f"Could not determine where the display message {msg_id!r} was from",
            context=context
        )


class StaleModelError(WidgetBridgeException):
    """Raised when a model is destroyed while a view for it is still being created."""

    def __init__(self, model_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.model_id = model_id
        super().__init__(
            detail=f"Model {model_id!r} was destroyed before its view could be created",
            context=context
        )


class TransportError(WidgetBridgeException):
    """Raised when a comm cannot be opened, written to, or closed."""

    def __init__(self, detail: str = "Transport error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)
