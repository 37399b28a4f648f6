"""Top-level package for the travelchat terminal client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import TravelChatApp
    from .clipboard import ClipboardService
    from .config import ensure_config_dir, load_config
    from .dispatcher import RequestDispatcher
    from .exceptions import (
        ClipboardError,
        ConfigValidationError,
        NetworkError,
        TravelChatError,
    )
    from .models import Message
    from .parsing import ParsedContent, parse_message
    from .session import ConversationSession
    from .state import ConversationState
    from .ui_state import UIStateController

__all__ = [
    "ClipboardError",
    "ClipboardService",
    "ConfigValidationError",
    "ConversationSession",
    "ConversationState",
    "Message",
    "NetworkError",
    "ParsedContent",
    "RequestDispatcher",
    "TravelChatApp",
    "TravelChatError",
    "UIStateController",
    "ensure_config_dir",
    "load_config",
    "parse_message",
]

_LAZY_EXPORTS: dict[str, str] = {
    "ClipboardError": ".exceptions",
    "ConfigValidationError": ".exceptions",
    "NetworkError": ".exceptions",
    "TravelChatError": ".exceptions",
    "ClipboardService": ".clipboard",
    "ensure_config_dir": ".config",
    "load_config": ".config",
    "RequestDispatcher": ".dispatcher",
    "Message": ".models",
    "ParsedContent": ".parsing",
    "parse_message": ".parsing",
    "ConversationSession": ".session",
    "ConversationState": ".state",
    "UIStateController": ".ui_state",
    "TravelChatApp": ".app",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the UI dependency optional at import time."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
