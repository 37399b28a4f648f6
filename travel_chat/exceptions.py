"""Domain exception hierarchy for the travel chat client."""

from __future__ import annotations


class TravelChatError(RuntimeError):
    """Base class for all domain-level chat errors."""


class NetworkError(TravelChatError):
    """Raised when a turn exchange with the chat backend fails for any reason."""


class ClipboardError(TravelChatError):
    """Raised by clipboard backends when text cannot be written."""


class ConfigValidationError(TravelChatError):
    """Raised when configuration cannot be validated safely."""
