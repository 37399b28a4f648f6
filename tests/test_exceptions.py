"""Tests for domain exception hierarchy."""

from __future__ import annotations

import unittest

from travel_chat.exceptions import (
    ClipboardError,
    ConfigValidationError,
    NetworkError,
    TravelChatError,
)


class ExceptionHierarchyTests(unittest.TestCase):
    """Validate exception inheritance contract."""

    def test_exception_hierarchy(self) -> None:
        self.assertTrue(issubclass(NetworkError, TravelChatError))
        self.assertTrue(issubclass(ClipboardError, TravelChatError))
        self.assertTrue(issubclass(ConfigValidationError, TravelChatError))
        self.assertTrue(issubclass(TravelChatError, RuntimeError))


if __name__ == "__main__":
    unittest.main()
