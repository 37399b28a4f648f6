"""Clipboard access with a native tool first and the terminal's OSC 52 as fallback."""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Callable
import logging
import shutil
import subprocess

from .exceptions import ClipboardError

LOGGER = logging.getLogger(__name__)

# Probed in order; the first tool found on PATH is used.
NATIVE_CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("pbcopy",),
    ("clip",),
)

TerminalCopy = Callable[[str], None]


class ClipboardBackend(ABC):
    """A single way of putting text on the clipboard."""

    name: str = "clipboard"

    @abstractmethod
    async def write(self, text: str) -> None:
        """Write ``text`` or raise :class:`ClipboardError`."""


class NativeClipboard(ClipboardBackend):
    """Pipe text into the platform clipboard tool."""

    name = "native"

    def __init__(self, command: tuple[str, ...], timeout: float = 2.0) -> None:
        self.command = command
        self.timeout = timeout

    @classmethod
    def detect(cls) -> NativeClipboard | None:
        """Return a backend for the first clipboard tool found on PATH."""
        for command in NATIVE_CLIPBOARD_COMMANDS:
            executable = shutil.which(command[0])
            if executable is not None:
                return cls((executable, *command[1:]))
        return None

    def _run(self, text: str) -> None:
        try:
            completed = subprocess.run(
                list(self.command),
                input=text.encode("utf-8"),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ClipboardError(f"{self.command[0]} failed: {exc}") from exc
        if completed.returncode != 0:
            detail = completed.stderr.decode("utf-8", errors="replace").strip()
            raise ClipboardError(
                f"{self.command[0]} exited with {completed.returncode}: {detail}"
            )

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._run, text)


class TerminalClipboard(ClipboardBackend):
    """Ask the terminal to set the clipboard through an OSC 52 escape sequence.

    Nothing is drawn on screen; the sequence is consumed by the terminal.
    """

    name = "terminal"

    def __init__(self, copy: TerminalCopy) -> None:
        self._copy = copy

    async def write(self, text: str) -> None:
        try:
            self._copy(text)
        except Exception as exc:  # noqa: BLE001 - terminal drivers fail in many ways.
            raise ClipboardError(f"Terminal clipboard write failed: {exc}") from exc


class ClipboardService:
    """Write text to the clipboard and report success as a boolean.

    The backend is chosen on every call from the capabilities available at
    that moment; exceptions never reach the caller.
    """

    def __init__(
        self,
        terminal_copy: TerminalCopy | None = None,
        detect_native: Callable[[], ClipboardBackend | None] = NativeClipboard.detect,
    ) -> None:
        self._terminal_copy = terminal_copy
        self._detect_native = detect_native

    def select_backend(self) -> ClipboardBackend | None:
        native = self._detect_native()
        if native is not None:
            return native
        if self._terminal_copy is not None:
            return TerminalClipboard(self._terminal_copy)
        return None

    async def write(self, text: str) -> bool:
        """Return ``True`` when ``text`` reached the clipboard."""
        try:
            backend = self.select_backend()
            if backend is None:
                raise ClipboardError("No clipboard capability is available.")
            await backend.write(text)
        except Exception as exc:  # noqa: BLE001 - copy failures only affect UI state.
            LOGGER.warning(
                "clipboard.write.failed",
                extra={
                    "event": "clipboard.write.failed",
                    "error_type": exc.__class__.__name__,
                    "error": str(exc),
                },
            )
            return False
        LOGGER.info(
            "clipboard.write.complete",
            extra={
                "event": "clipboard.write.complete",
                "backend": backend.name,
                "length": len(text),
            },
        )
        return True
