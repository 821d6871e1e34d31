"""Blocking collection of a free-text instruction from the user."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from .errors import InstructionAbandonedError, InstructionPendingError
from .logging import get_logger

PENDING = "pending"
SUBMITTED = "submitted"
CANCELLED = "cancelled"


class PendingInstruction:
    """One-shot handoff between an instruction prompt and the waiting command.

    The first call to :meth:`submit` or :meth:`cancel` resolves the handle;
    later calls are ignored and return ``False``.
    """

    def __init__(self, label: str = "Instructions") -> None:
        self.label = label
        self._state = PENDING
        self._text: Optional[str] = None
        self._lock = threading.Lock()
        self._resolved = threading.Event()

    @property
    def state(self) -> str:
        return self._state

    @property
    def text(self) -> Optional[str]:
        return self._text

    @property
    def resolved(self) -> bool:
        return self._resolved.is_set()

    def submit(self, text: str) -> bool:
        return self._resolve(SUBMITTED, text)

    def cancel(self) -> bool:
        return self._resolve(CANCELLED, None)

    def wait(self, timeout: float | None = None) -> bool:
        return self._resolved.wait(timeout)

    def _resolve(self, state: str, text: Optional[str]) -> bool:
        with self._lock:
            if self._state != PENDING:
                return False
            self._state = state
            self._text = text
        self._resolved.set()
        return True


InstructionPrompt = Callable[[PendingInstruction], None]


class InstructionCollector:
    """Opens an instruction prompt and blocks until the user submits or cancels.

    Only one prompt may be open at a time; a second :meth:`collect` while one
    is pending raises :class:`InstructionPendingError` instead of queueing.
    """

    def __init__(
        self,
        prompt: InstructionPrompt,
        *,
        timeout: float | None = None,
        label: str = "Instructions",
    ) -> None:
        self._prompt = prompt
        self.timeout = timeout
        self.label = label
        self._pending: Optional[PendingInstruction] = None
        self._lock = threading.Lock()
        self.logger = get_logger("instructions")

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def collect(self) -> str:
        with self._lock:
            if self._pending is not None:
                raise InstructionPendingError("An instruction prompt is already open")
            pending = PendingInstruction(self.label)
            self._pending = pending
        try:
            self._prompt(pending)
            if not pending.wait(self.timeout):
                self.logger.debug("Instruction prompt timed out after %ss", self.timeout)
                pending.cancel()
        except BaseException:
            pending.cancel()
            raise
        finally:
            with self._lock:
                self._pending = None

        if pending.state == SUBMITTED and pending.text is not None:
            return pending.text
        raise InstructionAbandonedError()

    def cancel_pending(self) -> bool:
        """Cancel the open prompt, if any; used on shutdown."""
        pending = self._pending
        return pending.cancel() if pending is not None else False


class ConsoleInstructionPrompt:
    """Reads a single line from the console; Enter submits, EOF or Ctrl-C cancels."""

    def __init__(self, input_fn: Callable[[str], str] = input) -> None:
        self._input = input_fn

    def __call__(self, pending: PendingInstruction) -> None:
        try:
            text = self._input(f"{pending.label}: ")
        except (EOFError, KeyboardInterrupt):
            pending.cancel()
            return
        pending.submit(text)


__all__ = [
    "CANCELLED",
    "PENDING",
    "SUBMITTED",
    "ConsoleInstructionPrompt",
    "InstructionCollector",
    "InstructionPrompt",
    "PendingInstruction",
]
