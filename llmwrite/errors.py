"""Exception hierarchy shared by llmwrite components."""

from __future__ import annotations


class LLMWriteError(RuntimeError):
    """Base class for failures surfaced by llmwrite."""


class ConfigError(LLMWriteError):
    """Raised when the settings file cannot be read or parsed."""


class EmptyPromptError(LLMWriteError):
    """Raised when prompt construction produced nothing to complete."""

    def __init__(self, message: str = "Nothing to complete: the current line is blank") -> None:
        super().__init__(message)


class EmptyCompletionError(LLMWriteError):
    """Raised when the backend returned no usable completion text."""

    def __init__(self, message: str = "No completion returned") -> None:
        super().__init__(message)


class BackendUnavailableError(LLMWriteError):
    """Raised on network, timeout, authentication or protocol failures."""


class InstructionAbandonedError(LLMWriteError):
    """Raised when the user closes the instruction prompt without submitting."""

    def __init__(self, message: str = "Instruction prompt was cancelled") -> None:
        super().__init__(message)


class InstructionPendingError(LLMWriteError):
    """Raised when an instruction prompt is opened while another is still pending."""


class CommandBusyError(LLMWriteError):
    """Raised when a command is re-triggered on a document that is still being completed."""


__all__ = [
    "BackendUnavailableError",
    "CommandBusyError",
    "ConfigError",
    "EmptyCompletionError",
    "EmptyPromptError",
    "InstructionAbandonedError",
    "InstructionPendingError",
    "LLMWriteError",
]
