"""Core data models shared across llmwrite components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

MAX_TOKENS = 1024

STATUS_INSERTED = "inserted"
STATUS_EMPTY_PROMPT = "empty_prompt"
STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True, order=True)
class CursorPosition:
    """A zero-based point in a line-indexed document."""

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise ValueError(
                f"Cursor position must be non-negative, got {self.line}:{self.column}"
            )

    @classmethod
    def parse(cls, value: str) -> "CursorPosition":
        """Parse a ``LINE:COLUMN`` string."""
        line, sep, column = value.partition(":")
        if not sep:
            raise ValueError(f"Expected LINE:COLUMN, got {value!r}")
        return cls(int(line), int(column))

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Selection:
    """A selected span; ``end`` is exclusive."""

    start: CursorPosition
    end: CursorPosition
    text: str


@dataclass(frozen=True)
class PromptRequest:
    """Prompt text plus the insertion point captured when it was built."""

    prompt_text: str
    insertion_point: CursorPosition

    def with_instruction(self, instruction: str) -> "PromptRequest":
        """Return a copy whose prompt is prefixed with ``instruction``."""
        return replace(self, prompt_text=apply_instruction(self.prompt_text, instruction))


@dataclass(frozen=True)
class CompletionOverrides:
    """Per-call request parameters; ``None`` means use the configured value."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None  # ignored; responses are capped at MAX_TOKENS


@dataclass(frozen=True)
class CompletionRequest:
    """Request body sent to the completion backend."""

    model: str
    prompt: str
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: int = field(default=MAX_TOKENS, init=False)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "max_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.top_p is not None:
            payload["top_p"] = self.top_p
        return payload


@dataclass(frozen=True)
class CompletionOutcome:
    """Result of a completion command."""

    status: str
    text: Optional[str] = None
    insertion_point: Optional[CursorPosition] = None

    @property
    def inserted(self) -> bool:
        return self.status == STATUS_INSERTED


def apply_instruction(prompt: str, instruction: str) -> str:
    """Prefix ``instruction`` onto ``prompt`` as ``"<instruction>:\\n<prompt>"``."""
    return f"{instruction}:\n{prompt}"


__all__ = [
    "MAX_TOKENS",
    "STATUS_CANCELLED",
    "STATUS_EMPTY_PROMPT",
    "STATUS_INSERTED",
    "CompletionOutcome",
    "CompletionOverrides",
    "CompletionRequest",
    "CursorPosition",
    "PromptRequest",
    "Selection",
    "apply_instruction",
]
