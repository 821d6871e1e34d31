"""Document access capability and an in-memory text document."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from .models import CursorPosition, Selection


@runtime_checkable
class DocumentAccessor(Protocol):
    """Minimal editing surface consumed by the prompt builder and orchestrator."""

    def get_selection_text(self) -> str: ...

    def get_selection_end(self) -> CursorPosition: ...

    def get_cursor(self) -> CursorPosition: ...

    def get_line_text(self, line: int) -> str: ...

    def insert_text(self, text: str, position: CursorPosition) -> None: ...


class TextDocument:
    """Line-indexed plain-text document with a cursor and an optional selection."""

    def __init__(
        self,
        text: str = "",
        *,
        cursor: CursorPosition | None = None,
        selection: tuple[CursorPosition, CursorPosition] | None = None,
    ) -> None:
        self._lines: List[str] = text.split("\n")
        self._cursor = CursorPosition(0, 0)
        self._selection: Optional[tuple[CursorPosition, CursorPosition]] = None
        if cursor is not None:
            self.move_cursor(cursor)
        if selection is not None:
            self.select(*selection)

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def selection(self) -> Optional[Selection]:
        if self._selection is None:
            return None
        start, end = self._selection
        return Selection(start=start, end=end, text=self._slice(start, end))

    def move_cursor(self, position: CursorPosition) -> None:
        self._cursor = self._clamp(position)
        self._selection = None

    def select(self, start: CursorPosition, end: CursorPosition) -> None:
        """Select the span between two positions; the cursor moves to the later one."""
        start, end = sorted((self._clamp(start), self._clamp(end)))
        self._selection = (start, end) if start != end else None
        self._cursor = end

    # DocumentAccessor -------------------------------------------------------

    def get_selection_text(self) -> str:
        selection = self.selection
        return selection.text if selection else ""

    def get_selection_end(self) -> CursorPosition:
        if self._selection is None:
            return self._cursor
        return self._selection[1]

    def get_cursor(self) -> CursorPosition:
        return self._cursor

    def get_line_text(self, line: int) -> str:
        if line < 0 or line >= len(self._lines):
            raise IndexError(f"Line {line} is outside the document (0..{len(self._lines) - 1})")
        return self._lines[line]

    def insert_text(self, text: str, position: CursorPosition) -> None:
        position = self._clamp(position)
        current = self._lines[position.line]
        merged = current[: position.column] + text + current[position.column :]
        self._lines[position.line : position.line + 1] = merged.split("\n")

    # -------------------------------------------------------------------------

    def _clamp(self, position: CursorPosition) -> CursorPosition:
        line = min(position.line, len(self._lines) - 1)
        column = min(position.column, len(self._lines[line]))
        return CursorPosition(line, column)

    def _slice(self, start: CursorPosition, end: CursorPosition) -> str:
        if start.line == end.line:
            return self._lines[start.line][start.column : end.column]
        parts = [self._lines[start.line][start.column :]]
        parts.extend(self._lines[start.line + 1 : end.line])
        parts.append(self._lines[end.line][: end.column])
        return "\n".join(parts)


__all__ = ["DocumentAccessor", "TextDocument"]
