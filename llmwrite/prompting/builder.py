"""Derives the completion prompt and insertion point from document state."""

from __future__ import annotations

from typing import List

from ..document import DocumentAccessor
from ..logging import get_logger
from ..models import CursorPosition, PromptRequest


def is_blank(line: str) -> bool:
    return not line.strip()


class PromptBuilder:
    """Builds prompts from the active selection or the paragraph around the cursor.

    With a selection, the prompt is the selected text and completions are
    inserted after it. Without one, the prompt is the run of non-blank lines
    ending at the cursor's line, and completions go at the end of that line so
    a line is never split. A blank cursor line yields an empty prompt.
    """

    def __init__(self) -> None:
        self.logger = get_logger("prompting")

    def build(self, document: DocumentAccessor) -> PromptRequest:
        selection = document.get_selection_text()
        if selection:
            end = document.get_selection_end()
            self.logger.debug("Using %d selected characters ending at %s", len(selection), end)
            return PromptRequest(prompt_text=selection, insertion_point=end)
        return self._expand_from_cursor(document)

    def _expand_from_cursor(self, document: DocumentAccessor) -> PromptRequest:
        cursor = document.get_cursor()
        current = document.get_line_text(cursor.line)
        insertion_point = CursorPosition(cursor.line, len(current))
        if is_blank(current):
            self.logger.debug("Cursor line %d is blank; nothing to expand", cursor.line)
            return PromptRequest(prompt_text="", insertion_point=insertion_point)

        lines: List[str] = [current]
        index = cursor.line - 1
        while index >= 0:
            previous = document.get_line_text(index)
            if is_blank(previous):
                break
            lines.append(previous)
            index -= 1
        lines.reverse()
        self.logger.debug(
            "Expanded prompt over lines %d..%d", cursor.line - len(lines) + 1, cursor.line
        )
        return PromptRequest(prompt_text="\n".join(lines), insertion_point=insertion_point)


__all__ = ["PromptBuilder", "is_blank"]
