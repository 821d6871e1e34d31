"""Coordinates prompt building, instruction collection, completion and insertion."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Set

from .config import MemorySettingsStore, SettingsStore
from .document import DocumentAccessor
from .errors import CommandBusyError, InstructionAbandonedError, LLMWriteError
from .instructions import InstructionCollector
from .llm.client import CompletionClient
from .logging import get_logger
from .models import (
    STATUS_CANCELLED,
    STATUS_EMPTY_PROMPT,
    STATUS_INSERTED,
    CompletionOutcome,
    CompletionOverrides,
    PromptRequest,
)
from .prompting.builder import PromptBuilder


class Orchestrator:
    """Runs the "Complete" and "Complete with instructions" commands.

    Settings are re-read from the store on every command. The insertion point
    is captured when the prompt is built and reused after the backend call,
    even if the document changed in the meantime. Commands on the same
    document are serialized: re-triggering while one is in flight raises
    :class:`CommandBusyError`.
    """

    def __init__(
        self,
        settings: SettingsStore | None = None,
        *,
        client: CompletionClient | None = None,
        prompt_builder: PromptBuilder | None = None,
        collector: InstructionCollector | None = None,
    ) -> None:
        self.settings = settings or MemorySettingsStore()
        self.client = client or CompletionClient()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.collector = collector
        self.logger = get_logger("orchestrator")
        self._active: Set[int] = set()
        self._lock = threading.Lock()

    def complete(
        self,
        document: DocumentAccessor,
        overrides: CompletionOverrides | None = None,
    ) -> CompletionOutcome:
        """Complete the selection or current paragraph and insert the result."""
        with self._document_guard(document):
            prompt_request = self.prompt_builder.build(document)
            if not prompt_request.prompt_text:
                return self._empty_prompt(prompt_request)
            return self._complete_and_insert(document, prompt_request, overrides)

    def complete_with_instructions(
        self,
        document: DocumentAccessor,
        overrides: CompletionOverrides | None = None,
    ) -> CompletionOutcome:
        """Ask the user for an instruction, prefix it onto the prompt, then complete."""
        if self.collector is None:
            raise LLMWriteError("No instruction prompt is configured")
        with self._document_guard(document):
            prompt_request = self.prompt_builder.build(document)
            if not prompt_request.prompt_text:
                return self._empty_prompt(prompt_request)
            try:
                instruction = self.collector.collect()
            except InstructionAbandonedError:
                self.logger.info("Instruction prompt cancelled; nothing inserted")
                return CompletionOutcome(
                    status=STATUS_CANCELLED, insertion_point=prompt_request.insertion_point
                )
            return self._complete_and_insert(
                document, prompt_request.with_instruction(instruction), overrides
            )

    def complete_with_instruction(
        self,
        document: DocumentAccessor,
        instruction: str,
        overrides: CompletionOverrides | None = None,
    ) -> CompletionOutcome:
        """Instruction-augmented completion with an instruction supplied up front."""
        with self._document_guard(document):
            prompt_request = self.prompt_builder.build(document)
            if not prompt_request.prompt_text:
                return self._empty_prompt(prompt_request)
            return self._complete_and_insert(
                document, prompt_request.with_instruction(instruction), overrides
            )

    def is_busy(self, document: DocumentAccessor) -> bool:
        return id(document) in self._active

    def _complete_and_insert(
        self,
        document: DocumentAccessor,
        prompt_request: PromptRequest,
        overrides: Optional[CompletionOverrides],
    ) -> CompletionOutcome:
        config = self.settings.load()
        text = self.client.complete(config, prompt_request, overrides)
        insertion_point = prompt_request.insertion_point
        document.insert_text("\n" + text, insertion_point)
        self.logger.info("Inserted %d characters at %s", len(text), insertion_point)
        return CompletionOutcome(
            status=STATUS_INSERTED, text=text, insertion_point=insertion_point
        )

    def _empty_prompt(self, prompt_request: PromptRequest) -> CompletionOutcome:
        self.logger.info("Nothing to complete at %s", prompt_request.insertion_point)
        return CompletionOutcome(
            status=STATUS_EMPTY_PROMPT, insertion_point=prompt_request.insertion_point
        )

    @contextmanager
    def _document_guard(self, document: DocumentAccessor) -> Iterator[None]:
        key = id(document)
        with self._lock:
            if key in self._active:
                raise CommandBusyError("A completion is already running for this document")
            self._active.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(key)


__all__ = ["Orchestrator"]
