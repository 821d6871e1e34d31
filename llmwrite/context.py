"""Explicit startup/shutdown context that owns the completion components."""

from __future__ import annotations

from typing import Any, List

from .config import Configuration, SettingsStore, YamlSettingsStore, update_configuration
from .document import DocumentAccessor
from .errors import LLMWriteError
from .instructions import ConsoleInstructionPrompt, InstructionCollector, InstructionPrompt
from .llm.catalog import ModelCatalog
from .llm.client import CompletionClient
from .logging import get_logger
from .models import CompletionOutcome, CompletionOverrides
from .orchestrator import Orchestrator
from .prompting.builder import PromptBuilder


class PluginContext:
    """Wires settings, client, collector and orchestrator for one session."""

    def __init__(
        self,
        settings: SettingsStore | None = None,
        *,
        client: CompletionClient | None = None,
        instruction_prompt: InstructionPrompt | None = None,
        instruction_timeout: float | None = None,
    ) -> None:
        self.logger = get_logger("context")
        self.settings = settings or YamlSettingsStore()
        self.client = client or CompletionClient()
        self.collector = InstructionCollector(
            instruction_prompt or ConsoleInstructionPrompt(),
            timeout=instruction_timeout,
        )
        self.catalog = ModelCatalog(self.client)
        self.orchestrator = Orchestrator(
            self.settings,
            client=self.client,
            prompt_builder=PromptBuilder(),
            collector=self.collector,
        )
        self._closed = False
        self.logger.debug("Plugin context started")

    @property
    def closed(self) -> bool:
        return self._closed

    def complete(
        self, document: DocumentAccessor, overrides: CompletionOverrides | None = None
    ) -> CompletionOutcome:
        self._ensure_open()
        return self.orchestrator.complete(document, overrides)

    def complete_with_instructions(
        self, document: DocumentAccessor, overrides: CompletionOverrides | None = None
    ) -> CompletionOutcome:
        self._ensure_open()
        return self.orchestrator.complete_with_instructions(document, overrides)

    def complete_with_instruction(
        self,
        document: DocumentAccessor,
        instruction: str,
        overrides: CompletionOverrides | None = None,
    ) -> CompletionOutcome:
        self._ensure_open()
        return self.orchestrator.complete_with_instruction(document, instruction, overrides)

    def available_models(self) -> List[str]:
        self._ensure_open()
        return self.catalog.available_models(self.settings.load())

    def update_settings(self, **changes: Any) -> Configuration:
        self._ensure_open()
        config = update_configuration(self.settings.load(), changes)
        self.settings.save(config)
        return config

    def close(self) -> None:
        if self._closed:
            return
        self.collector.cancel_pending()
        self._closed = True
        self.logger.debug("Plugin context closed")

    def __enter__(self) -> "PluginContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise LLMWriteError("Plugin context has been closed")


__all__ = ["PluginContext"]
