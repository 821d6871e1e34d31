"""Send document text to a completion backend and insert the result."""

from .config import Configuration, MemorySettingsStore, YamlSettingsStore
from .context import PluginContext
from .document import DocumentAccessor, TextDocument
from .errors import (
    BackendUnavailableError,
    CommandBusyError,
    ConfigError,
    EmptyCompletionError,
    EmptyPromptError,
    InstructionAbandonedError,
    InstructionPendingError,
    LLMWriteError,
)
from .instructions import InstructionCollector, PendingInstruction
from .llm import CompletionClient, ModelCatalog
from .models import CompletionOutcome, CompletionOverrides, CursorPosition, PromptRequest
from .orchestrator import Orchestrator
from .prompting import PromptBuilder

__version__ = "0.1.0"

__all__ = [
    "BackendUnavailableError",
    "CommandBusyError",
    "CompletionClient",
    "CompletionOutcome",
    "CompletionOverrides",
    "ConfigError",
    "Configuration",
    "CursorPosition",
    "DocumentAccessor",
    "EmptyCompletionError",
    "EmptyPromptError",
    "InstructionAbandonedError",
    "InstructionCollector",
    "InstructionPendingError",
    "LLMWriteError",
    "MemorySettingsStore",
    "ModelCatalog",
    "Orchestrator",
    "PendingInstruction",
    "PluginContext",
    "PromptBuilder",
    "PromptRequest",
    "TextDocument",
    "YamlSettingsStore",
]
