"""Completion backend adapters."""

from .catalog import ModelCatalog
from .client import BackendCall, CompletionClient

__all__ = ["BackendCall", "CompletionClient", "ModelCatalog"]
