"""Prompt construction."""

from .builder import PromptBuilder, is_blank

__all__ = ["PromptBuilder", "is_blank"]
