"""Model choices for settings surfaces, with a fallback when listing fails."""

from __future__ import annotations

from typing import List

from ..config import Configuration
from ..errors import LLMWriteError
from ..logging import get_logger
from .client import CompletionClient


class ModelCatalog:
    """Lists selectable models; backend failures degrade to the configured model."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.logger = get_logger("llm.catalog")

    def available_models(self, config: Configuration) -> List[str]:
        try:
            models = self.client.list_models(config)
        except (LLMWriteError, OSError) as exc:
            self.logger.warning("Model listing failed, keeping %s: %s", config.model, exc)
            return [config.model]
        if config.model not in models:
            models = sorted([*models, config.model])
        return models


__all__ = ["ModelCatalog"]
