"""FastAPI application exposing the completion commands over HTTP.

Every `/complete` request carries its own document text, so the per-document
busy guard in the orchestrator never trips here and has no status mapping.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import SettingsStore, YamlSettingsStore
from ..document import TextDocument
from ..errors import (
    BackendUnavailableError,
    EmptyCompletionError,
    LLMWriteError,
)
from ..llm.catalog import ModelCatalog
from ..llm.client import CompletionClient
from ..models import CompletionOverrides, CursorPosition
from ..orchestrator import Orchestrator


class Position(BaseModel):
    line: int = Field(ge=0)
    column: int = Field(ge=0)

    def to_cursor(self) -> CursorPosition:
        return CursorPosition(self.line, self.column)


class SelectionPayload(BaseModel):
    start: Position
    end: Position


class CompleteRequest(BaseModel):
    text: str
    cursor: Position
    selection: Optional[SelectionPayload] = None
    instruction: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None


class CompleteResponse(BaseModel):
    status: str
    text: Optional[str] = None
    insertion_point: Optional[Position] = None
    document: str


class ModelsResponse(BaseModel):
    models: List[str]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator(YamlSettingsStore())


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing completion operations."""

    app = FastAPI(title="llmwrite Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Per-request instance; settings are re-read on every command anyway.
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/models", response_model=ModelsResponse)
    async def models(
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ModelsResponse:
        catalog = ModelCatalog(orchestrator.client)
        config = orchestrator.settings.load()
        loop = asyncio.get_running_loop()
        names = await loop.run_in_executor(None, catalog.available_models, config)
        return ModelsResponse(models=names)

    @app.post("/complete", response_model=CompleteResponse)
    async def complete(
        payload: CompleteRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> CompleteResponse:
        document = TextDocument(payload.text, cursor=payload.cursor.to_cursor())
        if payload.selection is not None:
            document.select(payload.selection.start.to_cursor(), payload.selection.end.to_cursor())
        overrides = CompletionOverrides(
            model=payload.model,
            temperature=payload.temperature,
            top_p=payload.top_p,
        )

        def _run():
            if payload.instruction is not None:
                return orchestrator.complete_with_instruction(document, payload.instruction, overrides)
            return orchestrator.complete(document, overrides)

        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(None, _run)
        point = outcome.insertion_point
        return CompleteResponse(
            status=outcome.status,
            text=outcome.text,
            insertion_point=Position(line=point.line, column=point.column) if point else None,
            document=document.text,
        )

    @app.exception_handler(BackendUnavailableError)
    async def backend_unavailable_handler(_: Any, exc: BackendUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(EmptyCompletionError)
    async def empty_completion_handler(_: Any, exc: EmptyCompletionError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(LLMWriteError)
    async def llmwrite_error_handler(_: Any, exc: LLMWriteError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    settings: SettingsStore | None = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    store = settings or YamlSettingsStore()
    client = CompletionClient()
    app = create_app(lambda: Orchestrator(store, client=client))
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
