"""Tests for llmwrite.orchestrator."""

from __future__ import annotations

import pytest

from llmwrite.config import Configuration, MemorySettingsStore
from llmwrite.document import TextDocument
from llmwrite.errors import BackendUnavailableError, CommandBusyError, EmptyCompletionError, LLMWriteError
from llmwrite.instructions import InstructionCollector
from llmwrite.llm.client import CompletionClient
from llmwrite.models import (
    STATUS_CANCELLED,
    STATUS_EMPTY_PROMPT,
    STATUS_INSERTED,
    CompletionOverrides,
    CursorPosition,
)
from llmwrite.orchestrator import Orchestrator
from tests._fixtures.backend import completion


class RecordingClient:
    """Client double that captures requests and can run a side effect mid-call."""

    def __init__(self, text: str = "generated", side_effect=None) -> None:
        self.text = text
        self.side_effect = side_effect
        self.calls: list[dict[str, object]] = []

    def complete(self, config, prompt_request, overrides=None) -> str:
        self.calls.append({"config": config, "prompt": prompt_request, "overrides": overrides})
        if self.side_effect is not None:
            self.side_effect()
        return self.text


def test_complete_inserts_after_paragraph(settings: MemorySettingsStore, client: CompletionClient, transport) -> None:
    transport.queue(completion(" and they lived happily.  "))
    document = TextDocument("Title\n\nOnce upon a time\nthere was a fox", cursor=CursorPosition(3, 4))

    outcome = Orchestrator(settings, client=client).complete(document)

    assert outcome.status == STATUS_INSERTED
    assert outcome.inserted
    assert outcome.text == "and they lived happily."
    assert outcome.insertion_point == CursorPosition(3, 15)
    assert transport.calls[0].payload["prompt"] == "Once upon a time\nthere was a fox"
    assert document.text == (
        "Title\n\nOnce upon a time\nthere was a fox\nand they lived happily."
    )


def test_complete_with_selection_inserts_at_selection_end(settings: MemorySettingsStore) -> None:
    client = RecordingClient("RESULT")
    document = TextDocument(
        "keep this. complete this. tail",
        selection=(CursorPosition(0, 11), CursorPosition(0, 25)),
    )

    Orchestrator(settings, client=client).complete(document)

    assert client.calls[0]["prompt"].prompt_text == "complete this."
    assert document.text == "keep this. complete this.\nRESULT tail"


def test_blank_line_skips_backend(settings: MemorySettingsStore) -> None:
    client = RecordingClient()
    document = TextDocument("Paragraph\n\n", cursor=CursorPosition(1, 0))

    outcome = Orchestrator(settings, client=client).complete(document)

    assert outcome.status == STATUS_EMPTY_PROMPT
    assert outcome.text is None
    assert client.calls == []
    assert document.text == "Paragraph\n\n"


def test_insertion_uses_point_captured_before_call(settings: MemorySettingsStore) -> None:
    document = TextDocument("alpha\nbeta", cursor=CursorPosition(1, 4))

    def user_edits_document() -> None:
        document.insert_text("typed meanwhile\n", CursorPosition(0, 0))

    client = RecordingClient("gamma", side_effect=user_edits_document)

    outcome = Orchestrator(settings, client=client).complete(document)

    assert outcome.insertion_point == CursorPosition(1, 4)
    assert document.text == "typed meanwhile\nalph\ngammaa\nbeta"


def test_settings_are_reread_each_command(settings: MemorySettingsStore) -> None:
    client = RecordingClient()
    orchestrator = Orchestrator(settings, client=client)
    document = TextDocument("text", cursor=CursorPosition(0, 4))

    orchestrator.complete(document)
    settings.save(Configuration(api_key="sk-rotated", model="text-babbage-001"))
    orchestrator.complete(document)

    assert client.calls[0]["config"].model == "text-davinci-003"
    assert client.calls[1]["config"].model == "text-babbage-001"
    assert client.calls[1]["config"].api_key == "sk-rotated"


def test_instruction_is_prefixed_onto_prompt(settings: MemorySettingsStore) -> None:
    client = RecordingClient("Il était une fois")
    collector = InstructionCollector(lambda pending: pending.submit("Translate to French"))
    document = TextDocument("Once upon a time", cursor=CursorPosition(0, 0))

    outcome = Orchestrator(settings, client=client, collector=collector).complete_with_instructions(document)

    assert outcome.status == STATUS_INSERTED
    assert client.calls[0]["prompt"].prompt_text == "Translate to French:\nOnce upon a time"
    assert document.text == "Once upon a time\nIl était une fois"


def test_abandoned_instruction_is_a_quiet_cancellation(settings: MemorySettingsStore) -> None:
    client = RecordingClient()
    collector = InstructionCollector(lambda pending: pending.cancel())
    document = TextDocument("Some text", cursor=CursorPosition(0, 0))

    outcome = Orchestrator(settings, client=client, collector=collector).complete_with_instructions(document)

    assert outcome.status == STATUS_CANCELLED
    assert client.calls == []
    assert document.text == "Some text"


def test_empty_prompt_does_not_open_instruction_prompt(settings: MemorySettingsStore) -> None:
    opened: list[object] = []
    collector = InstructionCollector(opened.append, timeout=0)
    document = TextDocument("", cursor=CursorPosition(0, 0))

    outcome = Orchestrator(settings, client=RecordingClient(), collector=collector).complete_with_instructions(
        document
    )

    assert outcome.status == STATUS_EMPTY_PROMPT
    assert opened == []


def test_instructions_require_a_collector(settings: MemorySettingsStore) -> None:
    with pytest.raises(LLMWriteError):
        Orchestrator(settings, client=RecordingClient()).complete_with_instructions(TextDocument("x"))


def test_supplied_instruction_skips_prompt(settings: MemorySettingsStore) -> None:
    client = RecordingClient("done")
    document = TextDocument("draft", cursor=CursorPosition(0, 0))

    Orchestrator(settings, client=client).complete_with_instruction(document, "Shorten")

    assert client.calls[0]["prompt"].prompt_text == "Shorten:\ndraft"


def test_overrides_are_forwarded(settings: MemorySettingsStore) -> None:
    client = RecordingClient()
    overrides = CompletionOverrides(model="davinci-002", temperature=0.3)

    Orchestrator(settings, client=client).complete(TextDocument("x"), overrides)

    assert client.calls[0]["overrides"] is overrides


def test_retrigger_on_same_document_is_rejected(settings: MemorySettingsStore) -> None:
    document = TextDocument("first", cursor=CursorPosition(0, 5))
    other = TextDocument("other document")
    nested_outcomes: list[object] = []

    def retrigger() -> None:
        client.side_effect = None
        with pytest.raises(CommandBusyError):
            orchestrator.complete(document)
        nested_outcomes.append(orchestrator.complete(other))

    client = RecordingClient("ok", side_effect=retrigger)
    orchestrator = Orchestrator(settings, client=client)

    outcome = orchestrator.complete(document)

    assert outcome.status == STATUS_INSERTED
    assert [item.status for item in nested_outcomes] == [STATUS_INSERTED]
    assert len(client.calls) == 2
    assert not orchestrator.is_busy(document)


@pytest.mark.parametrize("error", [EmptyCompletionError(), BackendUnavailableError("timed out")])
def test_backend_failures_propagate(settings: MemorySettingsStore, client: CompletionClient, transport, error) -> None:
    transport.queue(error)
    document = TextDocument("prompt", cursor=CursorPosition(0, 0))
    orchestrator = Orchestrator(settings, client=client)

    with pytest.raises(type(error)):
        orchestrator.complete(document)
    assert document.text == "prompt"
    assert not orchestrator.is_busy(document)
