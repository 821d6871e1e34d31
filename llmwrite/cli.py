"""CLI entrypoints for llmwrite commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

from .config import YamlSettingsStore
from .context import PluginContext
from .document import TextDocument
from .errors import LLMWriteError
from .logging import configure_logging
from .models import (
    STATUS_CANCELLED,
    STATUS_EMPTY_PROMPT,
    CompletionOutcome,
    CompletionOverrides,
    CursorPosition,
)
from .prompting.builder import is_blank


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_document_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Text file to complete in place.")
    parser.add_argument(
        "--line",
        type=int,
        default=None,
        help="Zero-based cursor line (defaults to the last non-blank line).",
    )
    parser.add_argument(
        "--column",
        type=int,
        default=None,
        help="Zero-based cursor column (defaults to the end of the line).",
    )
    parser.add_argument(
        "--select-start",
        type=CursorPosition.parse,
        metavar="LINE:COL",
        help="Start of an explicit selection to use as the prompt.",
    )
    parser.add_argument(
        "--select-end",
        type=CursorPosition.parse,
        metavar="LINE:COL",
        help="End of the explicit selection (exclusive).",
    )
    parser.add_argument("--model", help="Model to use instead of the configured one.")
    parser.add_argument("--temperature", type=float, help="Sampling temperature.")
    parser.add_argument("--top-p", dest="top_p", type=float, help="Nucleus sampling mass.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the completion instead of writing it to the file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llmwrite",
        description="Complete text in documents using an OpenAI-compatible completion backend.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings file (defaults to ~/.llmwrite/settings.yml).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    complete_parser = subparsers.add_parser(
        "complete",
        help="Complete the selection or the paragraph at the cursor.",
    )
    _add_verbose_option(complete_parser, suppress_default=True)
    _add_document_options(complete_parser)

    instruct_parser = subparsers.add_parser(
        "instruct",
        help="Complete with a free-form instruction prefixed onto the prompt.",
    )
    _add_verbose_option(instruct_parser, suppress_default=True)
    _add_document_options(instruct_parser)
    instruct_parser.add_argument(
        "-i",
        "--instruction",
        help="Instruction text (prompted for interactively when omitted).",
    )

    models_parser = subparsers.add_parser("models", help="List models available to the configured key.")
    _add_verbose_option(models_parser, suppress_default=True)

    config_parser = subparsers.add_parser("config", help="Show or change settings.")
    _add_verbose_option(config_parser, suppress_default=True)
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print the effective settings.")
    set_parser = config_sub.add_parser("set", help="Persist one or more KEY=VALUE settings.")
    set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP completion service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for llmwrite commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    settings = YamlSettingsStore(args.settings)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, settings=settings)
        return

    with PluginContext(settings) as context:
        try:
            if args.command in {"complete", "instruct"}:
                _run_completion(parser, context, args)
            elif args.command == "models":
                for model in context.available_models():
                    print(model)
            elif args.command == "config":
                if args.config_command == "set":
                    config = context.update_settings(**_parse_assignments(parser, args.assignments))
                    print(f"Settings saved to {settings.path}")
                else:
                    config = settings.load()
                for key, value in config.redacted().items():
                    print(f"{key}: {'' if value is None else value}")
            else:  # pragma: no cover - argparse enforces choices
                parser.exit(1, "Unknown command\n")
        except LLMWriteError as exc:
            parser.exit(1, f"llmwrite {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _run_completion(parser: argparse.ArgumentParser, context: PluginContext, args: argparse.Namespace) -> None:
    path = Path(args.path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        parser.exit(1, f"{path} does not exist\n")
    document = _open_document(parser, text, args)
    overrides = CompletionOverrides(model=args.model, temperature=args.temperature, top_p=args.top_p)

    if args.command == "instruct" and args.instruction is not None:
        outcome = context.complete_with_instruction(document, args.instruction, overrides)
    elif args.command == "instruct":
        outcome = context.complete_with_instructions(document, overrides)
    else:
        outcome = context.complete(document, overrides)
    _report(parser, outcome, document, path, dry_run=bool(args.dry_run))


def _open_document(parser: argparse.ArgumentParser, text: str, args: argparse.Namespace) -> TextDocument:
    document = TextDocument(text)
    if (args.select_start is None) != (args.select_end is None):
        parser.exit(2, "--select-start and --select-end must be given together\n")
    if args.select_start is not None:
        document.select(args.select_start, args.select_end)
        return document
    line = args.line if args.line is not None else _last_non_blank_line(document)
    if line < 0 or line >= document.line_count:
        parser.exit(2, f"--line must be between 0 and {document.line_count - 1}\n")
    column = args.column if args.column is not None else len(document.get_line_text(line))
    try:
        document.move_cursor(CursorPosition(line, column))
    except ValueError as exc:
        parser.exit(2, f"{exc}\n")
    return document


def _last_non_blank_line(document: TextDocument) -> int:
    for index in range(document.line_count - 1, -1, -1):
        if not is_blank(document.get_line_text(index)):
            return index
    return document.line_count - 1


def _report(
    parser: argparse.ArgumentParser,
    outcome: CompletionOutcome,
    document: TextDocument,
    path: Path,
    *,
    dry_run: bool,
) -> None:
    if outcome.status == STATUS_EMPTY_PROMPT:
        parser.exit(1, "Nothing to complete: the cursor line is blank\n")
    if outcome.status == STATUS_CANCELLED:
        parser.exit(1, "Instruction cancelled; document unchanged\n")
    if dry_run:
        print(outcome.text)
        return
    path.write_text(document.text, encoding="utf-8")
    print(f"Inserted {len(outcome.text or '')} characters at {outcome.insertion_point} in {_relativize(path)}")


def _parse_assignments(parser: argparse.ArgumentParser, assignments: List[str]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            parser.exit(2, f"Expected KEY=VALUE, got {assignment!r}\n")
        changes[key.strip()] = value
    return changes


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
