"""Console entrypoint for genstream.

Streams chat or text completions to stdout and offers small model/config
helpers.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from genstream import __version__
from genstream.api_client.client import GenstreamClient
from genstream.api_client.models import ChatCompletionMessage, ChatCompletionRequest, ChatMessageRole, CompletionRequest
from genstream.api_client.types import ApiError
from genstream.config import LogLevel, Settings, default_config_path, load_settings
from genstream.logging import _to_logging_level, attach_log_file, detach_log_files

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genstream",
        description="Stream completions from an OpenAI-compatible API",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version and exit.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr.")
    parser.add_argument("--model", help="Override default model id")
    parser.add_argument("--base-url", dest="base_url", help="Override API base URL")
    parser.add_argument(
        "--empty-messages-limit",
        dest="empty_messages_limit",
        type=int,
        help="Abort a stream after this many consecutive empty messages",
    )
    parser.add_argument(
        "--log-level",
        choices=[e.value for e in LogLevel],
        dest="log_level",
        help="Log level override",
    )
    parser.add_argument("--config-path", dest="config_path", help="Path to config.toml")
    parser.add_argument(
        "--log-file",
        dest="log_file",
        metavar="NAME",
        help="Also write genstream logs to <home>/logs/NAME.log",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Stream a chat completion")
    chat_parser.add_argument("prompt", help="User message")
    chat_parser.add_argument("--system", help="Optional system message")

    complete_parser = subparsers.add_parser("complete", help="Stream a text completion")
    complete_parser.add_argument("prompt", help="Prompt text")
    complete_parser.add_argument("--max-tokens", dest="max_tokens", type=int, help="Maximum tokens to generate")

    subparsers.add_parser("models", help="List available models")

    config_parser = subparsers.add_parser("config", help="Config helpers")
    config_sub = config_parser.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("path", help="Print config path")
    config_sub.add_parser("print", help="Print resolved settings")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = _collect_overrides(args)
    settings = load_settings(cli_overrides=overrides, config_path=args.config_path, create_if_missing=True)

    _configure_base_logging(debug_enabled=args.debug, genstream_level=settings.log_level)
    if args.log_file:
        attach_log_file(args.log_file, log_level=settings.log_level)

    try:
        _LOGGER.debug("running command %s against %s", args.command, settings.base_url)
        if args.command == "config":
            return _run_config(settings, args)
        try:
            return asyncio.run(_run_api_command(settings, args))
        except ApiError as exc:
            _LOGGER.warning("%s failed: %s", args.command, exc)
            print(f"error: {exc}", file=sys.stderr)
            return 1
    finally:
        detach_log_files()


async def _run_api_command(settings: Settings, args: argparse.Namespace) -> int:
    async with GenstreamClient(settings) as client:
        if args.command == "chat":
            await _stream_chat(client, settings, args)
            return 0
        if args.command == "complete":
            await _stream_completion(client, settings, args)
            return 0
        if args.command == "models":
            models = await client.list_models()
            for model in models.models:
                print(model.id)
            return 0
    return 1


async def _stream_chat(client: GenstreamClient, settings: Settings, args: argparse.Namespace) -> None:
    messages = []
    if args.system:
        messages.append(ChatCompletionMessage(role=ChatMessageRole.SYSTEM, content=args.system))
    messages.append(ChatCompletionMessage(role=ChatMessageRole.USER, content=args.prompt))
    request = ChatCompletionRequest(model=settings.model, messages=messages)

    stream = await client.create_chat_completion_stream(request)
    async with stream:
        async for event in stream:
            for choice in event.data.choices:
                if choice.delta.content:
                    print(choice.delta.content, end="", flush=True)
    print()


async def _stream_completion(client: GenstreamClient, settings: Settings, args: argparse.Namespace) -> None:
    request = CompletionRequest(model=settings.model, prompt=args.prompt, max_tokens=args.max_tokens)

    stream = await client.create_completion_stream(request)
    async with stream:
        async for event in stream:
            for choice in event.data.choices:
                print(choice.text, end="", flush=True)
    print()


def _run_config(settings: Settings, args: argparse.Namespace) -> int:
    if args.config_cmd == "path":
        print(args.config_path or default_config_path())
        return 0
    if args.config_cmd == "print":
        print(settings.model_dump_json(indent=2, exclude={"api_key"}))
        return 0
    return 1


def _collect_overrides(args: argparse.Namespace) -> dict[str, Any]:
    log_level_override = args.log_level or (LogLevel.DEBUG.value if args.debug else None)
    return {
        "model": args.model,
        "base_url": args.base_url,
        "empty_messages_limit": args.empty_messages_limit,
        "log_level": log_level_override,
    }


def _configure_base_logging(*, debug_enabled: bool, genstream_level: LogLevel | str) -> None:
    root_level = logging.INFO if debug_enabled else logging.WARNING

    logging.basicConfig(
        level=root_level,
        stream=sys.__stderr__,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )

    logging.getLogger("genstream").setLevel(_to_logging_level(genstream_level))

    for noisy in ("httpx", "httpcore"):
        logger = logging.getLogger(noisy)
        logger.setLevel(logging.WARNING)
        logger.propagate = False


if __name__ == "__main__":
    sys.exit(main())
