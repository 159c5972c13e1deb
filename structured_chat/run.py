from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
from typing import Any

from pydantic import TypeAdapter
from rich.console import Console
from rich.markup import escape

from structured_chat.config import get_settings, load_title_policy
from structured_chat.errors import ConfigError, StructuredChatError, UpstreamError
from structured_chat.llm import MockChatClient, build_client
from structured_chat.llm.base import ChatBackend
from structured_chat.query import query
from structured_chat.schema import Message, TitlePolicy, derive_schema

console = Console()


def resolve_target(spec: str) -> Any:
    """`pkg.module:Name` or `pkg.module:Outer.Inner` -> the type object."""
    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise ConfigError(f"--target must look like module:Type, got {spec!r}")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"cannot import {module_name!r}: {exc}") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ConfigError(f"{module_name!r} has no attribute {attr_path!r}") from None
    return obj


async def _run(args: argparse.Namespace, target: Any, policy: TitlePolicy) -> Any:
    client: ChatBackend
    if args.mock_response is not None:
        client = MockChatClient([args.mock_response])
    elif args.mock:
        client = MockChatClient()
    else:
        client = build_client(get_settings())

    messages = []
    if args.developer:
        messages.append(Message.developer(args.developer))
    messages.append(Message.user(args.prompt))
    try:
        return await query(messages, target, client=client, title_policy=policy)
    finally:
        await client.aclose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="structured-chat")
    parser.add_argument("prompt", type=str, nargs="?", default="", help="user message sent to the model")
    parser.add_argument("--target", required=True, help="target type, e.g. myapp.models:Summary")
    parser.add_argument("--developer", default=None, help="optional developer (instruction) message")
    parser.add_argument(
        "--title-policy",
        choices=[p.value for p in TitlePolicy],
        default=None,
        help="title handling in the derived schema (default: SC_TITLE_POLICY or strip_root)",
    )
    parser.add_argument("--schema-only", action="store_true", help="print the derived schema and exit")
    parser.add_argument(
        "--mock-response",
        default=None,
        help="skip the network and use this text as the assistant reply",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="skip the network and answer with a placeholder built from the schema",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - [%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        target = resolve_target(args.target)
        if args.title_policy is not None:
            policy = TitlePolicy(args.title_policy)
        else:
            policy = load_title_policy()

        if args.schema_only:
            schema = derive_schema(target, title_policy=policy)
            console.rule(schema.name)
            console.print_json(json.dumps({"name": schema.name, "schema": schema.schema, "strict": schema.strict}))
            return 0

        result = asyncio.run(_run(args, target, policy))
    except ConfigError as exc:
        console.print(f"[bold red]config error[/bold red]: {escape(str(exc))}")
        return 2
    except UpstreamError as exc:
        console.print(f"[bold red]provider returned HTTP {exc.status_code}[/bold red]")
        console.print(exc.body, markup=False)
        return 1
    except StructuredChatError as exc:
        console.print(f"[bold red]{type(exc).__name__}[/bold red]: {escape(str(exc))}")
        return 1

    console.rule("structured-chat result")
    console.print_json(TypeAdapter(target).dump_json(result).decode("utf-8"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
