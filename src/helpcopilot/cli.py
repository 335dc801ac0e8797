"""
Command line interface for helpcopilot.

Usage:
    # Save provider credentials:
    helpcopilot configure-provider --api-key sk-... [--api-type Azure --api-base https://...]

    # Embed a module's help locally and publish it to a vector store:
    helpcopilot build-local-cache --module json
    helpcopilot build-remote-index --module json

    # Create an assistant and chat with it:
    helpcopilot create-assistant --name json-helper --module json
    helpcopilot set-default-assistant --name json-helper
    helpcopilot chat --message "How do I pretty print a dict?" --hints
"""

import argparse
import json
import sys
from pathlib import Path

from pydantic import BaseModel

from helpcopilot import operations
from helpcopilot.ai.openai.config import ApiType, AuthType
from helpcopilot.context import CopilotContext
from helpcopilot.exceptions import HelpCopilotError
from helpcopilot.utils.logger import logger

EXIT_WORDS = {"exit", "quit", "q"}


def _print(result) -> None:
    if isinstance(result, BaseModel):
        print(result.model_dump_json(indent=2, by_alias=True))
    elif isinstance(result, list) and result and isinstance(result[0], BaseModel):
        print(json.dumps([r.model_dump(mode="json", by_alias=True) for r in result], indent=2))
    elif isinstance(result, list):
        for item in result:
            print(item)
    else:
        print(result)


def _chat(ctx: CopilotContext, args: argparse.Namespace) -> None:
    kwargs = {
        "assistant_name": args.assistant,
        "module": args.module,
        "want_hints": args.hints,
        "suppress_retrieval_reminder": args.no_reminder,
        "structured": args.usage,
    }
    if args.message:
        _print(operations.chat(ctx, args.message, **kwargs))
        return

    # Interactive loop; every turn reuses the same cached session
    while True:
        try:
            message = input("You: ").strip()
        except EOFError:
            break
        if not message:
            continue
        if message.lower() in EXIT_WORDS:
            break
        result = operations.chat(ctx, message, **kwargs)
        answer = result.answer if isinstance(result, BaseModel) else result
        print(f"\nAssistant: {answer}\n")

    if args.usage:
        _print(ctx.usage.summary())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helpcopilot",
        description="Turn a module's command help into an assistant you can chat with",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at INFO level")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    configure_parser = subparsers.add_parser(
        "configure-provider", help="Set (and save) OpenAI or Azure OpenAI credentials"
    )
    configure_parser.add_argument("--api-key", help="API key (or Azure AD token)")
    configure_parser.add_argument("--api-base", help="Base URL / Azure endpoint")
    configure_parser.add_argument("--deployment", help="Azure deployment name")
    configure_parser.add_argument(
        "--api-type", choices=[t.value for t in ApiType], help="Provider type"
    )
    configure_parser.add_argument("--api-version", help="Azure API version")
    configure_parser.add_argument(
        "--auth-type", choices=[t.value for t in AuthType], help="Authentication type"
    )
    configure_parser.add_argument("--organization", help="OpenAI organization id")
    configure_parser.add_argument(
        "--no-persist", action="store_true", help="Only use for this process, do not save"
    )

    subparsers.add_parser("get-provider-config", help="Show the current provider config")
    subparsers.add_parser("reset-provider-config", help="Delete the saved provider config")

    create_parser = subparsers.add_parser(
        "create-assistant", help="Publish a module's help and create an assistant for it"
    )
    create_parser.add_argument("--name", required=True, help="Assistant name")
    create_parser.add_argument("--module", required=True, help="Module to document")
    create_parser.add_argument("--model", help="Model or deployment (default from settings)")
    create_parser.add_argument("--instructions", help="Override the default instructions")

    remove_parser = subparsers.add_parser("remove-assistant", help="Delete an assistant")
    remove_parser.add_argument("--name", required=True, help="Assistant name")
    remove_parser.add_argument(
        "--remove-vector-indexes",
        action="store_true",
        help="Also delete the vector stores the assistant searches",
    )

    default_parser = subparsers.add_parser(
        "set-default-assistant", help="Use this assistant when chat is given none"
    )
    default_parser.add_argument("--name", required=True, help="Assistant name")

    subparsers.add_parser("list-assistants", help="List helpcopilot assistants")

    local_parser = subparsers.add_parser(
        "build-local-cache", help="Embed a module's help into the local cache"
    )
    local_parser.add_argument("--module", required=True, help="Module to document")
    local_parser.add_argument("--force", action="store_true", help="Re-embed existing records")

    remote_parser = subparsers.add_parser(
        "build-remote-index", help="Publish a module's cached help to a vector store"
    )
    remote_parser.add_argument("--module", required=True, help="Module to publish")
    remote_parser.add_argument(
        "--force", action="store_true", help="Publish even if the index already has files"
    )

    chat_parser = subparsers.add_parser("chat", help="Chat with an assistant")
    chat_parser.add_argument("--message", "-m", help="Single message; omit for interactive mode")
    chat_parser.add_argument("--assistant", help="Assistant name (default: saved default)")
    chat_parser.add_argument("--module", help="Module for local hints (default: the assistant's)")
    chat_parser.add_argument(
        "--hints", action="store_true", help="Prefix locally retrieved command suggestions"
    )
    chat_parser.add_argument(
        "--no-reminder", action="store_true", help="Do not append the retrieval reminder"
    )
    chat_parser.add_argument(
        "--usage", action="store_true", help="Print token usage along with answers"
    )

    subparsers.add_parser("list-local-cache", help="List cached collections and versions")

    split_parser = subparsers.add_parser(
        "split-docs-into-files", help="Write one help text file per command"
    )
    split_parser.add_argument("--module", required=True, help="Module to document")
    split_parser.add_argument("--output-dir", required=True, type=Path, help="Target directory")

    export_parser = subparsers.add_parser(
        "export-training-data", help="Write chat fine-tuning JSONL for a module"
    )
    export_parser.add_argument("--module", required=True, help="Module to document")
    export_parser.add_argument("--output", required=True, type=Path, help="JSONL file to write")
    export_parser.add_argument("--system-prompt", help="System message for every example")
    export_parser.add_argument(
        "--generate-questions",
        action="store_true",
        help="Ask the chat model for an extra natural question per command",
    )

    return parser


def run(args: argparse.Namespace, ctx: CopilotContext) -> None:
    if args.command == "configure-provider":
        config = operations.configure_provider(
            ctx,
            api_key=args.api_key,
            api_base=args.api_base,
            deployment=args.deployment,
            api_type=ApiType(args.api_type) if args.api_type else None,
            api_version=args.api_version,
            auth_type=AuthType(args.auth_type) if args.auth_type else None,
            organization=args.organization,
            persist=not args.no_persist,
        )
        _print(config.masked())
    elif args.command == "get-provider-config":
        _print(operations.get_provider_config(ctx))
    elif args.command == "reset-provider-config":
        removed = operations.reset_provider_config(ctx)
        print("Removed saved provider config" if removed else "No saved provider config")
    elif args.command == "create-assistant":
        _print(
            operations.create_assistant(
                ctx, args.name, args.module, model=args.model, instructions=args.instructions
            )
        )
    elif args.command == "remove-assistant":
        _print(
            operations.remove_assistant(
                ctx, args.name, remove_vector_indexes=args.remove_vector_indexes
            )
        )
    elif args.command == "set-default-assistant":
        operations.set_default_assistant(ctx, args.name)
        print(f"Default assistant set to {args.name}")
    elif args.command == "list-assistants":
        _print(operations.list_assistants(ctx))
    elif args.command == "build-local-cache":
        written = operations.build_local_cache(ctx, args.module, force=args.force)
        print(f"Wrote {written} embedding records for {args.module}")
    elif args.command == "build-remote-index":
        _print(operations.build_remote_index(ctx, args.module, force=args.force))
    elif args.command == "chat":
        _chat(ctx, args)
    elif args.command == "list-local-cache":
        _print(operations.list_local_cache(ctx))
    elif args.command == "split-docs-into-files":
        _print(operations.split_docs_into_files(ctx, args.module, args.output_dir))
    elif args.command == "export-training-data":
        count = operations.export_training_data(
            ctx,
            args.module,
            args.output,
            system_prompt=args.system_prompt,
            generate_questions=args.generate_questions,
        )
        print(f"Wrote {count} training examples to {args.output}")


def main(argv: list[str] | None = None, ctx: CopilotContext | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        logger.set_level("INFO")

    try:
        ctx = ctx or CopilotContext.from_environment()
        run(args, ctx)
    except HelpCopilotError as e:
        logger.error(e.message, command=args.command)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
