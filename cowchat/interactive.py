#!/usr/bin/env python3
"""
cowchat command-line interface

Modes:
  demo         run the scripted three-question conversation (default)
  interactive  read prompts line by line until "exit" or end of input
  test         feed a hand-crafted cowsay tool call through the loop
"""

import argparse
import logging
import sys
from typing import Optional

from .config_loader import load_app_config
from .exceptions import ConfigurationError
from .models import AppConfig, Message, Role
from .session import ChatSession, build_test_message, run_demo
from .tracing import TracingContext, init_tracing_client, shutdown_tracing

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "/quit", "/exit", "/q")


def setup_logging(level: str = "INFO") -> None:
    """Configure logging on stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def print_message(message: Message) -> None:
    """Show a message's text; tool output is never shown directly."""
    if message.content and message.role is not Role.TOOL:
        print(f"[{message.role.value}]: {message.content}")


def print_failure(error: Optional[str]) -> None:
    print(f"\nError: {error}\n", file=sys.stderr)


def repl(session: ChatSession) -> None:
    """Interactive prompt loop."""
    print("Enter your prompts (type 'exit' or press Ctrl-D to quit):")
    while True:
        try:
            user_input = input("> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("\n")
            break

        if user_input.strip() in EXIT_COMMANDS:
            break
        if not user_input.strip():
            continue

        result = session.ask(user_input)
        if not result.success:
            print_failure(result.error)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cowchat",
        description="Chat with an LLM that can call cowsay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Run the scripted demo
  %(prog)s interactive              # Type your own prompts
  %(prog)s test                     # Exercise the tool path without a provider call
  %(prog)s --provider openai -v     # Use the router with debug dumps
""",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        default="demo",
        choices=("demo", "interactive", "test"),
        help="What to run (default: demo)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging, including provider payload dumps",
    )
    parser.add_argument(
        "--provider",
        choices=("ollama", "openai"),
        default=None,
        help="Provider to use (default: from LLM_PROVIDER env or config)",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Model identifier (default: from MODEL env or config)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file",
    )
    return parser


def _resolve_settings(args: argparse.Namespace) -> AppConfig:
    settings = load_app_config(args.config)
    if args.provider:
        settings.provider.name = args.provider
    if args.model:
        settings.provider.model = args.model
    if args.verbose:
        settings.logging.debug = True
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings = _resolve_settings(args)
    except (ConfigurationError, FileNotFoundError) as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        return 2

    setup_logging(settings.log_level)

    tracing_context = None
    if settings.langfuse.enabled and init_tracing_client(settings.langfuse).enabled:
        tracing_context = TracingContext(session_id=f"cowchat-{args.mode}")

    try:
        session = ChatSession(
            settings=settings,
            on_message=print_message,
            tracing_context=tracing_context,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        shutdown_tracing()
        return 2

    failed = False
    try:
        if args.mode == "test":
            result = session.inject(build_test_message())
            failed = not result.success
        elif args.mode == "interactive":
            repl(session)
        else:
            for result in run_demo(session):
                if not result.success:
                    print_failure(result.error)
                    failed = True
    finally:
        session.close()
        shutdown_tracing()

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
