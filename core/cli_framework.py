"""CLI application framework for the export tooling.

Provides a declarative way to build CLI applications with:
- Command registration via decorators
- Automatic argument parsing
- Consistent error handling and logging setup
- Common arguments (--config, --verbose, --quiet, --output)
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cli_errors import CLIError, ExitCode, handle_error
from .cli_output import OutputConfig, OutputFormat, OutputWriter


CommandFunc = Callable[[argparse.Namespace], int]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class Argument:
    """Definition of a CLI argument."""
    name_or_flags: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandDef:
    """Definition of a CLI command."""
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)


class CLIApp:
    """Decorator-driven argparse application.

    Example usage:
        app = CLIApp("opentime", "Export schedule items")

        @app.command("list", help="List items")
        @app.argument("--folder", help="Companion folder")
        def cmd_list(args):
            ...
            return 0

        if __name__ == "__main__":
            app.main()
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        version: Optional[str] = None,
        epilog: Optional[str] = None,
        add_common_args: bool = True,
    ):
        self.name = name
        self.description = description
        self.version = version
        self.epilog = epilog
        self.add_common_args = add_common_args

        self._commands: Dict[str, CommandDef] = {}
        self._parser: Optional[argparse.ArgumentParser] = None
        self._pending_arguments: List[Argument] = []

    def command(
        self,
        name: str,
        *,
        help: str = "",
        description: str = "",
        aliases: Optional[List[str]] = None,
    ) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to register a command."""
        def decorator(func: CommandFunc) -> CommandFunc:
            # @argument decorators run before @command, innermost first
            arguments = list(reversed(self._pending_arguments))
            self._pending_arguments.clear()
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
                aliases=aliases or [],
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to add an argument to the next command.

        Must be placed below the @command decorator.
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            self._pending_arguments.append(Argument(name_or_flags, kwargs))
            return func
        return decorator

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            epilog=self.epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {self.version}")
        if self.add_common_args:
            self._add_common_arguments(parser)

        if self._commands:
            subparsers = parser.add_subparsers(dest="command", metavar="<command>")
            for cmd_def in self._commands.values():
                cmd_parser = subparsers.add_parser(
                    cmd_def.name,
                    help=cmd_def.help,
                    description=cmd_def.description,
                    aliases=cmd_def.aliases,
                )
                for arg in cmd_def.arguments:
                    cmd_parser.add_argument(*arg.name_or_flags, **arg.kwargs)
                cmd_parser.set_defaults(_cmd_func=cmd_def.func)

        self._parser = parser
        return parser

    def _add_common_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--config", "-c", help="Settings YAML path")
        parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output and debug logging")
        parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-essential output")
        parser.add_argument(
            "--output", "-o",
            choices=[f.value for f in OutputFormat],
            default="text",
            help="Output format (default: text)",
        )

    @staticmethod
    def _configure_logging(verbose: bool) -> None:
        logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse argv, run the selected command, and return its exit code."""
        parser = self._parser or self.build_parser()
        args = parser.parse_args(argv)

        verbose = bool(getattr(args, "verbose", False))
        self._configure_logging(verbose)
        args._output = OutputWriter(OutputConfig(
            format=OutputFormat(getattr(args, "output", "text")),
            verbose=verbose,
            quiet=bool(getattr(args, "quiet", False)),
        ))

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            parser.print_help()
            return ExitCode.USAGE

        try:
            return int(cmd_func(args))
        except CLIError as e:
            return handle_error(e, verbose=verbose)
        except KeyboardInterrupt:
            print("\nInterrupted.", file=sys.stderr)
            return ExitCode.INTERRUPTED
        except Exception as e:
            return handle_error(e, verbose=verbose)

    def main(self, argv: Optional[Sequence[str]] = None) -> None:
        sys.exit(self.run(argv))
