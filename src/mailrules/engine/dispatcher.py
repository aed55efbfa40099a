"""Static command table and the dispatcher that runs rule lines."""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from ..logging_format import console
from . import handlers
from .handlers import Handler
from .selection import SessionContext
from .tokens import Token, tokenize

logger = logging.getLogger(__name__)

FOLDER_COMMAND = "folder"


@dataclass(frozen=True)
class Command:
    """Entry of the command table."""

    name: str
    handler: Handler
    takes_argument: bool
    invertible: bool = False


def _table(*commands: Command) -> Mapping[str, Command]:
    return MappingProxyType({command.name: command for command in commands})


COMMANDS = _table(
    Command(FOLDER_COMMAND, handlers.select_folder, takes_argument=True),
    Command("status", handlers.match_status, takes_argument=True, invertible=True),
    Command("subject", handlers.header_predicate("subject"), takes_argument=True, invertible=True),
    Command("from", handlers.header_predicate("from"), takes_argument=True, invertible=True),
    Command("to", handlers.header_predicate("to"), takes_argument=True, invertible=True),
    Command("cc", handlers.header_predicate("cc"), takes_argument=True, invertible=True),
    Command("sender", handlers.header_predicate("sender"), takes_argument=True, invertible=True),
    Command("reply-to", handlers.header_predicate("reply-to"), takes_argument=True, invertible=True),
    Command("header", handlers.match_named_header, takes_argument=True, invertible=True),
    Command("body", handlers.match_body, takes_argument=True, invertible=True),
    Command("mark", handlers.change_status, takes_argument=True),
    Command("move", handlers.move_messages, takes_argument=True),
    Command("copy", handlers.copy_messages, takes_argument=True),
    Command("delete", handlers.delete_messages, takes_argument=False),
    Command("dump", handlers.dump_messages, takes_argument=False),
    Command("exec", handlers.exec_per_message, takes_argument=True),
    Command("execonce", handlers.exec_once, takes_argument=True),
)


def resolve(token: Token) -> Optional[Command]:
    """Look a token up in the command table, warning when it cannot run."""
    command = COMMANDS.get(token.command)
    if command is None:
        logger.warning(f"Unknown command {token.raw!r}, skipping")
        return None
    if command.takes_argument and token.argument is None:
        logger.warning(f"Command {token.raw!r} requires an argument, skipping")
        return None
    if token.inverted and not command.invertible:
        logger.warning(f"Command {command.name!r} cannot be inverted, skipping {token.raw!r}")
        return None
    if not command.takes_argument and token.argument is not None:
        logger.debug(f"Ignoring argument of {token.raw!r}")
    return command


def dispatch(ctx: SessionContext, token: Token) -> None:
    """Run one token against the context."""
    command = resolve(token)
    if command is None:
        return

    if ctx.dry_run:
        call = token.describe() if command.takes_argument else command.name
        ctx.dry_run_calls.append(call)
        console.dry_run_call(
            ("!" if token.inverted else "") + command.name,
            token.argument if command.takes_argument else None,
        )
        return

    if not ctx.ids and command.name != FOLDER_COMMAND:
        logger.debug(f"Nothing selected, skipping {token.raw!r}")
        return

    logger.debug(f"Running {token.describe()}")
    command.handler(ctx, token)


def run_line(ctx: SessionContext, line: str) -> None:
    """Run every token of a rule line in order."""
    for token in tokenize(line):
        dispatch(ctx, token)
