"""Predicate and action handlers operating on a SessionContext."""

import logging
import os
import subprocess
from typing import Callable, Optional

from ..imap.client import IMAPError
from ..logging_format import console
from . import matchers
from .selection import SessionContext
from .tokens import Token

logger = logging.getLogger(__name__)

Handler = Callable[[SessionContext, Token], None]

# status value -> state of the \Seen flag
SEEN_VALUES = {
    "new": False,
    "unread": False,
    "read": True,
    "old": True,
}

DUMP_HEADERS = ("date", "from", "to", "subject")


def _seen_value(token: Token) -> Optional[bool]:
    value = SEEN_VALUES.get(token.argument.lower())
    if value is None:
        logger.warning(
            f"Unknown status {token.argument!r} in {token.raw!r}, "
            f"expected one of: {', '.join(SEEN_VALUES)}"
        )
    return value


def _lines(ctx: SessionContext, msg_id: int) -> Optional[list[str]]:
    try:
        return matchers.split_lines(ctx.content(msg_id))
    except IMAPError as e:
        logger.debug(f"Excluding message {msg_id}: {e}")
        return None


# -- selection ---------------------------------------------------------------

def select_folder(ctx: SessionContext, token: Token) -> None:
    """``folder:NAME``"""
    ctx.select(token.argument)


# -- predicates --------------------------------------------------------------

def match_status(ctx: SessionContext, token: Token) -> None:
    """``[!]status:new|unread|read|old``, answered by the server's flag search."""
    seen = _seen_value(token)
    if seen is None:
        return
    if token.inverted:
        seen = not seen
    try:
        found = ctx.store.search_seen(seen)
    except IMAPError as e:
        logger.warning(f"Flag search for {token.raw!r} failed, skipping: {e}")
        return
    ctx.restrict_to(found)


def header_predicate(name: str) -> Handler:
    """Build the handler for a fixed header such as ``subject:PATTERN``."""

    def handler(ctx: SessionContext, token: Token) -> None:
        _filter_header(ctx, name, token.argument, token.inverted)

    handler.__name__ = f"match_{name.replace('-', '_')}"
    handler.__doc__ = f"``[!]{name}:PATTERN``"
    return handler


def match_named_header(ctx: SessionContext, token: Token) -> None:
    """``[!]header:NAME:PATTERN``"""
    name, sep, pattern = token.argument.partition(":")
    if not sep or not name or not pattern:
        logger.warning(f"Expected NAME:PATTERN in {token.raw!r}, skipping")
        return
    _filter_header(ctx, name, pattern, token.inverted)


def _filter_header(ctx: SessionContext, name: str, pattern: str, inverted: bool) -> None:
    def keep(msg_id: int) -> bool:
        lines = _lines(ctx, msg_id)
        return lines is not None and matchers.match_header(lines, name, pattern, inverted)

    ctx.narrow(keep)


def match_body(ctx: SessionContext, token: Token) -> None:
    """``[!]body:PATTERN``"""

    def keep(msg_id: int) -> bool:
        lines = _lines(ctx, msg_id)
        return lines is not None and matchers.match_body(lines, token.argument, token.inverted)

    ctx.narrow(keep)


# -- actions -----------------------------------------------------------------

def change_status(ctx: SessionContext, token: Token) -> None:
    """``mark:new|unread|read|old``"""
    seen = _seen_value(token)
    if seen is None:
        return

    changed = 0
    for msg_id in ctx.ids:
        try:
            ctx.store.set_seen(msg_id, seen)
            changed += 1
        except IMAPError as e:
            logger.warning(f"Could not mark message {msg_id} as {token.argument}: {e}")
    logger.info(f"Marked {changed} message(s) in {ctx.folder} as {token.argument}")


def copy_messages(ctx: SessionContext, token: Token) -> None:
    """``copy:FOLDER``"""
    copied = 0
    for msg_id in ctx.ids:
        try:
            ctx.store.copy(msg_id, token.argument)
            copied += 1
        except IMAPError as e:
            logger.warning(f"Could not copy message {msg_id} to {token.argument}: {e}")
    logger.info(f"Copied {copied} message(s) from {ctx.folder} to {token.argument}")


def move_messages(ctx: SessionContext, token: Token) -> None:
    """``move:FOLDER``, a copy followed by a delete of each copied message."""
    moved = 0
    for msg_id in ctx.ids:
        try:
            ctx.store.copy(msg_id, token.argument)
        except IMAPError as e:
            logger.warning(
                f"Could not copy message {msg_id} to {token.argument}, leaving it in place: {e}"
            )
            continue
        try:
            ctx.store.delete(msg_id)
        except IMAPError as e:
            logger.warning(
                f"Message {msg_id} copied to {token.argument} but not deleted "
                f"from {ctx.folder}, it is now in both folders: {e}"
            )
            continue
        moved += 1
    logger.info(f"Moved {moved} message(s) from {ctx.folder} to {token.argument}")
    ctx.clear()


def delete_messages(ctx: SessionContext, token: Token) -> None:
    """``delete``"""
    deleted = 0
    for msg_id in ctx.ids:
        try:
            ctx.store.delete(msg_id)
            deleted += 1
        except IMAPError as e:
            logger.warning(f"Could not delete message {msg_id}: {e}")
    logger.info(f"Deleted {deleted} message(s) from {ctx.folder}")
    ctx.clear()


def dump_messages(ctx: SessionContext, token: Token) -> None:
    """``dump``: print the main headers and the flags of each message."""
    for msg_id in ctx.ids:
        lines = _lines(ctx, msg_id)
        if lines is None:
            logger.warning(f"Could not fetch message {msg_id} for dump")
            continue
        try:
            flags = ctx.store.get_flags(msg_id)
        except IMAPError as e:
            logger.warning(f"Could not fetch flags of message {msg_id}: {e}")
            flags = set()

        headers = []
        for name in DUMP_HEADERS:
            value = matchers.find_header(lines, name)
            if value is not None:
                headers.append(f"{name.capitalize()}: {value}")
        console.message(ctx.folder, msg_id, flags, headers)


def _child_env(**extra: str) -> dict:
    env = dict(os.environ)
    env.update(extra)
    return env


def exec_per_message(ctx: SessionContext, token: Token) -> None:
    """``exec:COMMAND``: run COMMAND once per message, message on stdin."""
    for msg_id in ctx.ids:
        try:
            content = ctx.content(msg_id)
        except IMAPError as e:
            logger.warning(f"Could not fetch message {msg_id} for {token.argument!r}: {e}")
            continue

        env = _child_env(MAILRULES_FOLDER=ctx.folder, MAILRULES_ID=str(msg_id))
        logger.debug(f"Running {token.argument!r} for message {msg_id}")
        result = subprocess.run(token.argument, shell=True, input=content, env=env)
        if result.returncode != 0:
            logger.warning(
                f"Command {token.argument!r} exited with {result.returncode} "
                f"for message {msg_id}"
            )


def exec_once(ctx: SessionContext, token: Token) -> None:
    """``execonce:COMMAND``: run COMMAND a single time for the whole selection."""
    env = _child_env(
        MAILRULES_FOLDER=ctx.folder,
        MAILRULES_IDS=" ".join(str(msg_id) for msg_id in ctx.ids),
    )
    logger.debug(f"Running {token.argument!r} once for {len(ctx.ids)} message(s)")
    result = subprocess.run(token.argument, shell=True, env=env)
    if result.returncode != 0:
        logger.warning(f"Command {token.argument!r} exited with {result.returncode}")
