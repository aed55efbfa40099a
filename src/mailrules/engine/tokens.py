"""Rule line tokenizer."""

import re
from dataclasses import dataclass
from typing import Optional

SPACE_PLACEHOLDER = "#"
INVERT_PREFIX = "!"

_PLACEHOLDER_RE = re.compile(r"##|#")


@dataclass(frozen=True)
class Token:
    """One ``[!]command[:argument]`` element of a rule line."""

    raw: str
    command: str
    argument: Optional[str]
    inverted: bool

    def describe(self) -> str:
        """Human readable form of the resolved call, used in logs."""
        prefix = INVERT_PREFIX if self.inverted else ""
        if self.argument is None:
            return f"{prefix}{self.command}"
        return f"{prefix}{self.command}:{self.argument}"


def decode_argument(argument: str) -> str:
    """Turn ``#`` into a space and ``##`` into a literal ``#``."""
    return _PLACEHOLDER_RE.sub(
        lambda m: SPACE_PLACEHOLDER if m.group() == "##" else " ", argument
    )


def parse_token(raw: str) -> Token:
    """Split a token at its first colon and note a leading ``!``."""
    command, sep, argument = raw.partition(":")
    inverted = command.startswith(INVERT_PREFIX)
    if inverted:
        command = command[len(INVERT_PREFIX):]
    return Token(
        raw=raw,
        command=command.lower(),
        argument=decode_argument(argument) if sep and argument else None,
        inverted=inverted,
    )


def tokenize(line: str) -> list[Token]:
    """Split a rule line on runs of whitespace into tokens."""
    return [parse_token(raw) for raw in line.split()]
