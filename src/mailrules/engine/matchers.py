"""Header and body predicates over raw message content."""

import logging
import re
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)


@lru_cache(maxsize=128)
def compile_pattern(pattern: str) -> re.Pattern:
    """Case-insensitive regex; invalid expressions match as plain text."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug(f"Pattern {pattern!r} is not a regex ({e}), matching literally")
        return re.compile(re.escape(pattern), re.IGNORECASE)


def split_lines(content: bytes) -> list[str]:
    """Decode raw message bytes into lines without line terminators."""
    return content.decode("utf-8", errors="replace").splitlines()


def header_block(lines: list[str]) -> list[str]:
    """Lines before the first empty line."""
    for index, line in enumerate(lines):
        if not line.strip():
            return lines[:index]
    return lines


def body_lines(lines: list[str]) -> list[str]:
    """Lines after the first empty line."""
    for index, line in enumerate(lines):
        if not line.strip():
            return lines[index + 1:]
    return []


def find_header(lines: list[str], name: str) -> Optional[str]:
    """Value of the first occurrence of a header, unfolded.

    Only the header block is searched, so header-like lines in the body
    never match.
    """
    prefix = name.lower() + ":"
    value = None
    for line in header_block(lines):
        if value is not None:
            if line[:1] in (" ", "\t"):
                value += " " + line.strip()
                continue
            break
        if line.lower().startswith(prefix):
            value = line[len(prefix):].strip()
    return value


def match_header(lines: list[str], name: str, pattern: str, inverted: bool = False) -> bool:
    """Test a header against ``pattern``.

    A message without the header never matches, inverted or not.
    """
    value = find_header(lines, name)
    if value is None:
        return False
    matched = compile_pattern(pattern).search(value) is not None
    return matched != inverted


def match_body(lines: list[str], pattern: str, inverted: bool = False) -> bool:
    """Test whether any body line matches ``pattern``."""
    regex = compile_pattern(pattern)
    found = any(regex.search(line) for line in body_lines(lines))
    return found != inverted
