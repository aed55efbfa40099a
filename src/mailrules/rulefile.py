"""Rule file reader."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .config import ConfigError
from .engine.dispatcher import FOLDER_COMMAND

logger = logging.getLogger(__name__)

CREDENTIAL_KEYS = ("server", "username", "password")

_CREDENTIAL_RE = re.compile(
    r"^\s*(%s)\s*:(.*)$" % "|".join(CREDENTIAL_KEYS), re.IGNORECASE
)


@dataclass
class RuleFile:
    """Rule lines and optional connection credentials from one file."""

    path: str
    credentials: Dict[str, str] = field(default_factory=dict)
    rules: List[str] = field(default_factory=list)


def parse_rules(path: str, text: str) -> RuleFile:
    """Parse the content of a rule file.

    Comment and blank lines are skipped. The first ``server``, ``username``
    and ``password`` lines before the first rule supply credentials. Only
    lines starting with the ``folder`` command are rules; anything else is
    ignored.
    """
    rule_file = RuleFile(path=path)
    for number, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        match = _CREDENTIAL_RE.match(stripped)
        if match and not rule_file.rules:
            key = match.group(1).lower()
            rule_file.credentials.setdefault(key, match.group(2).strip())
            continue

        if stripped.lower().startswith(FOLDER_COMMAND + ":"):
            rule_file.rules.append(stripped)
        else:
            logger.debug(f"{path}:{number}: ignoring line")

    return rule_file


def load_rule_file(path: str) -> RuleFile:
    """Read and parse a rule file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read rule file {path}: {e}")

    rule_file = parse_rules(path, text)
    logger.info(f"Loaded {len(rule_file.rules)} rule(s) from {path}")
    return rule_file
