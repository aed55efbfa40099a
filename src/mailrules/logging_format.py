"""Structured console output for dump listings and dry-run reports."""

import sys
from typing import Iterable, Optional

# Box drawing characters
LINE_HEAVY = "\u2501"  # ━
LINE_LIGHT = "\u2500"  # ─

# Status icons
ICON_OK = "\u2713"     # ✓
ICON_FAIL = "\u2717"   # ✗
ICON_ARROW = ">>"

# Width for boxes
WIDTH = 75


class ConsoleOutput:
    """User-facing output on stdout; fatal errors go to stderr."""

    def __init__(self, stream=None, error_stream=None):
        self._stream = stream
        self._error_stream = error_stream

    @property
    def stream(self):
        # Resolved lazily so pytest's capsys sees the output
        return self._stream or sys.stdout

    @property
    def error_stream(self):
        return self._error_stream or sys.stderr

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def rule_header(self, source: str, line: str) -> None:
        """Print the rule line about to run."""
        line_truncated = line[:60] + "..." if len(line) > 60 else line
        self._print(f"\n{LINE_HEAVY * WIDTH}")
        self._print(f" RULE ({source})")
        self._print(f" {line_truncated}")
        self._print(LINE_HEAVY * WIDTH)

    def dry_run_call(self, command: str, argument: Optional[str]) -> None:
        """Print a handler call that dry-run mode did not perform."""
        if argument is None:
            self._print(f"  {ICON_ARROW} {command}")
        else:
            self._print(f"  {ICON_ARROW} {command}({argument!r})")

    def message(
        self, folder: str, msg_id: int, flags: Iterable[str], headers: Iterable[str]
    ) -> None:
        """Print headers and flags of one message."""
        flag_text = " ".join(sorted(flags)) or "-"
        self._print(f"{LINE_LIGHT * WIDTH}")
        self._print(f" {folder} #{msg_id}  [{flag_text}]")
        for header in headers:
            self._print(f"   {header}")

    def summary(self, folder: Optional[str], selected: int) -> None:
        """Print the selection size after a rule line."""
        self._print(f" {ICON_OK} {folder or '-'}: {selected} message(s) selected")

    def error(self, message: str) -> None:
        """Print error message."""
        print(f" {ICON_FAIL} {message}", file=self.error_stream)

    def status(self, message: str) -> None:
        """Print status message without icon."""
        self._print(f" {message}")


# Global instance
console = ConsoleOutput()
