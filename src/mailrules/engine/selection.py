"""Selection state carried through the tokens of a rule run."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..imap.client import IMAPError
from .cache import MessageCache

logger = logging.getLogger(__name__)


class SelectionError(Exception):
    """A folder could not be selected; the run cannot continue."""

    pass


@dataclass
class SessionContext:
    """Current folder and selected message ids for one rule source.

    ``folder`` is None until the first ``folder`` token runs. Every
    predicate narrows ``ids``, every destructive action clears it.
    """

    store: object
    cache: MessageCache
    dry_run: bool = False
    folder: Optional[str] = None
    ids: list[int] = field(default_factory=list)
    dry_run_calls: list[str] = field(default_factory=list)

    @property
    def is_selected(self) -> bool:
        return self.folder is not None

    def select(self, folder: str) -> None:
        """Select ``folder`` and reset the selection to all its messages."""
        try:
            count = self.store.select_folder(folder)
        except IMAPError as e:
            raise SelectionError(f"Cannot select folder {folder!r}: {e}")

        self.folder = folder
        self.ids = list(range(1, count + 1))
        logger.info(f"Selected {folder}: {count} message(s)")

    def narrow(self, keep: Callable[[int], bool]) -> None:
        """Keep the ids for which ``keep`` is true, preserving order."""
        before = len(self.ids)
        self.ids = [msg_id for msg_id in self.ids if keep(msg_id)]
        logger.debug(f"Selection narrowed from {before} to {len(self.ids)}")

    def restrict_to(self, allowed: Iterable[int]) -> None:
        allowed = set(allowed)
        self.narrow(lambda msg_id: msg_id in allowed)

    def clear(self) -> None:
        """Drop the selection after its messages were removed."""
        self.ids = []
        if self.folder is not None:
            self.cache.discard_folder(self.folder)

    def content(self, msg_id: int) -> bytes:
        """Raw content of a message in the current folder."""
        return self.cache.get(self.folder, msg_id)
