"""Per-run message content cache."""

import hashlib
import logging
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class MessageCache:
    """Write-through cache of raw messages keyed by (folder, id).

    Entries live in a private temporary directory for the lifetime of the
    cache and are never evicted or refreshed. That is only correct while the
    cached messages do not change on the server, which holds for a single
    run but not for a long-lived session.
    """

    def __init__(self, store, enabled: bool = True):
        self.store = store
        self.enabled = enabled
        self._index: Dict[Tuple[str, int], Path] = {}
        self._tmpdir: Optional[tempfile.TemporaryDirectory] = None
        self.hits = 0
        self.misses = 0

    def __enter__(self) -> "MessageCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: Tuple[str, int]) -> bool:
        return key in self._index

    def get(self, folder: str, msg_id: int) -> bytes:
        """Content of a message, fetched from the store on first access.

        Raises whatever the store raises when the fetch fails; nothing is
        cached in that case.
        """
        key = (folder, msg_id)
        path = self._index.get(key)
        if path is not None:
            self.hits += 1
            return path.read_bytes()

        self.misses += 1
        content = self.store.fetch(msg_id)
        if self.enabled:
            self._index[key] = self._write(folder, msg_id, content)
        return content

    def _write(self, folder: str, msg_id: int, content: bytes) -> Path:
        if self._tmpdir is None:
            self._tmpdir = tempfile.TemporaryDirectory(prefix="mailrules-")
            logger.debug(f"Message cache at {self._tmpdir.name}")

        # Folder names may contain path separators
        folder_key = hashlib.sha1(folder.encode("utf-8")).hexdigest()
        folder_dir = Path(self._tmpdir.name) / folder_key
        folder_dir.mkdir(exist_ok=True)

        path = folder_dir / f"{msg_id}.eml"
        path.write_bytes(content)
        return path

    def discard_folder(self, folder: str) -> None:
        """Forget a folder whose ids are renumbered by an expunge."""
        stale = [key for key in self._index if key[0] == folder]
        for key in stale:
            self._index.pop(key).unlink(missing_ok=True)
        if stale:
            logger.debug(f"Dropped {len(stale)} cached message(s) of {folder}")

    def close(self) -> None:
        """Remove all cached content."""
        if self._tmpdir is not None:
            self._tmpdir.cleanup()
            self._tmpdir = None
        self._index.clear()
