"""IMAP mail store client addressed by message sequence numbers."""

import imaplib
import logging
from typing import Optional, Set

from imap_tools import MailBox, MailBoxStartTls, MailBoxUnencrypted
from imap_tools.errors import ImapToolsError
from imap_tools.utils import encode_folder

from ..config import IMAPConfig

logger = logging.getLogger(__name__)


class IMAPError(Exception):
    """IMAP operation error."""

    pass


class IMAPClient:
    """Session bound to one authenticated mailbox connection.

    Message ids are the sequence numbers of the currently selected folder.
    Deletions only set ``\\Deleted``; the folder is expunged when another
    folder is selected or on disconnect, so ids stay stable while a rule
    line works on a folder.
    """

    def __init__(self, config: IMAPConfig):
        self.config = config
        self._mailbox: Optional[MailBox] = None
        self._folder: Optional[str] = None
        self._pending_expunge = False

    def __enter__(self) -> "IMAPClient":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    @property
    def client(self) -> imaplib.IMAP4:
        """Underlying imaplib connection."""
        if not self._mailbox:
            raise IMAPError("Not connected")
        return self._mailbox.client

    def connect(self) -> None:
        """Connect and log in to the IMAP server."""
        logger.info(
            f"Connecting to {self.config.host}:{self.config.port} "
            f"(SSL={self.config.use_ssl}, STARTTLS={self.config.starttls})"
        )
        try:
            if self.config.use_ssl:
                mailbox = MailBox(self.config.host, self.config.port)
            elif self.config.starttls:
                mailbox = MailBoxStartTls(self.config.host, self.config.port)
            else:
                mailbox = MailBoxUnencrypted(self.config.host, self.config.port)

            mailbox.login(self.config.user, self.config.password, initial_folder=None)
        except (ImapToolsError, imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to connect: {e}")

        self._mailbox = mailbox
        logger.info("Connected successfully")

    def disconnect(self) -> None:
        """Expunge pending deletions and log out."""
        if not self._mailbox:
            return
        try:
            self._expunge()
            self._mailbox.logout()
        except (ImapToolsError, imaplib.IMAP4.error, OSError) as e:
            logger.warning(f"Error during logout: {e}")
        self._mailbox = None
        self._folder = None
        logger.info("Disconnected")

    def _expunge(self) -> None:
        if self._pending_expunge:
            logger.debug(f"Expunging deleted messages in {self._folder}")
            self.client.expunge()
            self._pending_expunge = False

    def select_folder(self, folder: str) -> int:
        """Select mailbox folder. Returns message count."""
        try:
            self._expunge()
            status, data = self.client.select(encode_folder(folder))
            if status != "OK":
                raise IMAPError(f"Failed to select folder: {folder}")
            count = int(data[0])
        except (imaplib.IMAP4.error, OSError, ValueError) as e:
            raise IMAPError(f"Failed to select folder {folder}: {e}")

        self._folder = folder
        logger.debug(f"Selected folder {folder} with {count} messages")
        return count

    def search_seen(self, seen: bool) -> list[int]:
        """Ids of messages in the current folder with (or without) ``\\Seen``."""
        criterion = "SEEN" if seen else "UNSEEN"
        try:
            status, data = self.client.search(None, criterion)
        except (imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to search messages: {e}")
        if status != "OK":
            raise IMAPError(f"Failed to search for {criterion} messages")

        ids = [int(i) for i in data[0].split()] if data and data[0] else []
        logger.debug(f"Found {len(ids)} {criterion.lower()} messages")
        return ids

    def fetch(self, msg_id: int) -> bytes:
        """Fetch the raw message without touching its ``\\Seen`` flag."""
        try:
            status, data = self.client.fetch(str(msg_id), "(BODY.PEEK[])")
        except (imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to fetch message {msg_id}: {e}")
        if status != "OK":
            raise IMAPError(f"Failed to fetch message {msg_id}")

        for part in data or []:
            if isinstance(part, tuple):
                return part[1]
        raise IMAPError(f"Message {msg_id} not found")

    def set_seen(self, msg_id: int, value: bool) -> None:
        """Set or clear the ``\\Seen`` flag."""
        command = "+FLAGS" if value else "-FLAGS"
        self._store(msg_id, command, "\\Seen")

    def copy(self, msg_id: int, folder: str) -> None:
        """Copy a message to another folder."""
        try:
            status, data = self.client.copy(str(msg_id), encode_folder(folder))
        except (imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to copy message {msg_id} to {folder}: {e}")
        if status != "OK":
            raise IMAPError(f"Failed to copy message {msg_id} to {folder}: {data}")
        logger.debug(f"Copied message {msg_id} to {folder}")

    def delete(self, msg_id: int) -> None:
        """Mark a message deleted; it is expunged when the folder is left."""
        self._store(msg_id, "+FLAGS", "\\Deleted")
        self._pending_expunge = True
        logger.debug(f"Deleted message {msg_id}")

    def get_flags(self, msg_id: int) -> Set[str]:
        """Flags currently set on a message."""
        try:
            status, data = self.client.fetch(str(msg_id), "(FLAGS)")
        except (imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to fetch flags of message {msg_id}: {e}")
        if status != "OK" or not data or not data[0]:
            raise IMAPError(f"Failed to fetch flags of message {msg_id}")

        response = data[0]
        if isinstance(response, tuple):
            response = response[0]
        return {flag.decode() for flag in imaplib.ParseFlags(response)}

    def _store(self, msg_id: int, command: str, flag: str) -> None:
        try:
            status, data = self.client.store(str(msg_id), command, flag)
        except (imaplib.IMAP4.error, OSError) as e:
            raise IMAPError(f"Failed to update flags of message {msg_id}: {e}")
        if status != "OK":
            raise IMAPError(f"Failed to update flags of message {msg_id}: {data}")
