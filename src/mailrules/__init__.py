"""Rule-driven automation for messages in an IMAP mailbox."""

__version__ = "0.1.0"
