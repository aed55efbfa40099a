"""Mail store access."""

from .client import IMAPClient, IMAPError

__all__ = ["IMAPClient", "IMAPError"]
