"""Shared fixtures for the engine tests."""

import pytest

from mailrules.engine.cache import MessageCache
from mailrules.engine.selection import SessionContext

from fakes import FakeStore, make_message


@pytest.fixture
def store():
    """INBOX with three messages, only the second one about "hello"."""
    fake = FakeStore({
        "INBOX": [
            make_message(subject="weekly report", sender="carol@example.com"),
            make_message(subject="hello", body="Lunch tomorrow?"),
            make_message(subject="invoice 42", sender="billing@shop.example",
                         body="Amount due: 10 EUR"),
        ],
        "Archive": [],
    })
    fake.mark_seen("INBOX", 1, 2)
    return fake


@pytest.fixture
def ctx(store):
    with MessageCache(store) as cache:
        yield SessionContext(store=store, cache=cache)
