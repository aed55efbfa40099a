"""Tests for the message cache."""

import pytest

from mailrules.engine.cache import MessageCache
from mailrules.imap.client import IMAPError

from fakes import FakeStore, make_message


@pytest.fixture
def store():
    fake = FakeStore({"INBOX": [make_message(subject="one"), make_message(subject="two")]})
    fake.select_folder("INBOX")
    return fake


class TestMessageCache:
    """Test write-through caching."""

    def test_second_get_is_served_from_cache(self, store):
        with MessageCache(store) as cache:
            first = cache.get("INBOX", 1)
            second = cache.get("INBOX", 1)

        assert first == second == make_message(subject="one")
        assert store.fetches == [("INBOX", 1)]
        assert cache.hits == 1
        assert cache.misses == 1

    def test_keys_include_folder(self, store):
        with MessageCache(store) as cache:
            cache.get("INBOX", 1)
            assert ("INBOX", 1) in cache
            assert ("Archive", 1) not in cache

    def test_disabled_cache_always_fetches(self, store):
        with MessageCache(store, enabled=False) as cache:
            cache.get("INBOX", 2)
            cache.get("INBOX", 2)
            assert len(cache) == 0

        assert store.fetches == [("INBOX", 2), ("INBOX", 2)]

    def test_failed_fetch_is_not_cached(self, store):
        store.fail_fetch.add(2)
        with MessageCache(store) as cache:
            with pytest.raises(IMAPError):
                cache.get("INBOX", 2)
            assert len(cache) == 0

    def test_fetch_does_not_mark_seen(self, store):
        with MessageCache(store) as cache:
            cache.get("INBOX", 1)
        assert store.get_flags(1) == set()

    def test_discard_folder(self, store):
        with MessageCache(store) as cache:
            cache.get("INBOX", 1)
            cache.discard_folder("INBOX")
            cache.get("INBOX", 1)

        assert store.fetches == [("INBOX", 1), ("INBOX", 1)]

    def test_close_removes_files(self, store):
        cache = MessageCache(store)
        cache.get("INBOX", 1)
        path = cache._index[("INBOX", 1)]
        assert path.exists()

        cache.close()
        assert not path.exists()
        assert len(cache) == 0

    def test_folder_names_with_separators(self, store):
        store.folders["INBOX/Sub"] = store.folders["INBOX"]
        store.select_folder("INBOX/Sub")
        with MessageCache(store) as cache:
            assert cache.get("INBOX/Sub", 2) == make_message(subject="two")
            assert cache.get("INBOX/Sub", 2) == make_message(subject="two")
