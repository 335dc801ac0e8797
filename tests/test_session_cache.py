"""Tests for the chat session cache."""

import pytest

from helpcopilot.chat.session_cache import SessionCache
from helpcopilot.exceptions import ConfigurationError


@pytest.fixture
def cache(client, store, threads):
    return SessionCache(client, store, capacity=2)


class TestGetOrCreateSession:
    def test_creates_thread_eagerly_and_defers_assistant(self, cache, threads):
        session = cache.get_or_create_session("fp", "toolkit-helper")

        assert session.thread_id == "thread_1"
        assert session.assistant is None
        assert threads.threads_created == 1

    def test_same_key_reuses_session(self, cache, threads):
        first = cache.get_or_create_session("fp", "toolkit-helper")
        second = cache.get_or_create_session("fp", "toolkit-helper")

        assert first is second
        assert threads.threads_created == 1

    def test_key_includes_credential_and_assistant(self, cache):
        a = cache.get_or_create_session("fp-1", "toolkit-helper")
        b = cache.get_or_create_session("fp-2", "toolkit-helper")

        assert a.thread_id != b.thread_id
        assert ("fp-1", "toolkit-helper") in cache

    def test_thread_carries_vector_index(self, cache, client):
        cache.get_or_create_session("fp", "toolkit-helper", vector_index_id="vs_1")

        client.beta.threads.create.assert_called_once_with(
            tool_resources={"file_search": {"vector_store_ids": ["vs_1"]}}
        )

    def test_hints_load_embedding_table(self, cache, store):
        store.write("sample_toolkit", "2.1.3", "get_database", "get", [1.0, 0.0])

        session = cache.get_or_create_session(
            "fp", "toolkit-helper", want_hints=True, collection="sample_toolkit"
        )

        assert session.embedding_table == {"get_database": [1.0, 0.0]}

    def test_hints_refresh_table_on_warm_hit(self, cache, store):
        store.write("sample_toolkit", "2.1.3", "get_database", "get", [1.0, 0.0])
        cache.get_or_create_session(
            "fp", "toolkit-helper", want_hints=True, collection="sample_toolkit"
        )
        store.write("sample_toolkit", "2.1.3", "copy_database", "copy", [0.0, 1.0])

        session = cache.get_or_create_session("fp", "toolkit-helper", want_hints=True)

        assert set(session.embedding_table) == {"get_database", "copy_database"}

    def test_empty_table_triggers_rebuild_once(self, client, store, threads):
        rebuilt = []

        def rebuild(collection):
            rebuilt.append(collection)
            store.write(collection, "2.1.3", "get_database", "get", [1.0])

        cache = SessionCache(client, store, rebuild=rebuild)
        session = cache.get_or_create_session(
            "fp", "toolkit-helper", want_hints=True, collection="sample_toolkit"
        )

        assert rebuilt == ["sample_toolkit"]
        assert session.embedding_table == {"get_database": [1.0]}

    def test_empty_table_without_rebuild_stays_empty(self, cache):
        session = cache.get_or_create_session(
            "fp", "toolkit-helper", want_hints=True, collection="sample_toolkit"
        )

        assert session.embedding_table == {}

    def test_hints_without_collection_raise(self, cache):
        with pytest.raises(ConfigurationError):
            cache.get_or_create_session("fp", "toolkit-helper", want_hints=True)


class TestEviction:
    def test_least_recently_used_is_evicted(self, cache):
        cache.get_or_create_session("fp", "a")
        cache.get_or_create_session("fp", "b")
        cache.get_or_create_session("fp", "a")
        cache.get_or_create_session("fp", "c")

        assert len(cache) == 2
        assert ("fp", "a") in cache
        assert ("fp", "b") not in cache

    def test_unbounded_capacity(self, client, store, threads):
        cache = SessionCache(client, store, capacity=None)
        for name in "abcdef":
            cache.get_or_create_session("fp", name)

        assert len(cache) == 6

    def test_clear(self, cache):
        cache.get_or_create_session("fp", "a")
        cache.clear()

        assert len(cache) == 0
