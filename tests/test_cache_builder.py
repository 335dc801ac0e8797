"""Tests for building the local embedding cache from a module's help."""

import pytest

import sample_toolkit
from fakes import embedding_response
from helpcopilot.ai.usage import UsageTracker
from helpcopilot.docs.introspection import ModuleHelpProvider
from helpcopilot.rag.cache_builder import build_local_cache


@pytest.fixture
def provider():
    return ModuleHelpProvider("sample_toolkit", sample_toolkit)


@pytest.fixture
def embeddings(client):
    def create(model, input):
        return embedding_response([[1.0, float(i)] for i in range(len(input))], tokens=10)

    client.embeddings.create.side_effect = create
    return client.embeddings.create


def test_writes_one_record_per_documented_command(provider, store, client, embeddings):
    usage = UsageTracker()

    written = build_local_cache(provider, store, client, "text-embedding-3-small", usage=usage)

    assert written == 4
    assert store.latest_version("sample_toolkit") == "2.1.3"
    records = {r.item_id: r for r in store.read_latest("sample_toolkit")}
    assert set(records) == {"InstanceCheck", "connect_instance", "copy_database", "get_database"}
    # Text is normalized: stop words and parentheses are gone
    assert "(" not in records["get_database"].text
    assert " the " not in records["get_database"].text
    assert usage.summary().by_model["text-embedding-3-small"].prompt_tokens == 10


def test_existing_records_are_not_re_embedded(provider, store, client, embeddings):
    build_local_cache(provider, store, client, "text-embedding-3-small")

    written = build_local_cache(provider, store, client, "text-embedding-3-small")

    assert written == 0
    assert embeddings.call_count == 1


def test_force_re_embeds(provider, store, client, embeddings):
    build_local_cache(provider, store, client, "text-embedding-3-small")

    written = build_local_cache(provider, store, client, "text-embedding-3-small", force=True)

    assert written == 4
    assert embeddings.call_count == 2
