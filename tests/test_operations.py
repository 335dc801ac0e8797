"""Tests for the user-facing operations over a CopilotContext."""

from itertools import count
from types import SimpleNamespace

import pytest

from fakes import embedding_response, make_assistant, make_run, page
from helpcopilot import operations
from helpcopilot.ai.openai.config import ApiType, AuthType, ProviderConfig
from helpcopilot.context import CopilotContext
from helpcopilot.exceptions import ConfigurationError


def vector_store(vs_id="vs_1", status="completed", total=0):
    return SimpleNamespace(
        id=vs_id,
        name="sample_toolkit v2.1.3",
        status=status,
        file_counts=SimpleNamespace(total=total),
    )


@pytest.fixture
def ctx(settings, client, sleeps, threads):
    client.embeddings.create.side_effect = lambda model, input: embedding_response(
        [[1.0, float(i)] for i in range(len(input))]
    )
    ids = count(1)
    client.files.create.side_effect = lambda **kwargs: SimpleNamespace(id=f"file_{next(ids)}")
    client.vector_stores.file_batches.create.return_value = SimpleNamespace(id="vsfb_1")
    client.vector_stores.file_batches.poll.return_value = SimpleNamespace(
        id="vsfb_1", status="completed"
    )
    return CopilotContext(
        settings, ProviderConfig(api_key="sk-test-123456"), client=client, sleep=sleeps.append
    )


class TestProviderConfig:
    def test_configure_persists_and_swaps_provider(self, ctx):
        config = operations.configure_provider(ctx, api_key="sk-new-987654", organization="org_1")

        assert ctx.provider is config
        assert ctx.config_store.load().api_key == "sk-new-987654"
        assert config.organization == "org_1"

    def test_configure_without_persist(self, ctx):
        operations.configure_provider(ctx, api_key="sk-new-987654", persist=False)

        assert ctx.config_store.load() is None
        assert ctx.provider.api_key == "sk-new-987654"

    def test_azure_api_type_implies_azure_auth(self, ctx):
        config = operations.configure_provider(
            ctx, api_type=ApiType.AZURE, api_base="https://contoso.openai.azure.com"
        )

        assert config.auth_type == AuthType.AZURE
        assert config.api_key == "sk-test-123456"

    def test_get_is_masked(self, ctx):
        assert operations.get_provider_config(ctx).api_key == "sk-...3456"

    def test_reset(self, ctx):
        operations.configure_provider(ctx, api_key="sk-new-987654")

        assert operations.reset_provider_config(ctx) is True
        assert ctx.provider.api_key is None


class TestLocalCache:
    def test_build_and_list(self, ctx):
        assert operations.build_local_cache(ctx, "sample_toolkit") == 4

        collections = operations.list_local_cache(ctx)

        assert [(c.name, c.versions) for c in collections] == [("sample_toolkit", ["2.1.3"])]


class TestBuildRemoteIndex:
    def test_builds_local_cache_then_publishes(self, ctx, client):
        client.vector_stores.list.return_value = page([])
        client.vector_stores.create.return_value = vector_store()

        summary = operations.build_remote_index(ctx, "sample_toolkit")

        client.vector_stores.create.assert_called_once_with(name="sample_toolkit v2.1.3")
        assert summary.vector_index_id == "vs_1"
        assert summary.batches == [4]
        assert summary.uploaded == 4

    def test_populated_index_is_left_alone(self, ctx, client):
        client.vector_stores.list.return_value = page([vector_store(total=4)])

        summary = operations.build_remote_index(ctx, "sample_toolkit")

        assert summary.uploaded == 0
        client.files.create.assert_not_called()

    def test_force_republishes(self, ctx, client):
        client.vector_stores.list.return_value = page([vector_store(total=4)])

        summary = operations.build_remote_index(ctx, "sample_toolkit", force=True)

        assert summary.uploaded == 4


class TestAssistants:
    def test_create_assistant_publishes_and_attaches_index(self, ctx, client):
        client.vector_stores.list.return_value = page([])
        client.vector_stores.create.return_value = vector_store()
        client.beta.assistants.list.return_value = page([])
        client.beta.assistants.create.return_value = make_assistant()

        handle = operations.create_assistant(ctx, "toolkit-helper", "sample_toolkit")

        kwargs = client.beta.assistants.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["tool_resources"] == {"file_search": {"vector_store_ids": ["vs_1"]}}
        assert handle.name == "toolkit-helper"

    def test_create_uses_azure_deployment(self, ctx, client):
        ctx.use_provider(
            ProviderConfig(
                api_key="k",
                api_type=ApiType.AZURE,
                api_base="https://contoso.openai.azure.com",
                deployment="gpt4o-prod",
            )
        )
        ctx._client = client
        client.vector_stores.list.return_value = page([vector_store(total=4)])
        client.beta.assistants.list.return_value = page([])
        client.beta.assistants.create.return_value = make_assistant()

        operations.create_assistant(ctx, "toolkit-helper", "sample_toolkit")

        assert client.beta.assistants.create.call_args.kwargs["model"] == "gpt4o-prod"

    def test_default_assistant_is_saved(self, ctx, client):
        client.beta.assistants.list.return_value = page([make_assistant()])

        operations.set_default_assistant(ctx, "toolkit-helper")

        assert ctx.config_store.load().default_assistant == "toolkit-helper"

    def test_default_assistant_keeps_environment_key_out_of_file(self, ctx, client):
        client.beta.assistants.list.return_value = page([make_assistant()])

        operations.set_default_assistant(ctx, "toolkit-helper")

        saved = ctx.config_store.load()
        assert saved.api_key is None
        assert "sk-test-123456" not in ctx.config_store.path.read_text()
        assert ctx.provider.api_key == "sk-test-123456"
        assert ctx.provider.default_assistant == "toolkit-helper"

    def test_default_assistant_preserves_saved_credentials(self, ctx, client):
        client.beta.assistants.list.return_value = page([make_assistant()])
        ctx.config_store.save(ProviderConfig(api_key="sk-saved-000000", organization="org_1"))

        operations.set_default_assistant(ctx, "toolkit-helper")

        saved = ctx.config_store.load()
        assert saved.api_key == "sk-saved-000000"
        assert saved.organization == "org_1"
        assert saved.default_assistant == "toolkit-helper"

    def test_removing_default_clears_it(self, ctx, client):
        client.beta.assistants.list.return_value = page([make_assistant()])
        operations.set_default_assistant(ctx, "toolkit-helper")

        operations.remove_assistant(ctx, "toolkit-helper")

        assert ctx.provider.default_assistant is None
        assert ctx.config_store.load().default_assistant is None

    def test_list_assistants(self, ctx, client):
        client.beta.assistants.list.return_value = page([make_assistant()])

        assert [a.name for a in operations.list_assistants(ctx)] == ["toolkit-helper"]


class TestChat:
    def test_requires_assistant(self, ctx):
        with pytest.raises(ConfigurationError):
            operations.chat(ctx, "hello")

    def test_uses_default_assistant_and_reuses_session(self, ctx, client, threads):
        client.beta.assistants.list.return_value = page([make_assistant()])
        ctx.provider = ctx.provider.model_copy(update={"default_assistant": "toolkit-helper"})
        threads.script = [(make_run("run_1"), "first"), (make_run("run_2"), "second")]

        assert operations.chat(ctx, "one") == "first"
        assert operations.chat(ctx, "two") == "second"
        assert threads.threads_created == 1

    def test_hints_use_assistant_module_and_build_cache(self, ctx, client, threads):
        client.beta.assistants.list.return_value = page([make_assistant()])
        threads.script = [(make_run(), "ok")]

        result = operations.chat(
            ctx, "copy a db", assistant_name="toolkit-helper", want_hints=True, structured=True
        )

        assert len(result.suggestions) == 4
        assert threads.sent[0].startswith("Retrieved Suggestions: ")
        assert ctx.store.latest_version("sample_toolkit") == "2.1.3"

    def test_thread_searches_assistant_vector_index(self, ctx, client, threads):
        client.beta.assistants.list.return_value = page(
            [make_assistant(vector_store_ids=["vs_9", "vs_10"])]
        )
        threads.script = [(make_run("run_1"), "first"), (make_run("run_2"), "second")]

        operations.chat(ctx, "one", assistant_name="toolkit-helper")
        operations.chat(ctx, "two", assistant_name="toolkit-helper")

        client.beta.threads.create.assert_called_once_with(
            tool_resources={"file_search": {"vector_store_ids": ["vs_9"]}}
        )
        for call in client.beta.threads.runs.create_and_poll.call_args_list:
            assert call.kwargs["tools"] == [{"type": "file_search"}]
        assert client.beta.assistants.list.call_count == 1


class TestExports:
    def test_split_docs_into_files(self, ctx, tmp_path):
        paths = operations.split_docs_into_files(ctx, "sample_toolkit", tmp_path / "docs")

        assert len(paths) == 4

    def test_export_with_generated_questions(self, ctx, client, tmp_path):
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="What is this?"))],
            usage=SimpleNamespace(prompt_tokens=5, completion_tokens=3),
        )

        written = operations.export_training_data(
            ctx, "sample_toolkit", tmp_path / "train.jsonl", generate_questions=True
        )

        assert written == 8
        assert ctx.usage.summary().by_model["gpt-4o-mini"].completion_tokens == 12
