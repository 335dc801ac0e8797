"""
User-facing operations.

Each function takes the CopilotContext explicitly; the CLI is a thin layer
over these.
"""

from pathlib import Path

from helpcopilot.ai.openai.config import ApiType, AuthType, ProviderConfig
from helpcopilot.assistants.schemas import AssistantHandle
from helpcopilot.chat.service import ChatTurnResult
from helpcopilot.context import CopilotContext
from helpcopilot.docs import export
from helpcopilot.docs.introspection import ModuleHelpProvider
from helpcopilot.exceptions import ConfigurationError
from helpcopilot.rag.schemas import CollectionInfo, PublishSummary
from helpcopilot.utils.logger import logger


def configure_provider(
    ctx: CopilotContext,
    api_key: str | None = None,
    api_base: str | None = None,
    deployment: str | None = None,
    api_type: ApiType | None = None,
    api_version: str | None = None,
    auth_type: AuthType | None = None,
    organization: str | None = None,
    persist: bool = True,
) -> ProviderConfig:
    """Update the current provider config, optionally saving it to disk."""
    updates = {
        "api_key": api_key,
        "api_base": api_base,
        "deployment": deployment,
        "api_type": api_type,
        "api_version": api_version,
        "auth_type": auth_type,
        "organization": organization,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    if api_type == ApiType.AZURE and auth_type is None and ctx.provider.auth_type == AuthType.OPENAI:
        updates["auth_type"] = AuthType.AZURE

    config = ctx.provider.model_copy(update=updates)
    ctx.use_provider(config)
    if persist:
        ctx.config_store.save(config)
    return config


def get_provider_config(ctx: CopilotContext) -> ProviderConfig:
    return ctx.provider.masked()


def reset_provider_config(ctx: CopilotContext) -> bool:
    """Delete the persisted config and forget the in-memory one."""
    removed = ctx.config_store.reset()
    ctx.use_provider(ProviderConfig())
    return removed


def build_local_cache(ctx: CopilotContext, module: str, force: bool = False) -> int:
    return ctx.rebuild_local_cache(module, force=force)


def list_local_cache(ctx: CopilotContext) -> list[CollectionInfo]:
    return ctx.store.list_collections()


def build_remote_index(
    ctx: CopilotContext, module: str, force: bool = False
) -> PublishSummary:
    """Publish the latest local records of a module to its remote vector index.

    The local cache is built first when it is empty. An index that already
    holds files is left alone unless ``force`` is set.
    """
    version = ctx.store.latest_version(module)
    if version is None:
        ctx.rebuild_local_cache(module)
        version = ctx.store.latest_version(module)
    if version is None:
        raise ConfigurationError(f"No help content could be cached for module '{module}'")

    index = ctx.vector_stores.ensure_index(module, version)
    if index.file_count and not force:
        logger.info(
            "Vector index already populated, not publishing",
            vector_index_id=index.id,
            file_count=index.file_count,
        )
        return PublishSummary(vector_index_id=index.id)

    return ctx.vector_stores.publish(
        index,
        ctx.store.read_version(module, version),
        batch_size=ctx.settings.publish_batch_size,
        max_total_files=ctx.settings.max_total_files,
    )


def create_assistant(
    ctx: CopilotContext,
    name: str,
    module: str,
    model: str | None = None,
    instructions: str | None = None,
) -> AssistantHandle:
    """Publish the module's help and create an assistant that searches it."""
    summary = build_remote_index(ctx, module)
    return ctx.assistants.create_assistant(
        name=name,
        model=model or ctx.chat_model(),
        module=module,
        vector_index_ids=[summary.vector_index_id],
        instructions=instructions,
    )


def remove_assistant(
    ctx: CopilotContext, name: str, remove_vector_indexes: bool = False
) -> AssistantHandle:
    assistant = ctx.assistants.remove_assistant(name, remove_vector_indexes=remove_vector_indexes)
    if ctx.provider.default_assistant == name:
        set_default_assistant(ctx, None)
    return assistant


def list_assistants(ctx: CopilotContext) -> list[AssistantHandle]:
    return ctx.assistants.list_assistants()


def set_default_assistant(ctx: CopilotContext, name: str | None) -> ProviderConfig:
    """Remember the assistant used by chat when none is named.

    Only the persisted file is updated, so credentials that came from the
    environment are never written to disk.
    """
    if name is not None:
        ctx.assistants.get_assistant_by_name(name)
    persisted = ctx.config_store.load() or ProviderConfig()
    ctx.config_store.save(persisted.model_copy(update={"default_assistant": name}))
    ctx.provider = ctx.provider.model_copy(update={"default_assistant": name})
    return ctx.provider


def chat(
    ctx: CopilotContext,
    message: str,
    assistant_name: str | None = None,
    module: str | None = None,
    want_hints: bool = False,
    suppress_retrieval_reminder: bool = False,
    structured: bool = False,
) -> str | ChatTurnResult:
    """Send one message to an assistant, reusing the cached session."""
    name = assistant_name or ctx.provider.default_assistant
    if not name:
        raise ConfigurationError(
            "No assistant given and no default set. Use --assistant or set-default-assistant."
        )

    assistant = None
    vector_index_id = None
    if (ctx.fingerprint, name) not in ctx.sessions:
        assistant = ctx.assistants.get_assistant_by_name(name)
        vector_index_id = next(iter(assistant.vector_index_ids), None)
        module = module or assistant.module

    session = ctx.sessions.get_or_create_session(
        ctx.fingerprint,
        name,
        want_hints=want_hints,
        collection=module,
        vector_index_id=vector_index_id,
    )
    if session.assistant is None and assistant is not None:
        session.assistant = assistant
    return ctx.chat_service.send_turn(
        session,
        message,
        want_hints=want_hints,
        suppress_retrieval_reminder=suppress_retrieval_reminder,
        structured=structured,
    )


def split_docs_into_files(ctx: CopilotContext, module: str, output_dir: Path) -> list[Path]:
    return export.split_docs_into_files(ModuleHelpProvider(module), output_dir)


def export_training_data(
    ctx: CopilotContext,
    module: str,
    output_path: Path,
    system_prompt: str | None = None,
    generate_questions: bool = False,
) -> int:
    generator = None
    if generate_questions:
        generator = export.QuestionGenerator(
            ctx.client, ctx.chat_model(), usage=ctx.usage, sleep=ctx.sleep
        )
    return export.export_training_data(
        ModuleHelpProvider(module),
        output_path,
        system_prompt=system_prompt,
        question_generator=generator,
    )
