"""Builds the local embedding cache for a module's commands."""

from openai import OpenAI
from tqdm import tqdm

from helpcopilot.ai.openai.client import embed_texts
from helpcopilot.ai.usage import UsageTracker
from helpcopilot.docs.introspection import HelpProvider, collect_help, render_help
from helpcopilot.rag.embedding_store import EmbeddingStore
from helpcopilot.rag.normalizer import normalize
from helpcopilot.rag.vector_store_service import partition
from helpcopilot.utils.logger import logger

EMBED_CHUNK_SIZE = 100


def build_local_cache(
    provider: HelpProvider,
    store: EmbeddingStore,
    client: OpenAI,
    model: str,
    force: bool = False,
    usage: UsageTracker | None = None,
    show_progress: bool = False,
) -> int:
    """Embed every command's normalized help into the local cache.

    Records already on disk are neither re-embedded nor rewritten unless
    ``force`` is set.

    Args:
        provider: Source of the module's commands and help
        store: Local embedding cache
        client: OpenAI client used for embeddings
        model: Embedding model or deployment
        force: Overwrite existing records
        usage: Optional usage accumulator
        show_progress: Show a tqdm progress bar

    Returns:
        int: Number of records written
    """
    collection = provider.module_name
    version = provider.module_version()

    pending = []
    for doc in collect_help(provider):
        if not force and store.exists(collection, version, doc.name):
            continue
        text = normalize(render_help(doc))
        if not text:
            logger.warning("Help normalized to empty text, skipping", command=doc.name)
            continue
        pending.append((doc.name, text))

    logger.info(
        "Building local embedding cache",
        collection=collection,
        version=version,
        pending=len(pending),
    )

    written = 0
    chunks = list(partition(pending, EMBED_CHUNK_SIZE))
    for chunk in tqdm(chunks, desc=f"Embedding {collection}", disable=not show_progress):
        embeddings = embed_texts(client, [text for _, text in chunk], model, usage=usage)
        for (item_id, text), embedding in zip(chunk, embeddings):
            if store.write(collection, version, item_id, text, embedding, force=force):
                written += 1

    logger.info("Local embedding cache built", collection=collection, written=written)
    return written
