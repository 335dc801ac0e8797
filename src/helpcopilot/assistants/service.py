"""Service for managing the assistants that answer questions about a module."""

from openai import OpenAI

from helpcopilot.ai.openai.client import openai_errors
from helpcopilot.assistants.schemas import ASSISTANT_TAG, AssistantHandle
from helpcopilot.exceptions import AssistantNotFoundError, ConfigurationError
from helpcopilot.rag.vector_store_service import VectorStoreService
from helpcopilot.utils.logger import logger

DEFAULT_INSTRUCTIONS = (
    "You are an expert on the {module} module. Answer questions about its "
    "commands using the attached help documents. Show the exact command usage "
    "and an example when you can. If the documents do not cover a question, "
    "say that instead of guessing."
)


class AssistantService:
    """Create, list and remove tagged assistants."""

    def __init__(self, client: OpenAI, vector_store_service: VectorStoreService | None = None):
        self.client = client
        self.vector_store_service = vector_store_service

    def list_all(self) -> list[AssistantHandle]:
        """Every assistant on the account, following pagination."""
        assistants = []
        cursor: str | None = None

        while True:
            kwargs = {"limit": 100, "order": "desc"}
            if cursor:
                kwargs["after"] = cursor
            with openai_errors("Listing assistants"):
                response = self.client.beta.assistants.list(**kwargs)

            for assistant in response.data or []:
                assistants.append(AssistantHandle.from_openai(assistant))

            if not getattr(response, "has_more", False) or not response.data:
                break
            cursor = getattr(response, "last_id", None) or response.data[-1].id

        return assistants

    def list_assistants(self) -> list[AssistantHandle]:
        """Only the assistants carrying the helpcopilot tag."""
        return [a for a in self.list_all() if a.is_owned]

    def find_assistant(self, name: str) -> AssistantHandle | None:
        for assistant in self.list_assistants():
            if assistant.name == name:
                return assistant
        return None

    def get_assistant_by_name(self, name: str) -> AssistantHandle:
        """Resolve a tagged assistant by name.

        Raises:
            AssistantNotFoundError: If no assistant with that name exists
        """
        assistant = self.find_assistant(name)
        if assistant is None:
            raise AssistantNotFoundError(name)
        return assistant

    def create_assistant(
        self,
        name: str,
        model: str,
        module: str,
        vector_index_ids: list[str] | None = None,
        instructions: str | None = None,
    ) -> AssistantHandle:
        """Create a tagged assistant with file search over the given indexes.

        Args:
            name: Assistant name, unique among tagged assistants
            model: Model or Azure deployment
            module: Module the assistant answers questions about
            vector_index_ids: Vector stores to search
            instructions: Override for the default instructions

        Returns:
            AssistantHandle: The created assistant
        """
        if self.find_assistant(name) is not None:
            raise ConfigurationError(f"An assistant named '{name}' already exists")

        vector_index_ids = vector_index_ids or []
        kwargs = {
            "name": name,
            "model": model,
            "instructions": instructions or DEFAULT_INSTRUCTIONS.format(module=module),
            "tools": [{"type": "file_search"}],
            "metadata": {"tag": ASSISTANT_TAG, "module": module},
        }
        if vector_index_ids:
            kwargs["tool_resources"] = {"file_search": {"vector_store_ids": vector_index_ids}}

        with openai_errors("Creating assistant"):
            created = self.client.beta.assistants.create(**kwargs)
        assistant = AssistantHandle.from_openai(created)
        logger.info(
            "Created assistant",
            assistant_id=assistant.id,
            assistant_name=name,
            vector_index_ids=vector_index_ids,
        )
        return assistant

    def remove_assistant(self, name: str, remove_vector_indexes: bool = False) -> AssistantHandle:
        """Delete a tagged assistant, optionally with the vector stores it searches."""
        assistant = self.get_assistant_by_name(name)
        with openai_errors("Deleting assistant"):
            self.client.beta.assistants.delete(assistant.id)
        logger.info("Deleted assistant", assistant_id=assistant.id, assistant_name=name)

        if remove_vector_indexes:
            if self.vector_store_service is None:
                raise ConfigurationError("Removing vector indexes requires a vector store service")
            for index_id in assistant.vector_index_ids:
                self.vector_store_service.delete_index(index_id)
        return assistant
