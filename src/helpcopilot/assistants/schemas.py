"""Pydantic schemas for assistants."""

from pydantic import BaseModel, Field

ASSISTANT_TAG = "PSHelp.Copilot"


class AssistantHandle(BaseModel):
    """A provider-side assistant created by helpcopilot."""

    id: str
    name: str
    model: str
    instructions: str | None = None
    vector_index_ids: list[str] = Field(default_factory=list)
    tag: str | None = None
    module: str | None = None

    @property
    def is_owned(self) -> bool:
        return self.tag == ASSISTANT_TAG

    @classmethod
    def from_openai(cls, assistant) -> "AssistantHandle":
        tool_resources = getattr(assistant, "tool_resources", None)
        file_search = getattr(tool_resources, "file_search", None) if tool_resources else None
        metadata = getattr(assistant, "metadata", None) or {}
        return cls(
            id=assistant.id,
            name=assistant.name or "",
            model=assistant.model,
            instructions=assistant.instructions,
            vector_index_ids=list(getattr(file_search, "vector_store_ids", None) or []),
            tag=metadata.get("tag"),
            module=metadata.get("module"),
        )
