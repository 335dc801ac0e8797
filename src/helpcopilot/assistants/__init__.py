"""Assistant management."""

from helpcopilot.assistants.schemas import ASSISTANT_TAG, AssistantHandle
from helpcopilot.assistants.service import AssistantService

__all__ = ["ASSISTANT_TAG", "AssistantHandle", "AssistantService"]
