"""helpcopilot: chat with an assistant that knows a module's command help."""

from helpcopilot.context import CopilotContext
from helpcopilot.exceptions import (
    AssistantNotFoundError,
    ConfigurationError,
    HelpCopilotError,
    HelpNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "AssistantNotFoundError",
    "ConfigurationError",
    "CopilotContext",
    "HelpCopilotError",
    "HelpNotFoundError",
]
