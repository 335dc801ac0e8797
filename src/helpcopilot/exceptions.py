"""Base exceptions for helpcopilot."""


class HelpCopilotError(Exception):
    """Base exception for all helpcopilot errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error.

        Args:
            message: Error message
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(HelpCopilotError):
    """Raised when required configuration (API key, assistant, module) is missing."""

    pass


class AssistantNotFoundError(ConfigurationError):
    """Raised when no assistant with the requested name exists remotely."""

    def __init__(self, name: str):
        super().__init__(f"No assistant named '{name}' was found")
        self.name = name


class HelpNotFoundError(HelpCopilotError):
    """Raised when a command has no usable help content."""

    pass
