"""Pydantic schemas for command help."""

from pydantic import BaseModel, Field


class ParameterHelp(BaseModel):
    """Documentation for one command parameter."""

    name: str
    type: str | None = None
    default: str | None = None
    required: bool = False
    description: str = ""


class HelpDocument(BaseModel):
    """Structured help for one command of a module."""

    name: str
    synopsis: str = ""
    description: str = ""
    parameters: list[ParameterHelp] = Field(default_factory=list)
    example: str | None = None
