"""
Canonical data models shared by every source adapter.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict


class Argument(BaseModel):
    """Represents an input to a tool or prompt."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = False


class Tool(BaseModel):
    """Represents an invocable API operation."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    arguments: Tuple[Argument, ...] = ()
    method: str
    path: str


class Resource(BaseModel):
    """Represents a GET-retrievable entity exposed by URI."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    uri: str
    mime_type: str = "text/plain"


class Prompt(BaseModel):
    """Represents a GET operation re-exposed as a prompt template."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    arguments: Tuple[Argument, ...] = ()


class TemplateData(BaseModel):
    """The result of converting one API description.

    ``binary_name`` and ``server_directory`` are left empty by the converters
    and filled in by the project scaffolding with ``model_copy(update=...)``.
    ``warnings`` collects the non-fatal conditions met during conversion.
    Sequences are tuples so a produced model cannot be changed in place.
    """

    model_config = ConfigDict(frozen=True)

    missing_base_url: bool = False
    binary_name: str = ""
    endpoints: Tuple[str, ...] = ()
    resources: Tuple[Resource, ...] = ()
    prompts: Tuple[Prompt, ...] = ()
    tools: Tuple[Tool, ...] = ()
    server_name: str = ""
    server_version: str = ""
    server_description: str = ""
    server_directory: str = ""
    warnings: Tuple[str, ...] = ()
