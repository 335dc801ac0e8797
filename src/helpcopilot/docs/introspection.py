"""
Command catalog introspection for importable Python modules.

A module's commands are the public callables it exports. Help for each one
is assembled from its signature and its Google-style docstring.
"""

import importlib
import inspect
import re
from importlib import metadata
from types import ModuleType
from typing import Protocol

from helpcopilot.docs.schemas import HelpDocument, ParameterHelp
from helpcopilot.exceptions import ConfigurationError, HelpNotFoundError
from helpcopilot.utils.logger import logger

_SECTION_HEADER = re.compile(
    r"^(Args|Arguments|Parameters|Returns|Return|Raises|Yields|Example|Examples|Note|Notes|Attributes):\s*$"
)
_ARG_LINE = re.compile(r"^(\*{0,2}\w+)\s*(?:\(([^)]*)\))?\s*:\s*(.*)$")
_EXAMPLE_SECTIONS = ("Example", "Examples")
_ARG_SECTIONS = ("Args", "Arguments", "Parameters")


class HelpProvider(Protocol):
    """Anything that can enumerate a module's commands and describe them."""

    module_name: str

    def list_commands(self) -> list[str]: ...

    def get_help(self, name: str) -> HelpDocument: ...

    def module_version(self) -> str: ...


def _split_sections(doc: str) -> tuple[list[str], dict[str, list[str]]]:
    """Split a cleaned docstring into prose lines and named sections."""
    prose: list[str] = []
    sections: dict[str, list[str]] = {}
    current: list[str] = prose

    for line in doc.splitlines():
        match = _SECTION_HEADER.match(line.strip())
        if match and not line.startswith((" ", "\t")):
            current = sections.setdefault(match.group(1), [])
            continue
        current.append(line)
    return prose, sections


def _parse_args(lines: list[str]) -> dict[str, tuple[str | None, str]]:
    parsed: dict[str, tuple[str | None, str]] = {}
    last: str | None = None
    indent: int | None = None

    for line in lines:
        if not line.strip():
            continue
        stripped = line.lstrip()
        line_indent = len(line) - len(stripped)
        if indent is None:
            indent = line_indent

        match = _ARG_LINE.match(stripped)
        if match and line_indent <= indent:
            last = match.group(1).lstrip("*")
            parsed[last] = (match.group(2), match.group(3).strip())
        elif last is not None:
            arg_type, text = parsed[last]
            parsed[last] = (arg_type, f"{text} {stripped}".strip())
    return parsed


def _dedent(lines: list[str]) -> str:
    return inspect.cleandoc("\n".join(lines)).strip()


def parse_docstring(name: str, doc: str) -> HelpDocument:
    """Turn a docstring into a HelpDocument without parameter signatures."""
    prose, sections = _split_sections(doc)

    paragraphs = [p.strip() for p in "\n".join(prose).split("\n\n") if p.strip()]
    synopsis = " ".join(paragraphs[0].split()) if paragraphs else ""
    doctest_lines = [l for l in prose if l.strip().startswith((">>>", "..."))]
    description = "\n\n".join(
        p for p in paragraphs[1:] if not p.lstrip().startswith(">>>")
    )

    example = None
    for section in _EXAMPLE_SECTIONS:
        if sections.get(section):
            example = _dedent(sections[section])
            break
    if example is None and doctest_lines:
        example = _dedent(doctest_lines)

    parameters = []
    for section in _ARG_SECTIONS:
        for arg_name, (arg_type, text) in _parse_args(sections.get(section, [])).items():
            parameters.append(ParameterHelp(name=arg_name, type=arg_type, description=text))

    return HelpDocument(
        name=name,
        synopsis=synopsis,
        description=description,
        parameters=parameters,
        example=example or None,
    )


def _signature_parameters(obj) -> list[ParameterHelp]:
    try:
        signature = inspect.signature(obj)
    except (TypeError, ValueError):
        return []

    parameters = []
    for param in signature.parameters.values():
        if param.name in ("self", "cls"):
            continue
        prefix = {
            inspect.Parameter.VAR_POSITIONAL: "*",
            inspect.Parameter.VAR_KEYWORD: "**",
        }.get(param.kind, "")
        annotation = (
            None
            if param.annotation is inspect.Parameter.empty
            else inspect.formatannotation(param.annotation)
        )
        default = None if param.default is inspect.Parameter.empty else repr(param.default)
        parameters.append(
            ParameterHelp(
                name=f"{prefix}{param.name}",
                type=annotation,
                default=default,
                required=param.default is inspect.Parameter.empty and not prefix,
            )
        )
    return parameters


class ModuleHelpProvider:
    """Reads commands and their help from an importable Python module."""

    def __init__(self, module_name: str, module: ModuleType | None = None):
        self.module_name = module_name
        if module is None:
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigurationError(
                    f"Module '{module_name}' could not be imported: {e}", e
                ) from e
        self.module = module

    def list_commands(self) -> list[str]:
        exported = getattr(self.module, "__all__", None)
        if exported is not None:
            return sorted(
                name for name in exported if callable(getattr(self.module, name, None))
            )

        commands = []
        for name, obj in vars(self.module).items():
            if name.startswith("_"):
                continue
            if not (inspect.isfunction(obj) or inspect.isclass(obj)):
                continue
            if getattr(obj, "__module__", None) != self.module.__name__:
                continue
            commands.append(name)
        return sorted(commands)

    def get_help(self, name: str) -> HelpDocument:
        obj = getattr(self.module, name, None)
        if obj is None:
            raise HelpNotFoundError(f"'{name}' is not exported by {self.module_name}")

        doc = inspect.getdoc(obj)
        if not doc:
            raise HelpNotFoundError(f"'{self.module_name}.{name}' has no docstring")

        parsed = parse_docstring(name, doc)
        described = {p.name: p for p in parsed.parameters}
        parameters = []
        for param in _signature_parameters(obj):
            doc_param = described.get(param.name.lstrip("*"))
            if doc_param is not None:
                param.description = doc_param.description
                param.type = param.type or doc_param.type
            parameters.append(param)

        return parsed.model_copy(update={"parameters": parameters or parsed.parameters})

    def module_version(self) -> str:
        top_level = self.module_name.split(".")[0]
        for dist_name in metadata.packages_distributions().get(top_level, []):
            try:
                return metadata.version(dist_name)
            except metadata.PackageNotFoundError:
                continue
        version = getattr(self.module, "__version__", None)
        return str(version) if version else "0.0.0"


def render_help(doc: HelpDocument) -> str:
    """Plain-text rendering used for embeddings, uploads and exports."""
    lines = [f"Command: {doc.name}"]
    if doc.synopsis:
        lines.append(f"Synopsis: {doc.synopsis}")
    if doc.description:
        lines.append(f"Description: {doc.description}")
    if doc.parameters:
        lines.append("Parameters:")
        for param in doc.parameters:
            detail = f"  -{param.name}"
            if param.type:
                detail += f" <{param.type}>"
            if param.default is not None:
                detail += f" (default {param.default})"
            elif param.required:
                detail += " (required)"
            if param.description:
                detail += f": {param.description}"
            lines.append(detail)
    if doc.example:
        lines.append("Example:")
        lines.append(doc.example)
    return "\n".join(lines)


def collect_help(provider: HelpProvider) -> list[HelpDocument]:
    """Help for every command, skipping (with a warning) those without help."""
    documents = []
    for name in provider.list_commands():
        try:
            documents.append(provider.get_help(name))
        except HelpNotFoundError as e:
            logger.warning("Skipping command without help", command=name, error=e.message)
    return documents
