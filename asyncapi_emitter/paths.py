"""
Output path templating.

Output file names may embed ``{cmd}``, ``{project-root}``,
``{emitter-name}`` and ``{output-dir}``. Templates are checked before any
substitution: a single unsupported variable rejects the whole template.
Resolved paths are forward-slash normalized and always absolute.
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import PathTemplateError

SUPPORTED_TEMPLATE_VARIABLES = ("cmd", "project-root", "emitter-name", "output-dir")
PROJECT_ROOT_MARKERS = ("tspconfig.yaml", "tspconfig.json", "package.json", ".git")
EMITTER_NAME = "asyncapi"
DEFAULT_COMMAND = "typespec"

_TEMPLATE_VARIABLE = re.compile(r"\{([^{}]+)\}")
_SEPARATORS = re.compile(r"[/\\]+")
_EXECUTABLE_SUFFIX = re.compile(r"\.(js|exe|py)$")


@dataclass
class TemplateValidation:
    variables: List[str] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def get_template_variables(template: str) -> List[str]:
    return _TEMPLATE_VARIABLE.findall(template)


def has_template_variables(path: str) -> bool:
    return bool(_TEMPLATE_VARIABLE.search(path))


def validate_path_template(template: str) -> TemplateValidation:
    variables = get_template_variables(template)
    unsupported = [v for v in variables if v not in SUPPORTED_TEMPLATE_VARIABLES]
    errors: List[str] = []
    if unsupported:
        errors.append(
            f"Unsupported template variables: {', '.join(unsupported)}. "
            f"Supported variables: {', '.join(SUPPORTED_TEMPLATE_VARIABLES)}"
        )
    return TemplateValidation(variables=variables, unsupported=unsupported, errors=errors)


def detect_command_name(argv: Optional[Sequence[str]] = None) -> str:
    """Name of the invoking compiler command, ``typespec`` when unknown."""

    for arg in argv if argv is not None else sys.argv:
        basename = _SEPARATORS.split(arg)[-1]
        if basename.startswith("typespec") or basename.startswith("tsp"):
            return _EXECUTABLE_SUFFIX.sub("", basename)
    return DEFAULT_COMMAND


def detect_project_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from ``start`` to the first directory holding a project marker."""

    origin = Path(start or Path.cwd()).resolve()
    current = origin
    while True:
        if any((current / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return current
        if current.parent == current:
            return origin
        current = current.parent


@dataclass
class PathTemplateContext:
    cwd: Optional[Path] = None
    output_dir: Optional[Path] = None
    argv: Optional[Sequence[str]] = None


def create_template_variables(context: Optional[PathTemplateContext] = None) -> Dict[str, str]:
    context = context or PathTemplateContext()
    project_root = detect_project_root(context.cwd)
    output_dir = Path(context.output_dir) if context.output_dir else project_root / "generated"
    return {
        "cmd": detect_command_name(context.argv),
        "project-root": project_root.as_posix(),
        "emitter-name": EMITTER_NAME,
        "output-dir": output_dir.as_posix(),
    }


def resolve_path_template(template: str, variables: Dict[str, str]) -> str:
    """Substitute ``variables`` into ``template`` and return an absolute posix path."""

    resolved = _TEMPLATE_VARIABLE.sub(
        lambda m: variables.get(m.group(1), m.group(0)), template
    )
    resolved = _SEPARATORS.sub("/", resolved)
    path = Path(resolved)
    if not path.is_absolute():
        path = Path(variables["project-root"]) / path
    return Path(os.path.normpath(path)).as_posix()


def resolve_path_template_with_validation(
    template: str, context: Optional[PathTemplateContext] = None
) -> str:
    """Validate then resolve ``template``.

    Raises:
        PathTemplateError: The template uses unsupported variables.
    """

    validation = validate_path_template(template)
    if not validation.is_valid:
        raise PathTemplateError(
            f"Path template validation failed: {'; '.join(validation.errors)}",
            unsupported=validation.unsupported,
        )
    return resolve_path_template(template, create_template_variables(context))


def with_extension(name: str, file_type: str) -> str:
    suffix = f".{file_type}"
    return name if name.endswith(suffix) else f"{name}{suffix}"


__all__ = [
    "DEFAULT_COMMAND",
    "EMITTER_NAME",
    "PROJECT_ROOT_MARKERS",
    "PathTemplateContext",
    "SUPPORTED_TEMPLATE_VARIABLES",
    "TemplateValidation",
    "create_template_variables",
    "detect_command_name",
    "detect_project_root",
    "get_template_variables",
    "has_template_variables",
    "resolve_path_template",
    "resolve_path_template_with_validation",
    "validate_path_template",
    "with_extension",
]
