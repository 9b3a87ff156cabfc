"""
Emission entry point.

``emit`` runs one pass over a program: discover operations, convert their
types, build bindings, assemble the document, render it, resolve the output
path and write a single file. Problems found along the way are collected as
diagnostics; only a failed write raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .assembler import ASYNCAPI_VERSION, DocumentAssembler
from .ast import Program
from .config import EmitterOptions, ValidatorOptions
from .diagnostics import Diagnostic, DiagnosticCollector
from .errors import EmitError, PathTemplateError
from .extensions import EXTENSION_KIND_DOCUMENT, EXTENSION_KIND_VALIDATION, ExtensionRegistry
from .paths import (
    PathTemplateContext,
    detect_project_root,
    has_template_variables,
    resolve_path_template_with_validation,
    with_extension,
)
from .serializer import Provenance, render
from .state import AnnotationState, ServerConfig
from .validation import DocumentValidator, ValidationResult
from .walker import discover_operations

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "generated"


@dataclass
class EmitContext:
    """Execution context supplied by the host compiler."""

    output_dir: Optional[Path] = None
    cwd: Optional[Path] = None
    argv: Optional[Sequence[str]] = None

    def resolved_output_dir(self) -> Path:
        if self.output_dir is not None:
            return Path(self.output_dir)
        return detect_project_root(self.cwd) / DEFAULT_OUTPUT_DIR


@dataclass
class EmitResult:
    """What one emission pass produced."""

    document: Dict[str, Any]
    path: Path
    content: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    validation: Optional[ValidationResult] = None

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity.value == "error"]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity.value == "warning"]

    @property
    def success(self) -> bool:
        return not self.errors


def build_document(
    program: Program,
    state: AnnotationState,
    options: EmitterOptions,
    diagnostics: DiagnosticCollector,
) -> Dict[str, Any]:
    """Assemble the AsyncAPI document for ``program`` without rendering it."""

    if options.asyncapi_version != ASYNCAPI_VERSION:
        diagnostics.report("invalid-asyncapi-version", version=options.asyncapi_version)

    assembler = DocumentAssembler(state, diagnostics, title=options.title, strict=options.strict)
    if not options.omit_unreachable_types:
        assembler.register_namespace_models(program.root)
    assembler.add_servers_from_state()
    for server in options.default_servers:
        assembler.add_server(
            ServerConfig(
                name=server.name,
                url=server.url,
                protocol=server.protocol,
                description=server.description,
                bindings=server.bindings,
            )
        )
    for name, scheme in options.security_schemes.items():
        assembler.add_security_scheme(name, scheme)
    assembler.extensions.update(options.additional_properties)

    descriptors = discover_operations(program.root, state, diagnostics)
    return assembler.assemble(descriptors)


def resolve_output_path(options: EmitterOptions, context: EmitContext, diagnostics: DiagnosticCollector) -> Path:
    """Work out where the rendered document goes.

    Template failures fall back to ``<output-file>.<file-type>`` under the
    output directory and are reported as a warning.
    """

    output_dir = context.resolved_output_dir()
    name = with_extension(options.output_file, options.file_type)
    if not has_template_variables(name):
        path = Path(name)
        return path if path.is_absolute() else output_dir / path

    template_context = PathTemplateContext(cwd=context.cwd, output_dir=output_dir, argv=context.argv)
    try:
        return Path(resolve_path_template_with_validation(name, template_context))
    except PathTemplateError as exc:
        fallback = output_dir / f"{options.output_file}.{options.file_type}"
        logger.warning("Output path template failed, falling back to %s: %s", fallback, exc.message)
        diagnostics.report("path-template-fallback", reason=exc.message, fallback=fallback.as_posix())
        return fallback


def emit(
    program: Program,
    state: Optional[AnnotationState] = None,
    options: Union[EmitterOptions, Mapping[str, Any], None] = None,
    context: Optional[EmitContext] = None,
    *,
    extensions: Optional[ExtensionRegistry] = None,
) -> EmitResult:
    """
    Emit an AsyncAPI document for ``program`` and write it to disk.

    Args:
        program: Program produced by the host front end
        state: Annotation state recorded for the program's nodes
        options: Emitter options, as a model or a raw kebab-case mapping
        context: Output directory and invocation details
        extensions: Active ``document`` extensions run on the assembled
            document before rendering; ``validation`` extensions receive
            the validation result

    Returns:
        EmitResult with the document, the written path and all diagnostics

    Raises:
        ConfigurationError: ``options`` is an invalid mapping
        EmitError: The output file could not be written
    """
    if not isinstance(options, EmitterOptions):
        options = EmitterOptions.from_mapping(dict(options or {}))
    if state is None:
        state = AnnotationState.empty()
    context = context or EmitContext()
    diagnostics = DiagnosticCollector()

    document = build_document(program, state, options, diagnostics)
    if extensions is not None:
        extensions.execute_all(EXTENSION_KIND_DOCUMENT, document)

    provenance = None
    if options.include_source_info:
        provenance = Provenance(
            source_files=list(program.source_files),
            operations_found=len(document.get("operations", {})),
        )
    content = render(document, options.file_type, provenance)

    path = resolve_output_path(options, context, diagnostics)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise EmitError(f"Failed to write AsyncAPI document: {exc}", path=str(path)) from exc
    logger.info("Wrote AsyncAPI document to %s", path)

    validation = None
    if options.validate_spec:
        validation = DocumentValidator(ValidatorOptions(enable_cache=False)).validate(
            document, source=str(path)
        )
        for issue in validation.errors:
            diagnostics.report("validation-failed", path=issue.instance_path or "/", reason=issue.message)
        if extensions is not None:
            extensions.execute_all(EXTENSION_KIND_VALIDATION, validation)

    return EmitResult(
        document=document,
        path=path,
        content=content,
        diagnostics=list(diagnostics.diagnostics),
        validation=validation,
    )


__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "EmitContext",
    "EmitResult",
    "build_document",
    "emit",
    "resolve_output_path",
]
