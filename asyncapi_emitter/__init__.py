"""
AsyncAPI 3.0 emitter.

Walks a type-checked interface program (namespaces, operations and models
plus their recorded annotations) and produces an AsyncAPI 3.0 document with
channels, operations, component schemas, messages, servers, security
schemes and protocol bindings. An independent validator checks finished
documents structurally and referentially.

Example:
    from asyncapi_emitter import AnnotationState, EmitContext, Program, emit

    result = emit(program, state, {"file-type": "json"}, EmitContext(output_dir=out))
    if not result.success:
        for diagnostic in result.errors:
            print(diagnostic.message)
"""

from .ast import Model, ModelProperty, Namespace, Operation, Program
from .config import EmitterOptions, ValidatorOptions, load_emitter_options, locate_config_file
from .diagnostics import Diagnostic, DiagnosticCollector, DiagnosticSeverity
from .emitter import EmitContext, EmitResult, build_document, emit
from .errors import (
    AsyncAPIEmitterError,
    ConfigurationError,
    EmitError,
    ExtensionLifecycleError,
    PathTemplateError,
    SchemaRegistrationError,
)
from .state import AnnotationState, StateKey
from .validation import DocumentValidator, ValidationResult, validate_document

__version__ = "0.3.0"

__all__ = [
    "AnnotationState",
    "AsyncAPIEmitterError",
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticSeverity",
    "DocumentValidator",
    "EmitContext",
    "EmitError",
    "EmitResult",
    "EmitterOptions",
    "ExtensionLifecycleError",
    "Model",
    "ModelProperty",
    "Namespace",
    "Operation",
    "PathTemplateError",
    "Program",
    "SchemaRegistrationError",
    "StateKey",
    "ValidationResult",
    "ValidatorOptions",
    "__version__",
    "emit",
    "build_document",
    "load_emitter_options",
    "locate_config_file",
    "validate_document",
]
