"""Render assembled documents to JSON or YAML text."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

PROVENANCE_KEY = "x-generated-from-typespec"
GENERATOR_NAME = "@asyncapi/emitter"
SUPPORTED_FILE_TYPES = ("json", "yaml")


@dataclass
class Provenance:
    """Where a document came from; embedded in rendered output."""

    source_files: List[str] = field(default_factory=list)
    operations_found: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceFiles": list(self.source_files),
            "operationsFound": self.operations_found,
            "note": f"Generated by {GENERATOR_NAME} from TypeSpec sources",
        }

    def comment_block(self) -> str:
        sources = ", ".join(self.source_files) if self.source_files else "none"
        return (
            f"# Generated by {GENERATOR_NAME}\n"
            f"# Source files: {sources}\n"
            f"# Operations found: {self.operations_found}\n"
        )


class _BlockDumper(yaml.SafeDumper):
    """Safe dumper that never emits anchors/aliases."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def render_json(document: Dict[str, Any], provenance: Optional[Provenance] = None) -> str:
    data = copy.deepcopy(document)
    if provenance is not None:
        data[PROVENANCE_KEY] = provenance.to_dict()
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def render_yaml(document: Dict[str, Any], provenance: Optional[Provenance] = None) -> str:
    body = yaml.dump(
        document,
        Dumper=_BlockDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    if provenance is None:
        return body
    return f"{provenance.comment_block()}\n{body}"


def render(document: Dict[str, Any], file_type: str = "yaml", provenance: Optional[Provenance] = None) -> str:
    """Serialize ``document`` in ``file_type`` (``json`` or ``yaml``)."""

    if file_type == "json":
        return render_json(document, provenance)
    if file_type in ("yaml", "yml"):
        return render_yaml(document, provenance)
    raise ValueError(f"Unsupported file type '{file_type}'. Expected one of: {', '.join(SUPPORTED_FILE_TYPES)}")


def parse(text: str, file_type: str = "yaml") -> Dict[str, Any]:
    """Inverse of :func:`render`; provenance fields are kept."""

    if file_type == "json":
        return json.loads(text)
    return yaml.safe_load(text)


def strip_provenance(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in document.items() if not k.startswith("x-generated-from-")}


__all__ = [
    "PROVENANCE_KEY",
    "Provenance",
    "SUPPORTED_FILE_TYPES",
    "parse",
    "render",
    "render_json",
    "render_yaml",
    "strip_provenance",
]
