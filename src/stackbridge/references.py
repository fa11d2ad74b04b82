"""
Output references between resources.

A property string may embed ``${resourceName.path.to.output}``; the first
dot-separated segment names a resource in the same request and the rest is a
path into that resource's outputs. Placeholders without a dot are not
references and are left alone.

Resolution is speculative: a reference whose resource or path is not known
yet stays as literal text, so trees can be resolved before and after a
deployment without errors.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

OUTPUT_REF_PATTERN = re.compile(r"\$\{([^}]+)\}")

_MISSING = object()


@dataclass(frozen=True)
class OutputReference:
    """A ``${resource_name.property_path}`` placeholder."""

    resource_name: str
    property_path: str

    @classmethod
    def parse(cls, reference: str) -> OutputReference | None:
        """Parse the text between ``${`` and ``}``; None if it is not a reference."""
        segments = reference.split(".")
        if len(segments) < 2 or not all(segments):
            return None
        return cls(resource_name=segments[0], property_path=".".join(segments[1:]))

    @property
    def placeholder(self) -> str:
        return "${" + f"{self.resource_name}.{self.property_path}" + "}"

    def lookup(self, outputs: Mapping[str, Any]) -> Any:
        """Walk the property path into ``outputs``; ``_MISSING`` on any miss."""
        current = outputs.get(self.resource_name, _MISSING)
        for key in self.property_path.split("."):
            if not isinstance(current, Mapping):
                return _MISSING
            current = current.get(key, _MISSING)
        return current


def find_references(tree: Any) -> list[OutputReference]:
    """Collect every output reference in ``tree`` in depth-first order.

    Duplicates are kept.
    """
    references: list[OutputReference] = []
    _collect(tree, references)
    return references


def _collect(node: Any, references: list[OutputReference]) -> None:
    if isinstance(node, str):
        for match in OUTPUT_REF_PATTERN.finditer(node):
            reference = OutputReference.parse(match.group(1))
            if reference is not None:
                references.append(reference)
    elif isinstance(node, Mapping):
        for value in node.values():
            _collect(value, references)
    elif isinstance(node, (list, tuple)):
        for item in node:
            _collect(item, references)


def resolve_references(tree: Any, outputs: Mapping[str, Any]) -> Any:
    """Return a copy of ``tree`` with resolvable references substituted.

    Each string leaf is rewritten in one pass over its original text. A
    reference that cannot be resolved keeps its ``${...}`` text. Strings
    render as themselves; any other value renders as compact JSON.
    """
    if isinstance(tree, str):
        return _resolve_string(tree, outputs)
    if isinstance(tree, Mapping):
        return {key: resolve_references(value, outputs) for key, value in tree.items()}
    if isinstance(tree, (list, tuple)):
        return [resolve_references(item, outputs) for item in tree]
    return tree


def _resolve_string(text: str, outputs: Mapping[str, Any]) -> str:
    def replace_match(match: re.Match[str]) -> str:
        reference = OutputReference.parse(match.group(1))
        if reference is None:
            return match.group(0)
        value = reference.lookup(outputs)
        if value is _MISSING:
            return match.group(0)
        return render_value(value)

    return OUTPUT_REF_PATTERN.sub(replace_match, text)


def render_value(value: Any) -> str:
    """Textual form of a resolved output."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def missing_references(tree: Any, known_resources: Iterable[str]) -> list[OutputReference]:
    """References in ``tree`` that point at resources not in ``known_resources``."""
    known = set(known_resources)
    return [ref for ref in find_references(tree) if ref.resource_name not in known]


__all__ = [
    "OUTPUT_REF_PATTERN",
    "OutputReference",
    "find_references",
    "missing_references",
    "render_value",
    "resolve_references",
]
