"""
Mapping descriptor loader.

A descriptor is a YAML or JSON side-table of node declarations::

    types:
      - class: Person
        label: Person
        properties: {name: name, age: age}
    enums:
      - class: Status
        displays: {ACTIVE: Active}
"""
from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from core.errors import MetadataError
from core.metadata import TypeRegistry
from core.validation import DESCRIPTOR_SCHEMA, SchemaValidator


class DescriptorLoader:
    def __init__(self, path: Optional[str | Path] = None, data: Optional[Dict[str, Any]] = None):
        self.path = Path(path) if path is not None else None
        self.data = self._load() if data is None else data
        errors = SchemaValidator(DESCRIPTOR_SCHEMA).validate(self.data)
        if errors:
            raise MetadataError("Invalid mapping descriptor: " + "; ".join(errors))

    def _load(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            raise FileNotFoundError(f"Descriptor not found: {self.path}")
        text = self.path.read_text(encoding='utf-8')
        if self.path.suffix.lower() == '.json':
            return json.loads(text)
        return yaml.safe_load(text) or {}

    def apply(self, registry: TypeRegistry, types: Optional[Mapping[str, type]] = None) -> TypeRegistry:
        types = types or {}
        # Enums first so a failure there leaves no half-registered node types
        for entry in self.data.get('enums', []):
            registry.register_enum(_resolve_class(entry['class'], types), entry.get('displays'))
        for entry in self.data.get('types', []):
            registry.register(
                _resolve_class(entry['class'], types),
                label=entry.get('label'),
                properties=entry.get('properties'),
            )
        return registry


def _resolve_class(name: str, types: Mapping[str, type]) -> type:
    if name in types:
        return types[name]
    module_name, sep, attr = name.partition(':')
    if not sep:
        module_name, _, attr = name.rpartition('.')
    if not module_name:
        raise MetadataError(f"Unknown class in descriptor: {name}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise MetadataError(f"Cannot import class '{name}' from descriptor") from exc
