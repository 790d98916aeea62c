"""
Type metadata registry.

Declarations live in a side-table owned by a ``TypeRegistry`` instead of on
the domain classes: a label per type, an external property name per field
and optional display strings per enum member. ``resolve`` turns those
declarations into an immutable ``TypeMetadata`` that both mapping
directions share.
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import typing
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType, UnionType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.errors import MetadataError

logger = logging.getLogger(__name__)

IDENTITY_FIELD_NAME = "id"
EXTERNAL_ID_FIELD_NAME = "uuid"


@dataclass(frozen=True)
class PropertySpec:
    field_name: str
    external_name: str
    inherited: bool = False


@dataclass(frozen=True)
class TypeMetadata:
    type_name: str
    label: str
    properties: Tuple[PropertySpec, ...]
    identity_field: Optional[str] = None
    external_id_field: Optional[str] = None
    field_types: Mapping[str, Any] = field(default_factory=dict)

    @property
    def property_map(self) -> Mapping[str, str]:
        """External name -> field name, in field declaration order."""
        return MappingProxyType({p.external_name: p.field_name for p in self.properties})

    @property
    def declared_properties(self) -> Tuple[PropertySpec, ...]:
        return tuple(p for p in self.properties if not p.inherited)


@dataclass
class _TypeDeclaration:
    label: Optional[str]
    properties: Dict[str, str]


def _class_fields(klass: type) -> List[str]:
    """Public fields declared on ``klass`` itself: annotations, then plain class attributes."""
    names = [name for name in inspect.get_annotations(klass) if not name.startswith("_")]
    for name, value in vars(klass).items():
        if name.startswith("_") or name in names:
            continue
        if callable(value) or isinstance(value, (property, classmethod, staticmethod)):
            continue
        names.append(name)
    return names


def _type_fields(cls: type) -> List[str]:
    """Field names in declaration order, base classes first."""
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls)]
    names: List[str] = []
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name in _class_fields(klass):
            if name not in names:
                names.append(name)
    return names


def _field_types(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except Exception as exc:
        raise MetadataError(f"Cannot resolve field annotations of {cls.__qualname__}: {exc}",
                            cls.__qualname__) from exc


def unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) is typing.Union or isinstance(annotation, UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def is_enum_type(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, Enum)


def _find_named(names: List[str], wanted: str) -> Optional[str]:
    for name in names:
        if name.lower() == wanted:
            return name
    return None


class TypeRegistry:
    """Explicit registry of node declarations.

    Resolved metadata and enum tables are cached per type behind a lock;
    concurrent resolution of the same type builds identical results.
    """

    def __init__(self):
        self._types: Dict[type, _TypeDeclaration] = {}
        self._enums: Dict[type, Dict[str, str]] = {}
        self._resolved: Dict[type, TypeMetadata] = {}
        self._enum_generation = 0
        self._lock = threading.Lock()

    def register(self, cls: type, label: Optional[str] = None,
                 properties: Optional[Mapping[str, str]] = None) -> type:
        properties = dict(properties or {})
        known = _type_fields(cls)
        for field_name in properties:
            if field_name not in known:
                raise MetadataError(
                    f"{cls.__qualname__} has no field named '{field_name}'", cls.__qualname__)
        seen: Dict[str, str] = {}
        for field_name, external in properties.items():
            if external in seen:
                raise MetadataError(
                    f"{cls.__qualname__}: external property '{external}' is mapped by both "
                    f"'{seen[external]}' and '{field_name}'", cls.__qualname__)
            seen[external] = field_name

        with self._lock:
            self._types[cls] = _TypeDeclaration(label=label, properties=properties)
            self._resolved.clear()
        return cls

    def register_enum(self, enum_cls: type, displays: Optional[Mapping[str, str]] = None) -> type:
        if not (isinstance(enum_cls, type) and issubclass(enum_cls, Enum)):
            raise MetadataError(f"{enum_cls!r} is not an Enum type")
        displays = dict(displays or {})
        for name in displays:
            if name not in enum_cls.__members__:
                raise MetadataError(
                    f"{enum_cls.__qualname__} has no member named '{name}'", enum_cls.__qualname__)
        with self._lock:
            self._enums[enum_cls] = displays
            self._enum_generation += 1
        return enum_cls

    def is_registered(self, cls: type) -> bool:
        return cls in self._types

    @property
    def enum_generation(self) -> int:
        """Bumped on every enum registration so codecs can drop stale tables."""
        return self._enum_generation

    def enum_displays(self, enum_cls: type) -> Mapping[str, str]:
        return MappingProxyType(dict(self._enums.get(enum_cls, {})))

    def resolve(self, cls: type) -> TypeMetadata:
        cached = self._resolved.get(cls)
        if cached is not None:
            return cached
        meta = self._build(cls)
        with self._lock:
            return self._resolved.setdefault(cls, meta)

    def _build(self, cls: type) -> TypeMetadata:
        chain = [klass for klass in reversed(cls.__mro__) if klass in self._types]
        if cls not in self._types:
            raise MetadataError(f"{cls.__qualname__} is not registered", cls.__qualname__)

        mapped: Dict[str, str] = {}
        label: Optional[str] = None
        for klass in chain:
            decl = self._types[klass]
            mapped.update(decl.properties)
            if decl.label is not None:
                label = decl.label

        if label is None:
            # Kept for compatibility: an undeclared label renders as "(n:)".
            logger.warning(f"{cls.__qualname__} declares no label; statements will use an empty label")
            label = ""

        names = _type_fields(cls)
        own = set(_class_fields(cls))
        properties: List[PropertySpec] = []
        by_external: Dict[str, str] = {}
        for name in names:
            external = mapped.get(name)
            if external is None:
                continue
            if external in by_external:
                raise MetadataError(
                    f"{cls.__qualname__}: external property '{external}' is mapped by both "
                    f"'{by_external[external]}' and '{name}'", cls.__qualname__)
            by_external[external] = name
            properties.append(PropertySpec(name, external, inherited=name not in own))

        return TypeMetadata(
            type_name=cls.__qualname__,
            label=label,
            properties=tuple(properties),
            identity_field=_find_named(names, IDENTITY_FIELD_NAME),
            external_id_field=_find_named(names, EXTERNAL_ID_FIELD_NAME),
            field_types=MappingProxyType(_field_types(cls)),
        )


def resolve(registry: TypeRegistry, cls: type) -> TypeMetadata:
    return registry.resolve(cls)
