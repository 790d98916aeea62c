"""Map Neo4j node records onto registered domain types."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional
from typing import TYPE_CHECKING

from core.enum_codec import EnumCodec
from core.errors import EnumDecodeError, MappingError
from core.metadata import TypeMetadata, TypeRegistry, is_enum_type, unwrap_optional

if TYPE_CHECKING:
    from neo4j import Record
    from neo4j.graph import Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawNodeRecord:
    """Opaque identity plus the node's property bag, as received from the store."""

    identity: Any
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def from_node(cls, node: Node) -> "RawNodeRecord":
        """Adapt a ``neo4j.graph.Node``.

        Duck-typed: any object with ``element_id`` (or the pre-5.0 ``id``)
        and ``items()`` is accepted, so the driver is only needed for hints.
        """
        identity = getattr(node, "element_id", None)
        if identity is None:
            identity = getattr(node, "id", None)
        return cls(identity=identity, properties=dict(node.items()))

    @classmethod
    def from_record(cls, record: Record, key: str = "n") -> "RawNodeRecord":
        return cls.from_node(record[key])


def _coerce(value: Any, annotation: Any) -> Any:
    """Convert a raw property value to the field's declared scalar type."""
    if hasattr(value, "to_native"):
        # neo4j.time values
        value = value.to_native()
    if value is None or annotation is Any or not isinstance(annotation, type):
        return value
    if isinstance(value, annotation) and not (annotation is int and isinstance(value, bool)):
        return value
    if annotation is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
            raise ValueError(f"not a boolean: {value!r}")
        return bool(value)
    if annotation is int:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"not an integer: {value!r}")
        return int(value)
    if annotation in (float, str):
        return annotation(value)
    return value


class NodeMapper:
    """Populate typed instances from raw node records."""

    def __init__(self, registry: TypeRegistry, codec: Optional[EnumCodec] = None):
        self.registry = registry
        self.codec = codec or EnumCodec(registry)

    def map(self, raw: RawNodeRecord, cls: type, meta: Optional[TypeMetadata] = None) -> Any:
        meta = meta or self.registry.resolve(cls)
        values: Dict[str, Any] = {}
        for external_name, field_name in meta.property_map.items():
            if external_name not in raw.properties:
                continue
            values[field_name] = self._convert(meta, field_name, raw.properties[external_name])

        if meta.identity_field:
            values[meta.identity_field] = raw.identity

        try:
            return self._build(cls, values)
        except (TypeError, AttributeError) as exc:
            raise MappingError(f"Cannot build {meta.type_name} from node {raw.identity!r}: {exc}") from exc

    @staticmethod
    def _build(cls: type, values: Dict[str, Any]) -> Any:
        if dataclasses.is_dataclass(cls):
            return cls(**values)
        # Plain classes: default-construct, then assign
        instance = cls()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance

    def map_many(self, raws: Iterable[RawNodeRecord], cls: type) -> List[Any]:
        meta = self.registry.resolve(cls)
        result = [self.map(raw, cls, meta) for raw in raws]
        logger.debug(f"Mapped {len(result)} {meta.type_name} node(s)")
        return result

    def _convert(self, meta: TypeMetadata, field_name: str, value: Any) -> Any:
        annotation = unwrap_optional(meta.field_types.get(field_name, Any))
        if is_enum_type(annotation):
            try:
                return self.codec.decode(annotation, value, field_name)
            except EnumDecodeError as exc:
                raise MappingError(
                    f"{meta.type_name}.{field_name}: {exc}", field_name=field_name, value=value) from exc
        try:
            return _coerce(value, annotation)
        except (TypeError, ValueError) as exc:
            raise MappingError(
                f"{meta.type_name}.{field_name}: cannot convert {value!r} to {annotation.__name__}",
                field_name=field_name, value=value) from exc
