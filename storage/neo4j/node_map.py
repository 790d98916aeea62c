"""
Node mapping facade wiring registry, codec, mapper and generator together.

Mapped types are dataclasses (or plain classes constructible without
arguments). ``Neo4jNode`` is re-exported here as the usual base class: it
carries the ``id`` field that receives the node identity.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Type, TypeVar

from core.config import Config
from core.enum_codec import EnumCodec
from core.metadata import TypeRegistry
from core.model import Neo4jNode
from core.schema import DescriptorLoader
from storage.neo4j.cypher import CypherGenerator, CypherQueryType, StatementMode
from storage.neo4j.mapper import NodeMapper, RawNodeRecord

__all__ = ["NodeMap", "Neo4jNode", "CypherQueryType", "StatementMode", "RawNodeRecord"]

T = TypeVar("T")

logger = logging.getLogger(__name__)


class NodeMap:
    def __init__(self, registry: Optional[TypeRegistry] = None,
                 mode: StatementMode = StatementMode.STRICT):
        self.registry = registry or TypeRegistry()
        self.codec = EnumCodec(self.registry)
        self.mapper = NodeMapper(self.registry, self.codec)
        self.generator = CypherGenerator(self.codec, mode)

    @classmethod
    def from_config(cls, config: Config, types: Optional[Mapping[str, type]] = None,
                    registry: Optional[TypeRegistry] = None) -> "NodeMap":
        registry = registry or TypeRegistry()
        descriptor = config.descriptor_path
        if descriptor is not None:
            DescriptorLoader(descriptor).apply(registry, types)
            logger.info(f"Loaded mapping descriptor: {descriptor}")
        return cls(registry, StatementMode(config.statement_mode))

    def register(self, cls: type, label: Optional[str] = None,
                 properties: Optional[Mapping[str, str]] = None) -> type:
        return self.registry.register(cls, label=label, properties=properties)

    def register_enum(self, enum_cls: type, displays: Optional[Mapping[str, str]] = None) -> type:
        return self.registry.register_enum(enum_cls, displays)

    def map(self, node: Any, cls: Type[T]) -> T:
        """Map a RawNodeRecord or a driver node onto ``cls``."""
        raw = node if isinstance(node, RawNodeRecord) else RawNodeRecord.from_node(node)
        return self.mapper.map(raw, cls)

    def map_many(self, nodes: Iterable[Any], cls: Type[T]) -> List[T]:
        raws = [n if isinstance(n, RawNodeRecord) else RawNodeRecord.from_node(n) for n in nodes]
        return self.mapper.map_many(raws, cls)

    def to_cypher(self, instance: Any, operation: CypherQueryType) -> str:
        meta = self.registry.resolve(type(instance))
        return self.generator.generate(instance, meta, operation)
