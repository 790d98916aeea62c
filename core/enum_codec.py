"""Enum <-> external text codec."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from core.errors import EnumDecodeError
from core.metadata import TypeRegistry


@dataclass(frozen=True)
class EnumEntry:
    member: Enum
    name: str
    display: str


@dataclass(frozen=True)
class EnumMapping:
    enum_type: type
    entries: Tuple[EnumEntry, ...]

    def display_of(self, member: Enum) -> Optional[str]:
        for entry in self.entries:
            if entry.member is member:
                return entry.display
        return None


class EnumCodec:
    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self._mappings: Dict[type, Tuple[int, EnumMapping]] = {}
        self._lock = threading.Lock()

    def mapping_for(self, enum_type: type) -> EnumMapping:
        generation = self.registry.enum_generation
        cached = self._mappings.get(enum_type)
        if cached is not None and cached[0] == generation:
            return cached[1]
        displays = self.registry.enum_displays(enum_type)
        # __members__ keeps aliases, so iterate names rather than the class
        entries = tuple(
            EnumEntry(member=member, name=name, display=displays.get(name, name))
            for name, member in enum_type.__members__.items()
        )
        mapping = EnumMapping(enum_type=enum_type, entries=entries)
        with self._lock:
            current = self._mappings.get(enum_type)
            if current is not None and current[0] == generation:
                return current[1]
            self._mappings[enum_type] = (generation, mapping)
        return mapping

    def decode(self, enum_type: type, external_value: Any, field_name: Optional[str] = None) -> Enum:
        """Return the first member, in declaration order, whose display or name equals the value."""
        if external_value is None:
            raise EnumDecodeError(enum_type, external_value, field_name)
        text = str(external_value)
        for entry in self.mapping_for(enum_type).entries:
            if entry.display == text or entry.name == text:
                return entry.member
        raise EnumDecodeError(enum_type, external_value, field_name)

    def encode(self, value: Optional[Enum], field_name: Optional[str] = None) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, Enum):
            raise EnumDecodeError(type(value), value, field_name)
        display = self.mapping_for(type(value)).display_of(value)
        if display is None:
            raise EnumDecodeError(type(value), value, field_name)
        return display
