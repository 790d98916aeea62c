"""Error types raised by the node mapping layer."""
from __future__ import annotations

from typing import Any, Optional


class NodeMapError(Exception):
    """Base class for every mapping/generation failure."""


class ConfigError(NodeMapError):
    pass


class MetadataError(NodeMapError):
    """Ambiguous or missing type metadata."""

    def __init__(self, message: str, type_name: Optional[str] = None):
        super().__init__(message)
        self.type_name = type_name


class EnumDecodeError(NodeMapError):
    def __init__(self, enum_type: type, value: Any, field_name: Optional[str] = None):
        self.enum_type = enum_type
        self.value = value
        self.field_name = field_name
        where = f" (field '{field_name}')" if field_name else ""
        super().__init__(f"\"{value}\" is not a valid value for {enum_type.__qualname__}{where}")


class MappingError(NodeMapError):
    """A single field could not be converted while mapping a node."""

    def __init__(self, message: str, field_name: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field_name = field_name
        self.value = value


class IdentityNotFoundError(NodeMapError):
    def __init__(self, type_name: str):
        super().__init__(f"No node identity found for {type_name}. Set its uuid or id field.")
        self.type_name = type_name
