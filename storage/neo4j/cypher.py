"""
Cypher statement generation from mapped instances.

Two statement modes are supported. ``LEGACY`` reproduces the historical
output byte for byte, including the unbalanced DELETE pattern and the
whitespace left behind by the WHERE join. ``STRICT`` (the default) emits
balanced statements, escapes string literals and matches substrings
literally.
"""
from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import date, datetime, time
from enum import Enum
from typing import Any, List, Optional, Tuple

from core.enum_codec import EnumCodec
from core.errors import IdentityNotFoundError
from core.metadata import TypeMetadata, is_enum_type, unwrap_optional

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_INT32_MIN, _INT32_MAX = -2 ** 31, 2 ** 31 - 1


class CypherQueryType(Enum):
    CREATE = "create"
    MATCH = "match"
    DELETE = "delete"


class StatementMode(Enum):
    STRICT = "strict"
    LEGACY = "legacy"


def _parses_as_int(text: str) -> bool:
    if not _INT_RE.match(text):
        return False
    return _INT32_MIN <= int(text) <= _INT32_MAX


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("'", "\\'")


_REGEX_META = set("\\.^$|?*+()[]{}")


def _regex_quote(text: str) -> str:
    return "".join("\\" + ch if ch in _REGEX_META else ch for ch in text)


def cypher_literal(value: Any) -> str:
    """Render a Python value as a Cypher literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return f"'{_escape(value)}'"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(cypher_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        # Node properties are flat; nested maps are stored as JSON text
        return cypher_literal(json.dumps(value, ensure_ascii=False, default=_json_default))
    return cypher_literal(_json_default(value))


def _text(value: Any) -> str:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _present(value: Any) -> bool:
    return value is not None and _text(value) != ""


class CypherGenerator:
    def __init__(self, codec: EnumCodec, mode: StatementMode = StatementMode.STRICT):
        self.codec = codec
        self.mode = mode

    @property
    def legacy(self) -> bool:
        return self.mode is StatementMode.LEGACY

    def generate(self, instance: Any, meta: TypeMetadata, operation: CypherQueryType) -> str:
        if operation is CypherQueryType.CREATE:
            cypher = self.create(instance, meta)
        elif operation is CypherQueryType.MATCH:
            cypher = self.match(instance, meta)
        elif operation is CypherQueryType.DELETE:
            cypher = self.delete(instance, meta)
        else:
            raise ValueError(f"Unsupported query type: {operation!r}")
        logger.debug(f"{operation.name} {meta.type_name}: {cypher}")
        return cypher

    def collect_values(self, instance: Any, meta: TypeMetadata) -> List[Tuple[str, Any]]:
        """(external name, value) for fields declared directly on the instance's type."""
        values: List[Tuple[str, Any]] = []
        for prop in meta.declared_properties:
            value = getattr(instance, prop.field_name, None)
            annotation = unwrap_optional(meta.field_types.get(prop.field_name))
            if isinstance(value, Enum) or is_enum_type(annotation):
                value = self.codec.encode(value, prop.field_name)
            values.append((prop.external_name, value))
        return values

    def create(self, instance: Any, meta: TypeMetadata) -> str:
        values = self.collect_values(instance, meta)
        if self.legacy:
            body = ", ".join(
                f"{key}: {json.dumps(value, ensure_ascii=False, default=_json_default)}"
                for key, value in values
            )
            return f"CREATE (n:{meta.label} {{{body}}}) RETURN n".replace('"', "'")
        body = ", ".join(f"{key}: {cypher_literal(value)}" for key, value in values)
        return f"CREATE (n:{meta.label} {{{body}}}) RETURN n"

    def match(self, instance: Any, meta: TypeMetadata) -> str:
        external_id = self._field_value(instance, meta.external_id_field)
        if _present(external_id):
            return f"MATCH (n:{meta.label} {{uuid: '{self._quoted(external_id)}'}}) RETURN n"

        predicates: List[str] = []
        for key, value in self.collect_values(instance, meta):
            if value is None:
                continue
            text = _text(value)
            if _parses_as_int(text):
                predicates.append(f"n.{key}={text}")
            else:
                predicates.append(f"n.{key}=~'(?i).*{self._pattern(text)}.*'")

        if self.legacy:
            where = ""
            for predicate in predicates:
                where += f" {' AND ' if where else ''} {predicate} "
        else:
            where = " AND ".join(predicates)
        # No predicates leaves "WHERE  RETURN n"; kept as-is in both modes
        return f"MATCH (n:{meta.label}) WHERE {where} RETURN n"

    def delete(self, instance: Any, meta: TypeMetadata) -> str:
        for key, field_name in (("uuid", meta.external_id_field), ("id", meta.identity_field)):
            value = self._field_value(instance, field_name)
            if not _present(value):
                continue
            if self.legacy:
                return f"MATCH (n:{meta.label} {{{key}:'{_text(value)}'}} DETACH DELETE n"
            return f"MATCH (n:{meta.label} {{{key}: '{_escape(_text(value))}'}}) DETACH DELETE n"
        raise IdentityNotFoundError(meta.type_name)

    def _quoted(self, value: Any) -> str:
        text = _text(value)
        return text if self.legacy else _escape(text)

    def _pattern(self, text: str) -> str:
        """Substring pattern body; STRICT quotes regex metacharacters."""
        return text if self.legacy else _escape(_regex_quote(text))

    @staticmethod
    def _field_value(instance: Any, field_name: Optional[str]) -> Any:
        if not field_name:
            return None
        return getattr(instance, field_name, None)
