"""Base class for mapped node types."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Neo4jNode:
    """Carries the database-assigned identity; subclasses add mapped fields with defaults."""

    id: Optional[Any] = None
