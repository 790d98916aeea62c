"""
Config loader for node mapping.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from core.errors import ConfigError
from core.validation import CONFIG_SCHEMA, SchemaValidator

STATEMENT_MODE_ENV = "NODEMAP_STATEMENT_MODE"


class Config:
    """Load YAML config with env overlay."""

    def __init__(self, path: Optional[str | Path] = None, data: Optional[Dict[str, Any]] = None):
        self.path = Path(path) if path is not None else None
        load_dotenv()
        self.data = self._load() if data is None else dict(data)
        errors = SchemaValidator(CONFIG_SCHEMA).validate(self.data)
        if errors:
            raise ConfigError("Invalid config: " + "; ".join(errors))

    def _load(self) -> Dict[str, Any]:
        if self.path is None:
            return {}
        if not self.path.exists():
            raise FileNotFoundError(f"Config not found: {self.path}")
        with self.path.open('r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def cypher(self) -> Dict[str, Any]:
        return self.data.get('cypher', {})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.data.get('logging', {})

    @property
    def statement_mode(self) -> str:
        mode = os.getenv(STATEMENT_MODE_ENV) or self.cypher.get('statement_mode', 'strict')
        mode = str(mode).strip().lower()
        if mode not in ('strict', 'legacy'):
            raise ConfigError(f"Unknown statement mode: {mode}")
        return mode

    @property
    def descriptor_path(self) -> Optional[Path]:
        value = self.data.get('mapping', {}).get('descriptor')
        if not value:
            return None
        path = Path(value)
        if not path.is_absolute() and self.path is not None:
            path = self.path.parent / path
        return path


def setup_logging(config: Config) -> None:
    cfg = config.logging
    level_name = str(cfg.get('level', 'INFO')).upper()
    fmt = cfg.get('console_format', '%(levelname)s: %(message)s')

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(fmt))
    root_logger.addHandler(console_handler)

    output_dir = cfg.get('output_dir')
    if output_dir:
        log_dir = Path(output_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_fmt = cfg.get('file_format', '%(asctime)s - %(levelname)s - %(name)s - %(message)s')
        file_handler = logging.FileHandler(log_dir / 'nodemap.log', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(file_fmt))
        root_logger.addHandler(file_handler)

    logging.getLogger('neo4j').setLevel(logging.WARNING)
