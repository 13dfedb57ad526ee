"""Storage configuration loaded from YAML.

Example `data/config/storage_config.yml`::

    backend: file
    data_dir: ./data
    workspace_id: my-project
    serializer: json
    log_level: INFO
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional
import logging
import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("data/config/storage_config.yml")

BACKENDS = ("memory", "file")


@dataclass
class StorageConfig:
    backend: str = "memory"
    data_dir: str = "./data"
    workspace_id: Optional[str] = None
    serializer: str = "json"
    log_level: str = "WARNING"


def load_yaml_file(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError("invalid config format: parse error") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("invalid config format: expected mapping")
    return data


def load_storage_config(path: Optional[Path] = None) -> StorageConfig:
    """Load `StorageConfig` from `path` (defaults when the file is missing)."""
    cfg_path = Path(path) if path is not None else CONFIG_PATH
    data = load_yaml_file(cfg_path)

    known = {f.name for f in fields(StorageConfig)}
    unknown = sorted(str(k) for k in set(data) - known)
    if unknown:
        raise ValueError(f"invalid config format: unknown keys {', '.join(unknown)}")

    cfg = StorageConfig(**data)
    if cfg.backend not in BACKENDS:
        raise ValueError(f"invalid config format: backend must be one of {', '.join(BACKENDS)}")
    if cfg.workspace_id is not None:
        cfg.workspace_id = str(cfg.workspace_id)
    logger.debug("Loaded storage config from %s: backend=%s", cfg_path, cfg.backend)
    return cfg
