"""
Configuration Loader (``licita_config.loader``).

Responsibility
--------------
Load YAML configuration files and parse the ``processo:`` section into a
typed ``ProcessoConfig``.

Invariants enforced
-------------------
* Unknown keys in the ``processo`` section raise ``KeyError``; a typo never
  silently falls back to a default.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys  -> ``KeyError``.
* Unknown item status in ``pending_fulfillment_statuses``  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from licita_kernel.logging_config import get_logger
from licita_modules.processo.config import ProcessoConfig

logger = get_logger("config.loader")

SECTION = "processo"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_processo_config(data: dict[str, Any]) -> ProcessoConfig:
    """Build a ``ProcessoConfig`` from the ``processo`` section of a config dict."""
    section = data.get(SECTION) or {}
    known = {f.name for f in fields(ProcessoConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise KeyError(f"Unknown {SECTION} config keys: {unknown}")
    return ProcessoConfig.from_dict(section)


def load_processo_config(path: Path | str) -> ProcessoConfig:
    """Read ``path`` and return its processo configuration."""
    data = load_yaml_file(Path(path))
    config = parse_processo_config(data)
    logger.info("processo_config_loaded", extra={
        "path": str(path),
        "checksum": compute_checksum(data.get(SECTION) or {}),
    })
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums, whatever the
    key order.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
