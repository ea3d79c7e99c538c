"""
licita_config -- YAML configuration for the licita engine.

``load_processo_config(path)`` is the entry point: it reads a YAML file's
``processo:`` section into a ``ProcessoConfig``.  Callers that have no
file use ``ProcessoConfig.with_defaults()``.
"""

from licita_config.loader import compute_checksum, load_processo_config, load_yaml_file

__all__ = ["compute_checksum", "load_processo_config", "load_yaml_file"]
