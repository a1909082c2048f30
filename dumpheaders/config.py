"""Configuration of a header generation run.

The configuration is a JSON document::

    {
        "structs": ["UnitAny", "Game"],
        "enums": ["UnitType"],
        "charonDirectory": "../charon",
        "ghidraFile": "export/types.h",
        "compressFile": true,
        "overrideTypes": {"Unit": {"base": "PlayerBase"}}
    }

Optional keys: ``namespace``, ``methodsFile``, ``extensionsFile`` and
``outputDirectory``. Relative paths are resolved against the directory of
the configuration file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dumpheaders.errors import ConfigError

__all__ = ["Config", "ConfigLoader", "config_from_dict", "load_config"]

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """Settings for one pipeline run.

    :param structs: Root struct names.
    :param enums: Root enum names.
    :param charon_directory: Project directory receiving the headers.
    :param ghidra_file: Path of the declaration dump.
    :param compress_file: Whether to compress placeholder members.
    :param override_types: ``{struct: {member: type}}`` type overrides.
    :param namespace: Namespace wrapping the generated declarations.
    :param methods_file: Hand-written method definitions. Defaults to
        ``<charon_directory>/framework/ghidra.extensions.cpp``.
    :param extensions_file: Hand-written subclasses. Defaults to
        ``<charon_directory>/framework/ghidra.extensions.h``.
    :param output_directory: Where headers are written. Defaults to
        ``<charon_directory>/headers``.
    """

    structs: list[str] = field(default_factory=list)
    enums: list[str] = field(default_factory=list)
    charon_directory: Path = field(default_factory=Path)
    ghidra_file: Path | None = None
    compress_file: bool = True
    override_types: dict[str, dict[str, str]] = field(default_factory=dict)
    namespace: str = "Ghidra"
    methods_file: Path | None = None
    extensions_file: Path | None = None
    output_directory: Path | None = None

    def __post_init__(self) -> None:
        framework = self.charon_directory / "framework"
        if self.methods_file is None:
            self.methods_file = framework / "ghidra.extensions.cpp"
        if self.extensions_file is None:
            self.extensions_file = framework / "ghidra.extensions.h"
        if self.output_directory is None:
            self.output_directory = self.charon_directory / "headers"

    @property
    def roots(self) -> list[str]:
        """Root names for dependency resolution: enums first, then structs."""
        return [*self.enums, *self.structs]


def _string_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key!r} must be a list of type names")
    return list(value)


def _overrides(data: dict[str, Any]) -> dict[str, dict[str, str]]:
    value = data.get("overrideTypes", {})
    if not isinstance(value, dict):
        raise ConfigError("'overrideTypes' must map struct names to {field: type} objects")
    result: dict[str, dict[str, str]] = {}
    for struct, table in value.items():
        if not isinstance(table, dict) or not all(isinstance(t, str) for t in table.values()):
            raise ConfigError(f"'overrideTypes' entry for {struct!r} must map field names to types")
        result[struct] = dict(table)
    return result


def _path(data: dict[str, Any], key: str, base: Path) -> Path | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key!r} must be a path string")
    return base / value


def config_from_dict(data: Any, base_dir: str | Path = ".") -> Config:
    """Build a Config from a decoded JSON document.

    :param data: Decoded JSON object.
    :param base_dir: Directory relative paths are resolved against.
    :raises ConfigError: If a key has the wrong type.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")
    base = Path(base_dir)
    compress = data.get("compressFile", True)
    if not isinstance(compress, bool):
        raise ConfigError("'compressFile' must be true or false")
    namespace = data.get("namespace", "Ghidra")
    if not isinstance(namespace, str) or not namespace:
        raise ConfigError("'namespace' must be a non-empty string")

    return Config(
        structs=_string_list(data, "structs"),
        enums=_string_list(data, "enums"),
        charon_directory=_path(data, "charonDirectory", base) or base,
        ghidra_file=_path(data, "ghidraFile", base),
        compress_file=compress,
        override_types=_overrides(data),
        namespace=namespace,
        methods_file=_path(data, "methodsFile", base),
        extensions_file=_path(data, "extensionsFile", base),
        output_directory=_path(data, "outputDirectory", base),
    )


def load_config(path: str | Path) -> Config:
    """Read and validate a configuration file.

    :raises ConfigError: If the file cannot be read, is not valid JSON, or
        has the wrong shape.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error in json: {e}") from e
    return config_from_dict(data, base_dir=path.parent)


class ConfigLoader:
    """Keeps the last valid configuration across reloads.

    Example
    -------
    ::

        loader = ConfigLoader("StructureConfig.json")
        if loader.reload():
            run_config(loader.config)
    """

    def __init__(self, path: str | Path, initial: Config | None = None) -> None:
        self.path = Path(path)
        self.config = initial

    def reload(self) -> bool:
        """Load the file again.

        On error the problem is logged and the previous configuration stays
        active.

        :returns: True if a new configuration was loaded.
        """
        try:
            config = load_config(self.path)
        except ConfigError as e:
            logger.error("%s; keeping previous configuration", e)
            return False
        self.config = config
        return True
