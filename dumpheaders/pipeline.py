"""One complete generation run: parse, resolve, transform, render.

:func:`run` is a pure function from inputs to rendered text; it raises on the
first fatal error and never touches the file system. :func:`write_artifacts`
writes the three headers only after a run succeeded, so a failed run leaves
the previous headers in place.

Example
-------
::

    from dumpheaders.config import load_config
    from dumpheaders.pipeline import run_config, write_artifacts

    config = load_config("StructureConfig.json")
    artifacts = run_config(config)
    write_artifacts(artifacts, config.output_directory)
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path

from dumpheaders.augment import (
    collect_augmentations,
    read_optional,
    scan_child_classes,
    scan_methods,
)
from dumpheaders.config import Config
from dumpheaders.errors import ConfigError
from dumpheaders.ir import TypeKind
from dumpheaders.parser import parse_dump
from dumpheaders.resolver import Closure, resolve_closure
from dumpheaders.transform import transform_closure
from dumpheaders.writers import get_writer
from dumpheaders.writers.cpp import ENUM_HEADER, MAIN_HEADER, NAKED_HEADER

__all__ = [
    "HeaderArtifacts",
    "PipelineInputs",
    "build_closure",
    "load_inputs",
    "run",
    "run_config",
    "write_artifacts",
]

logger = logging.getLogger(__name__)


@dataclass
class PipelineInputs:
    """Everything one run reads.

    :param dump: Declaration dump text.
    :param config: Run configuration.
    :param method_source: Hand-written method definitions, ``""`` if absent.
    :param extension_source: Hand-written subclass header, ``""`` if absent.
    """

    dump: str
    config: Config = field(default_factory=Config)
    method_source: str = ""
    extension_source: str = ""


@dataclass
class HeaderArtifacts:
    """The rendered headers of one successful run."""

    naked: str
    enums: str
    main: str

    def files(self) -> dict[str, str]:
        """File name -> content, in the order they are written."""
        return {
            NAKED_HEADER: self.naked,
            ENUM_HEADER: self.enums,
            MAIN_HEADER: self.main,
        }


def build_closure(inputs: PipelineInputs) -> Closure:
    """Parse, resolve, transform and augment; everything except rendering.

    :raises ParseError: If the dump is malformed or declares a name twice.
    """
    config = inputs.config
    registry = parse_dump(inputs.dump)
    logger.info(
        "Parsed %d types (%d structs, %d unions, %d enums, %d typedefs)",
        len(registry),
        len(registry.names(TypeKind.STRUCT)),
        len(registry.names(TypeKind.UNION)),
        len(registry.names(TypeKind.ENUM)),
        len(registry.names(TypeKind.TYPEDEF)),
    )

    logger.info("Creating dependency chain")
    closure = resolve_closure(registry, config.roots)
    for name in closure.missing():
        if name in closure.roots:
            logger.warning("Requested type %r is not declared in the dump", name)
        else:
            logger.debug("Dependency %r is not declared in the dump", name)

    transform_closure(closure, config.override_types, compress=config.compress_file)

    closure.augmentations = collect_augmentations(
        registry,
        scan_methods(inputs.method_source),
        scan_child_classes(inputs.extension_source),
    )
    return closure


def run(inputs: PipelineInputs) -> HeaderArtifacts:
    """Run the whole pipeline on in-memory inputs.

    :raises ParseError: If the dump cannot be parsed; nothing is rendered.
    """
    start = time.perf_counter()
    closure = build_closure(inputs)
    namespace = inputs.config.namespace
    artifacts = HeaderArtifacts(
        naked=get_writer("naked", namespace=namespace).write(closure),
        enums=get_writer("enums", namespace=namespace).write(closure),
        main=get_writer("main", namespace=namespace).write(closure),
    )
    logger.info("Rendered %d types in %.3fs", len(closure), time.perf_counter() - start)
    return artifacts


def load_inputs(config: Config) -> PipelineInputs:
    """Read the files named by a configuration.

    Missing augmentation sources are treated as empty.

    :raises ConfigError: If the configuration names no readable dump.
    """
    if config.ghidra_file is None:
        raise ConfigError("'ghidraFile' is not set")
    try:
        dump = Path(config.ghidra_file).read_text(encoding="latin-1")
    except OSError as e:
        raise ConfigError(f"Cannot read dump {config.ghidra_file}: {e}") from e
    return PipelineInputs(
        dump=dump,
        config=config,
        method_source=read_optional(config.methods_file),
        extension_source=read_optional(config.extensions_file),
    )


def run_config(config: Config) -> HeaderArtifacts:
    """Read the files named by a configuration and run the pipeline.

    :raises ConfigError: If the configuration names no readable dump.
    :raises ParseError: If the dump cannot be parsed.
    """
    return run(load_inputs(config))


def _file_mode(path: Path) -> int:
    """Mode for a written header: the existing file's, or 0666 less the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _replace_file(path: Path, content: str) -> None:
    mode = _file_mode(path)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="latin-1", newline="") as f:
            f.write(content)
        # mkstemp creates the file owner-only
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


def write_artifacts(artifacts: HeaderArtifacts, directory: str | Path) -> list[Path]:
    """Write the rendered headers, replacing each file atomically.

    :param artifacts: Output of a successful run.
    :param directory: Target directory, created if needed.
    :returns: Paths written.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for name, content in artifacts.files().items():
        path = directory / name
        _replace_file(path, content)
        written.append(path)
        logger.debug("Wrote %s", path)
    return written
