"""dumpheaders - turn reverse-engineered type dumps into C++ headers."""

from dumpheaders.augment import (
    Augmentations,
    collect_augmentations,
    scan_child_classes,
    scan_methods,
)
from dumpheaders.config import Config, ConfigLoader, load_config
from dumpheaders.errors import (
    ConfigError,
    DumpHeadersError,
    DuplicateTypeError,
    MalformedDeclarationError,
    ParseError,
)
from dumpheaders.ir import (
    ChildClass,
    # Declarations
    Declaration,
    Enum,
    EnumValue,
    # Members
    Field,
    # Augmentation records
    Method,
    Struct,
    TypeKind,
    Typedef,
)
from dumpheaders.parser import DumpParser, parse_dump
from dumpheaders.pipeline import (
    HeaderArtifacts,
    PipelineInputs,
    run,
    run_config,
    write_artifacts,
)
from dumpheaders.registry import TypeRegistry
from dumpheaders.resolver import Closure, resolve_closure
from dumpheaders.transform import apply_overrides, compress_fields, transform_closure
from dumpheaders.writers import (
    HEADER_WRITERS,
    WriterBackend,
    get_writer,
    list_writers,
    register_writer,
)

__all__ = [
    # Declarations
    "TypeKind",
    "Enum",
    "EnumValue",
    "Typedef",
    "Struct",
    "Field",
    "Declaration",
    # Augmentation
    "Method",
    "ChildClass",
    "Augmentations",
    "collect_augmentations",
    "scan_methods",
    "scan_child_classes",
    # Errors
    "DumpHeadersError",
    "ParseError",
    "DuplicateTypeError",
    "MalformedDeclarationError",
    "ConfigError",
    # Pipeline stages
    "TypeRegistry",
    "DumpParser",
    "parse_dump",
    "Closure",
    "resolve_closure",
    "apply_overrides",
    "compress_fields",
    "transform_closure",
    # Configuration
    "Config",
    "ConfigLoader",
    "load_config",
    # Runs
    "PipelineInputs",
    "HeaderArtifacts",
    "run",
    "run_config",
    "write_artifacts",
    # Writer Protocol
    "WriterBackend",
    # Writer API
    "HEADER_WRITERS",
    "get_writer",
    "list_writers",
    "register_writer",
]
