"""
baml-bridge — package root

File: src/baml_bridge/__init__.py
Last updated: 2026-10-17

Purpose
- Package root. Bridges caller-side tagged values and type declarations to an
  LLM function execution engine.

What should be included in this file
- Version export and the public API surface (codec, schema registry, type-spec
  parser, client, error taxonomy).

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from baml_bridge.client import (
    CallOptions,
    Client,
    ClientRegistry,
    DispatchOptions,
    ExecutionEngine,
    StreamEvent,
    materialize,
)
from baml_bridge.codec import CLASS_KEY, ENUM_KEY, ENUM_VALUE_KEY, ValueCodec, decode, encode
from baml_bridge.errors import (
    BridgeError,
    EngineError,
    InvalidShape,
    MissingField,
    RegistryFrozenError,
    UnresolvedDeclaration,
    UnsupportedValue,
)
from baml_bridge.registry import SchemaRegistry, SchemaSnapshot
from baml_bridge.schema_file import SchemaFileError, load_schema_file
from baml_bridge.tagged import Tag, TaggedValue
from baml_bridge.type_spec import TypeSpecParser, build_registry, parse_type

__version__ = "0.1.0"

__all__ = [
    "CLASS_KEY",
    "ENUM_KEY",
    "ENUM_VALUE_KEY",
    "BridgeError",
    "CallOptions",
    "Client",
    "ClientRegistry",
    "DispatchOptions",
    "EngineError",
    "ExecutionEngine",
    "InvalidShape",
    "MissingField",
    "RegistryFrozenError",
    "SchemaFileError",
    "SchemaRegistry",
    "SchemaSnapshot",
    "StreamEvent",
    "Tag",
    "TaggedValue",
    "TypeSpecParser",
    "UnresolvedDeclaration",
    "UnsupportedValue",
    "ValueCodec",
    "__version__",
    "build_registry",
    "decode",
    "encode",
    "load_schema_file",
    "materialize",
    "parse_type",
]
