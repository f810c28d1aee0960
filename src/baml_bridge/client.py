"""
baml-bridge — function client

File: src/baml_bridge/client.py
Last updated: 2026-10-17

Purpose
- Invoke engine functions with caller arguments and an optional dynamic schema.

What should be included in this file
- The execution engine protocol the bridge dispatches to.
- Call options (LLM client selection, collectors, materialization targets).
- Blocking call and callback-driven streaming entrypoints.
- Materialization of encoded class/enum payloads into caller Python types.

Functional requirements
- Bridge errors are raised before anything is dispatched to the engine.
- Streaming drops partial results that cannot be encoded or materialized; the final
  result does not.
- Engine failures surface as ``EngineError`` with the engine's diagnostic unchanged.

Non-functional requirements
- No hidden threads: streaming callbacks run on the engine's calling thread.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Literal, Protocol, runtime_checkable

import structlog

from baml_bridge.codec import CLASS_KEY, ENUM_KEY, ENUM_VALUE_KEY, MARKER_KEYS, ValueCodec
from baml_bridge.config.schema import BridgeSettings
from baml_bridge.errors import EngineError
from baml_bridge.registry import SchemaRegistry, SchemaSnapshot
from baml_bridge.tagged import TaggedValue
from baml_bridge.type_spec import build_registry
from baml_bridge.values import RuntimeValue

StreamEventKind = Literal["partial", "done", "error"]
STREAM_EVENT_KINDS: Final[frozenset[str]] = frozenset({"partial", "done", "error"})


@dataclass(frozen=True, slots=True)
class ClientRegistry:
    """Engine-side LLM client selection."""

    primary: str

    def __post_init__(self) -> None:
        if not isinstance(self.primary, str) or not self.primary.strip():
            raise ValueError("ClientRegistry.primary must be a non-empty string")


@dataclass(frozen=True, slots=True)
class DispatchOptions:
    """What the engine receives alongside the function name and arguments."""

    client_registry: ClientRegistry | None = None
    collectors: tuple[object, ...] = ()


@dataclass(frozen=True, slots=True)
class CallOptions:
    llm_client: str | None = None
    collectors: Sequence[object] = ()
    materialize: bool | None = None
    types: Mapping[str, type] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "collectors", tuple(self.collectors))
        object.__setattr__(self, "types", MappingProxyType(dict(self.types)))


@dataclass(frozen=True, slots=True)
class StreamEvent:
    kind: StreamEventKind
    value: Any

    def __post_init__(self) -> None:
        if self.kind not in STREAM_EVENT_KINDS:
            raise ValueError(f"StreamEvent.kind must be one of {sorted(STREAM_EVENT_KINDS)}")


StreamCallback = Callable[[StreamEvent], None]
PartialCallback = Callable[[RuntimeValue], None]


@runtime_checkable
class ExecutionEngine(Protocol):
    """Protocol implemented by the engine that evaluates functions."""

    def call_function(
        self,
        name: str,
        args: Mapping[str, RuntimeValue],
        *,
        schema: SchemaSnapshot,
        options: DispatchOptions,
    ) -> RuntimeValue:
        """Run ``name`` to completion and return its result."""

    def stream_function(
        self,
        name: str,
        args: Mapping[str, RuntimeValue],
        *,
        schema: SchemaSnapshot,
        options: DispatchOptions,
        on_partial: PartialCallback,
    ) -> RuntimeValue:
        """Run ``name``, reporting each partial result, and return the final one."""


class Client:
    """Dispatches functions to an execution engine through the value codec."""

    def __init__(
        self,
        engine: ExecutionEngine,
        *,
        settings: BridgeSettings | None = None,
        codec: ValueCodec | None = None,
        logger: Any | None = None,
    ) -> None:
        self._engine = engine
        self._settings = settings if settings is not None else BridgeSettings()
        self._codec = codec if codec is not None else ValueCodec(max_depth=self._settings.max_depth)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    def call(
        self,
        function: str,
        args: Mapping[object, TaggedValue],
        *,
        type_spec: object | None = None,
        options: CallOptions | None = None,
    ) -> Any:
        """Call ``function`` and return its encoded (optionally materialized) result."""

        opts = options if options is not None else CallOptions()
        arguments, schema, dispatch = self._prepare(function, args, type_spec, opts)
        try:
            result = self._engine.call_function(
                function, arguments, schema=schema, options=dispatch
            )
        except Exception as exc:
            raise self._engine_failure(function, exc) from exc
        return self._finish(self._codec.encode(result), opts)

    def stream(
        self,
        function: str,
        args: Mapping[object, TaggedValue],
        callback: StreamCallback,
        *,
        type_spec: object | None = None,
        options: CallOptions | None = None,
    ) -> Any:
        """Stream ``function``, reporting partial and final results to ``callback``.

        Returns the same value delivered with the ``done`` event.
        """

        opts = options if options is not None else CallOptions()
        arguments, schema, dispatch = self._prepare(function, args, type_spec, opts)
        sequence = 0
        callback_failures: list[Exception] = []

        def on_partial(partial: RuntimeValue) -> None:
            nonlocal sequence
            sequence += 1
            encoded = self._codec.try_encode(partial)
            if encoded is None:
                self._logger.debug(
                    "bridge_partial_dropped",
                    function=function,
                    sequence=sequence,
                    reason="encode",
                )
                return
            # Materializing runs caller constructors; any failure only drops this snapshot.
            try:
                value = self._finish(encoded, opts, partial=True)
            except Exception as exc:
                self._logger.debug(
                    "bridge_partial_dropped",
                    function=function,
                    sequence=sequence,
                    reason="materialize",
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                return
            event = StreamEvent("partial", value)
            try:
                callback(event)
            except Exception as exc:
                callback_failures.append(exc)
                raise

        try:
            result = self._engine.stream_function(
                function, arguments, schema=schema, options=dispatch, on_partial=on_partial
            )
        except Exception as exc:
            if exc in callback_failures:
                raise
            failure = self._engine_failure(function, exc)
            callback(StreamEvent("error", failure.diagnostic))
            raise failure from exc

        final = self._finish(self._codec.encode(result), opts)
        callback(StreamEvent("done", final))
        return final

    def _prepare(
        self,
        function: str,
        args: Mapping[object, TaggedValue],
        type_spec: object | None,
        opts: CallOptions,
    ) -> tuple[dict[str, RuntimeValue], SchemaSnapshot, DispatchOptions]:
        if not isinstance(function, str) or not function.strip():
            raise ValueError("function name must be a non-empty string")
        arguments = self._codec.decode_arguments(args)
        if type_spec is None:
            schema = SchemaRegistry().freeze()
        else:
            schema = build_registry(
                type_spec, max_depth=self._codec.max_depth, logger=self._logger
            ).freeze()

        llm_client = opts.llm_client if opts.llm_client is not None else (
            self._settings.default_llm_client
        )
        dispatch = DispatchOptions(
            client_registry=ClientRegistry(primary=llm_client) if llm_client else None,
            collectors=tuple(opts.collectors),
        )
        self._logger.debug(
            "bridge_call_dispatched",
            function=function,
            argument_count=len(arguments),
            class_count=len(schema.classes),
            enum_count=len(schema.enums),
            llm_client=llm_client,
            collector_count=len(dispatch.collectors),
        )
        return arguments, schema, dispatch

    def _finish(self, encoded: TaggedValue, opts: CallOptions, *, partial: bool = False) -> Any:
        enabled = opts.materialize if opts.materialize is not None else (
            self._settings.materialize_results
        )
        if not enabled:
            return encoded
        return materialize(encoded, opts.types, partial=partial)

    def _engine_failure(self, function: str, exc: Exception) -> EngineError:
        if isinstance(exc, EngineError):
            failure = exc
        else:
            failure = EngineError(str(exc), function=function)
        self._logger.warning(
            "bridge_call_failed",
            function=function,
            error_type=type(exc).__name__,
            diagnostic=failure.diagnostic,
        )
        return failure


def materialize(
    value: TaggedValue,
    types: Mapping[str, type],
    *,
    strip_markers: bool = False,
    partial: bool = False,
) -> Any:
    """Turn encoded class and enum payloads into the Python types mapped in ``types``.

    Class payloads become instances of the mapped type, built from keyword
    arguments. Enum payloads become members of the mapped ``enum.Enum``, looked
    up by name first and then by value. Payloads whose name is not mapped stay
    dictionaries; with ``strip_markers`` their class marker is removed and enum
    payloads collapse to the variant string. ``partial`` fills absent dataclass
    fields with ``None`` so streaming snapshots can be built.
    """

    if isinstance(value, list):
        return [
            materialize(item, types, strip_markers=strip_markers, partial=partial)
            for item in value
        ]
    if not isinstance(value, Mapping):
        return value

    if CLASS_KEY in value:
        type_name = value[CLASS_KEY]
        fields = {
            key: materialize(item, types, strip_markers=strip_markers, partial=partial)
            for key, item in value.items()
            if key not in MARKER_KEYS
        }
        target = types.get(type_name) if isinstance(type_name, str) else None
        if target is None:
            return fields if strip_markers else {CLASS_KEY: type_name, **fields}
        return _build_instance(target, fields, partial=partial)

    if ENUM_KEY in value:
        type_name = value[ENUM_KEY]
        variant = value.get(ENUM_VALUE_KEY)
        target = types.get(type_name) if isinstance(type_name, str) else None
        if target is None:
            return variant if strip_markers else dict(value)
        return _enum_member(target, type_name, variant)

    return {
        key: materialize(item, types, strip_markers=strip_markers, partial=partial)
        for key, item in value.items()
    }


def _build_instance(target: type, fields: Mapping[Any, Any], *, partial: bool) -> Any:
    if dataclasses.is_dataclass(target):
        known = [item for item in dataclasses.fields(target) if item.init]
        kwargs = {item.name: fields[item.name] for item in known if item.name in fields}
        if partial:
            for item in known:
                if item.name in kwargs:
                    continue
                if item.default is not dataclasses.MISSING:
                    continue
                if item.default_factory is dataclasses.MISSING:
                    kwargs[item.name] = None
        return target(**kwargs)
    return target(**{key: item for key, item in fields.items() if isinstance(key, str)})


def _enum_member(target: type, type_name: str, variant: object) -> Any:
    if not (isinstance(target, type) and issubclass(target, enum.Enum)):
        raise TypeError(f"materialization target for enum {type_name!r} must be an Enum")
    if isinstance(variant, str) and variant in target.__members__:
        return target[variant]
    try:
        return target(variant)
    except ValueError:
        raise ValueError(f"{variant!r} is not a member of {target.__name__}") from None


__all__ = [
    "STREAM_EVENT_KINDS",
    "CallOptions",
    "Client",
    "ClientRegistry",
    "DispatchOptions",
    "ExecutionEngine",
    "PartialCallback",
    "StreamCallback",
    "StreamEvent",
    "StreamEventKind",
    "materialize",
]
