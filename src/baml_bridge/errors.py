"""
baml-bridge — error taxonomy

File: src/baml_bridge/errors.py
Last updated: 2026-10-17

Purpose
- Normalized caller-input (bridge) errors and opaque engine errors.

What should be included in this file
- Bridge errors raised before any engine work: unsupported values, unknown
  declaration discriminators, missing required keys, wrong shapes.
- Engine error wrapper that carries the engine diagnostic verbatim.

Functional requirements
- Every bridge error exposes machine-readable fields and a deterministic message
  that names the declaration and field it happened in, when known.
"""

from __future__ import annotations


def _render_location(declaration: str | None, field: str | None) -> str:
    parts: list[str] = []
    if declaration is not None:
        parts.append(f"declaration={declaration}")
    if field is not None:
        parts.append(f"field={field}")
    return " ".join(parts)


class BridgeError(ValueError):
    """Base caller-input error; always safe to surface verbatim."""

    code = "bridge"

    def __init__(
        self,
        detail: str,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> None:
        self.detail = detail
        self.declaration = declaration
        self.field = field
        super().__init__(self._render())

    def _render(self) -> str:
        location = _render_location(self.declaration, self.field)
        if location:
            return f"{self.code}: {self.detail} ({location})"
        return f"{self.code}: {self.detail}"

    def with_context(
        self,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> BridgeError:
        """Fill in missing location fields and refresh the message."""

        if self.declaration is None and declaration is not None:
            self.declaration = declaration
        if self.field is None and field is not None:
            self.field = field
        self.args = (self._render(),)
        return self


class UnsupportedValue(BridgeError):
    """A value has no arm in the codec grammar."""

    code = "unsupported_value"

    def __init__(
        self,
        shape: str,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> None:
        self.shape = shape
        super().__init__(f"unsupported value {shape}", declaration=declaration, field=field)


class UnresolvedDeclaration(BridgeError):
    """A declaration or type shape carries an unknown discriminator tag."""

    code = "unresolved_declaration"

    def __init__(
        self,
        tag: str,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> None:
        self.tag = tag
        super().__init__(f"unknown discriminator {tag!r}", declaration=declaration, field=field)


UnsupportedDeclaration = UnresolvedDeclaration


class MissingField(BridgeError):
    """A required key is absent from a declaration body."""

    code = "missing_field"

    def __init__(
        self,
        which: str,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> None:
        self.which = which
        super().__init__(f"missing required key {which!r}", declaration=declaration, field=field)


class InvalidShape(BridgeError):
    """A value is present but does not have the expected shape."""

    code = "invalid_shape"

    def __init__(
        self,
        expected: str,
        got: str,
        *,
        declaration: str | None = None,
        field: str | None = None,
    ) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"expected {expected}, got {got}", declaration=declaration, field=field)


class RegistryFrozenError(RuntimeError):
    """Raised when a frozen schema registry is mutated."""


class EngineError(RuntimeError):
    """Opaque failure reported by the execution engine."""

    def __init__(self, diagnostic: str, *, function: str | None = None) -> None:
        self.diagnostic = diagnostic
        self.function = function
        if function is None:
            super().__init__(diagnostic)
        else:
            super().__init__(f"{function}: {diagnostic}")


def bridge_error_types() -> tuple[type[BridgeError], ...]:
    """Return the concrete bridge error types in deterministic order."""

    return (InvalidShape, MissingField, UnresolvedDeclaration, UnsupportedValue)


__all__ = [
    "BridgeError",
    "EngineError",
    "InvalidShape",
    "MissingField",
    "RegistryFrozenError",
    "UnresolvedDeclaration",
    "UnsupportedDeclaration",
    "UnsupportedValue",
    "bridge_error_types",
]
