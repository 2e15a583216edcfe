"""
Extension attribute descriptors.

An extension descriptor names a producer-defined attribute and knows how to
validate and normalize its value. The attribute map holds the descriptors it
was created with as a read-only side table; it consults them only in strict
mode, where an unrecognised key is rejected.

Examples:
    >>> sampled = ExtensionAttribute("sampledrate", value_type=int)
    >>> registry = build_extension_registry([sampled])
    >>> registry["sampledrate"].validate_and_normalize(5)
    5

Tags:
    cloudevents, extensions, descriptors, protocol, spine-cloudevents

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from spine_cloudevents.errors import ConfigurationError, InvalidValueError
from spine_cloudevents.spec_version import SpecVersion, core_attribute_names
from spine_cloudevents.validation import is_valid_key


@runtime_checkable
class ExtensionDescriptor(Protocol):
    """Protocol for anything that describes an extension attribute."""

    @property
    def name(self) -> str:
        """Attribute name the extension owns."""
        ...

    def validate_and_normalize(self, value: Any) -> Any:
        """Return the value to store, or raise InvalidValueError."""
        ...


@dataclass(frozen=True, slots=True)
class ExtensionAttribute:
    """
    Generic extension descriptor.

    Attributes:
        name: Attribute name (lower-case ASCII letters or digits)
        value_type: Optional type (or tuple of types) the value must match
        normalizer: Optional callable applied after the type check
        description: Free-form documentation
    """

    name: str
    value_type: type | tuple[type, ...] | None = None
    normalizer: Callable[[Any], Any] | None = None
    description: str = ""

    def validate_and_normalize(self, value: Any) -> Any:
        if self.value_type is not None and not isinstance(value, self.value_type):
            raise InvalidValueError(
                self.name,
                value,
                f"expected {_type_label(self.value_type)}, got {type(value).__name__}",
            )
        if self.normalizer is not None:
            try:
                return self.normalizer(value)
            except (TypeError, ValueError) as e:
                raise InvalidValueError(self.name, value, str(e), cause=e) from e
        return value


def _type_label(value_type: type | tuple[type, ...]) -> str:
    if isinstance(value_type, tuple):
        return " or ".join(t.__name__ for t in value_type)
    return value_type.__name__


def build_extension_registry(
    descriptors: Iterable[ExtensionDescriptor] | Mapping[str, ExtensionDescriptor] | None,
    spec_version: SpecVersion | str | None = None,
) -> Mapping[str, ExtensionDescriptor]:
    """
    Build the immutable name → descriptor table a map is created with.

    Raises:
        ConfigurationError: a descriptor does not satisfy the protocol, its
            name is malformed, duplicated, or shadows a core attribute.
    """
    if descriptors is None:
        return MappingProxyType({})

    if isinstance(descriptors, Mapping):
        items = list(descriptors.items())
    else:
        items = [(getattr(d, "name", None), d) for d in descriptors]

    reserved = core_attribute_names(spec_version)
    registry: dict[str, ExtensionDescriptor] = {}
    for name, descriptor in items:
        if not isinstance(descriptor, ExtensionDescriptor):
            raise ConfigurationError(
                f"Extension descriptor {descriptor!r} must provide 'name' and "
                "'validate_and_normalize'"
            )
        if not is_valid_key(name):
            raise ConfigurationError(f"Malformed extension attribute name: {name!r}")
        if name in reserved:
            raise ConfigurationError(
                f"Extension attribute {name!r} collides with a core attribute"
            )
        if name in registry:
            raise ConfigurationError(f"Duplicate extension attribute: {name!r}")
        registry[name] = descriptor
    return MappingProxyType(registry)


__all__ = [
    "ExtensionDescriptor",
    "ExtensionAttribute",
    "build_extension_registry",
]
