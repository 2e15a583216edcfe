"""
The CloudEvents attribute map.

``AttributeMap`` is the attribute set of one CloudEvents envelope: an ordered,
string-keyed mutable mapping that layers the CloudEvents attribute rules on
top of plain dict behaviour.

Manifesto:
    - **One protected entry:** The spec-version attribute is seeded at
      construction and can be reassigned but never removed or cleared
    - **One key rule:** Keys are lower-case ASCII letters or digits, checked
      by the same predicate on every insertion path
    - **Absent means delete:** Assigning ``None`` removes an attribute;
      ``add`` treats ``None`` as an error instead
    - **Reject, never coerce:** A rejected operation leaves the map untouched

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        AttributeMap                          │
        │        MutableMapping[str, Any]  ("direct map" view)         │
        │   m[k]  m[k] = v  m[k] = None  del m[k]  get  update  pop    │
        ├─────────────────────────────────────────────────────────────┤
        │                     AttributeEntries                         │
        │     m.entries  ("structured collection" view of pairs)       │
        │        add  try_add  remove  discard  extend  clear          │
        ├─────────────────────────────────────────────────────────────┤
        │  shared primitives                                           │
        │    _check_key     → validation.validate_key                  │
        │    is_protected   → spec-version key predicate               │
        │    _normalize     → validation.normalize_value (strict)      │
        │    _insert / _delete                                         │
        ├─────────────────────────────────────────────────────────────┤
        │  dict[str, Any]  insertion-ordered backing store             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> attrs = AttributeMap("1.0")
    >>> len(attrs), attrs["specversion"]
    (1, '1.0')
    >>> attrs["type"] = "com.example.created"
    >>> attrs.try_add("type", "other")
    False
    >>> attrs["type"] = None
    >>> attrs.get("type") is None
    True
    >>> attrs.entries.add(("subject", "orders/42"))
    >>> list(attrs.items())
    [('specversion', '1.0'), ('subject', 'orders/42')]

Guardrails:
    ❌ DON'T: Mutate the map while iterating it (raises RuntimeError)
    ✅ DO: Iterate over ``list(attrs.items())`` when mutating in the loop

    ❌ DON'T: Share one map between events or threads
    ✅ DO: Give each event its own map; serialize access externally

Tags:
    cloudevents, attributes, mapping, validation, protected-attribute,
    spine-cloudevents

Doc-Types:
    - API Reference
    - Attribute Model Guide
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator, Mapping, MutableMapping
from typing import Any

from spine_cloudevents.errors import (
    AttributeValidationError,
    CloudEventsError,
    ConfigurationError,
    DuplicateKeyError,
    InvalidKeyError,
    NullValueError,
    ProtectedAttributeError,
)
from spine_cloudevents.extensions import ExtensionDescriptor, build_extension_registry
from spine_cloudevents.logging import get_logger
from spine_cloudevents.settings import get_settings
from spine_cloudevents.spec_version import SpecVersion, spec_version_attribute_name
from spine_cloudevents.validation import (
    normalize_value,
    validate_key,
    validate_spec_version_value,
)

logger = get_logger(__name__)

Pair = tuple[str, Any]


class AttributeMap(MutableMapping[str, Any]):
    """
    Ordered attribute set of a CloudEvents envelope.

    Args:
        spec_version: Spec-version identifier (``"1.0"`` or a SpecVersion);
            seeds the spec-version entry.
        extensions: Extension descriptors, as an iterable or a
            name → descriptor mapping. Stored read-only.
        strict: Type-check core attribute values and reject keys that no
            extension claims. ``None`` takes ``strict_attributes`` from
            settings.

    Raises:
        ConfigurationError: ``spec_version`` is absent or unknown, or the
            extension descriptors are malformed.
    """

    def __init__(
        self,
        spec_version: SpecVersion | str,
        extensions: Iterable[ExtensionDescriptor] | Mapping[str, ExtensionDescriptor] | None = None,
        *,
        strict: bool | None = None,
    ):
        if spec_version is None:
            raise ConfigurationError(
                "A spec version identifier is required to create an attribute map"
            ).with_context(operation="create")
        version = SpecVersion.parse(spec_version)

        self._initial_version = version
        self._spec_version_key = spec_version_attribute_name(version)
        self._extensions = build_extension_registry(extensions, version)
        self._strict = get_settings().strict_attributes if strict is None else strict
        self._entries: dict[str, Any] = {self._spec_version_key: version.value}
        self._entries_view = AttributeEntries(self)

        logger.debug(
            "attribute_map_created",
            spec_version=version.value,
            extensions=sorted(self._extensions),
            strict=self._strict,
        )

    @classmethod
    def create(
        cls,
        spec_version: SpecVersion | str,
        extensions: Iterable[ExtensionDescriptor] | Mapping[str, ExtensionDescriptor] | None = None,
        *,
        strict: bool | None = None,
    ) -> AttributeMap:
        """Create a map holding only the spec-version entry."""
        return cls(spec_version, extensions, strict=strict)

    @classmethod
    def with_defaults(
        cls,
        extensions: Iterable[ExtensionDescriptor] | Mapping[str, ExtensionDescriptor] | None = None,
        *,
        strict: bool | None = None,
    ) -> AttributeMap:
        """Create a map for the configured ``default_spec_version``."""
        return cls(get_settings().default_spec_version, extensions, strict=strict)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def spec_version_key(self) -> str:
        return self._spec_version_key

    @property
    def spec_version(self) -> SpecVersion:
        """Current spec-version value as a :class:`SpecVersion`."""
        return SpecVersion(self._entries[self._spec_version_key])

    @property
    def extensions(self) -> Mapping[str, ExtensionDescriptor]:
        return self._extensions

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def entries(self) -> AttributeEntries:
        """Structured (key, value) collection view over this map."""
        return self._entries_view

    # -------------------------------------------------------------------------
    # Shared primitives
    # -------------------------------------------------------------------------

    def is_protected(self, key: Any) -> bool:
        """True for the spec-version key, which can never be removed or cleared."""
        return key == self._spec_version_key

    def _reject(self, error: CloudEventsError, operation: str) -> CloudEventsError:
        error.with_context(
            operation=operation,
            spec_version=str(self._entries[self._spec_version_key]),
        )
        logger.debug("attribute_mutation_rejected", **error.to_dict())
        return error

    def _check_key(self, key: Any, operation: str) -> str:
        try:
            return validate_key(key)
        except InvalidKeyError as e:
            self._reject(e, operation)
            raise

    def _normalize(
        self, key: str, value: Any, operation: str, version: SpecVersion | None = None
    ) -> Any:
        """Value to store for ``key``.

        The spec-version value is checked in every mode; other attributes
        only in strict mode, against ``version`` (default: the current one).
        """
        try:
            if self.is_protected(key):
                return validate_spec_version_value(key, value)
            if not self._strict:
                return value
            return normalize_value(key, value, version or self.spec_version, self._extensions)
        except AttributeValidationError as e:
            self._reject(e, operation)
            raise

    def _prepare_add(self, key: Any, value: Any, operation: str) -> Any:
        """Validate an add: key rule, then None, then duplicate, then value rules."""
        self._check_key(key, operation)
        if value is None:
            raise self._reject(NullValueError(key), operation)
        if key in self._entries:
            raise self._reject(DuplicateKeyError(key), operation)
        return self._normalize(key, value, operation)

    def _insert(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def _delete(self, key: Any, operation: str) -> bool:
        if self.is_protected(key):
            raise self._reject(ProtectedAttributeError(key, operation), operation)
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    # -------------------------------------------------------------------------
    # Direct map view
    # -------------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Current value for ``key``, or ``default`` (None) when absent.

        Never raises: an unhashable key is simply absent.
        """
        try:
            return self._entries.get(key, default)
        except TypeError:
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Insert, overwrite, or (with ``None``) remove an attribute.

        New keys are appended to the iteration order; overwritten keys keep
        their position.

        Raises:
            InvalidKeyError: malformed key, whatever the value.
            ProtectedAttributeError: ``None`` for the spec-version key.
            InvalidValueError: a spec-version value that is not a known
                version, or (strict mode) a value breaking its attribute rule.
        """
        self._check_key(key, "set")
        if value is None:
            if self.is_protected(key):
                raise self._reject(ProtectedAttributeError(key, "set"), "set")
            if self._delete(key, "set"):
                logger.debug("attribute_removed", attribute=key, operation="set")
            return
        self._insert(key, self._normalize(key, value, "set"))

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self._delete(key, "delete"):
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def popitem(self) -> Pair:
        """Remove and return the most recently inserted non-protected entry."""
        for key in reversed(self._entries):
            if not self.is_protected(key):
                return key, self._entries.pop(key)
        raise KeyError("popitem(): only the spec-version attribute remains")

    def update(self, other: Any = (), /, **kwds: Any) -> None:
        """
        Apply ``set`` for every pair, all or nothing.

        The whole batch is validated before the map changes, so one bad key
        leaves every earlier pair unapplied. A spec-version pair in the batch
        is checked first; strict value rules for the rest of the batch follow
        the version it names.
        """
        if isinstance(other, Mapping):
            pairs = list(other.items())
        elif hasattr(other, "keys"):
            pairs = [(key, other[key]) for key in other.keys()]
        else:
            pairs = list(other)
        pairs.extend(kwds.items())

        version = self.spec_version
        for key, value in pairs:
            if self.is_protected(key) and value is not None:
                version = SpecVersion(self._normalize(key, value, "update"))

        staged: list[Pair] = []
        for key, value in pairs:
            self._check_key(key, "update")
            if value is None:
                if self.is_protected(key):
                    raise self._reject(ProtectedAttributeError(key, "set"), "update")
                staged.append((key, None))
            else:
                staged.append((key, self._normalize(key, value, "update", version)))

        for key, value in staged:
            if value is None:
                self._entries.pop(key, None)
            else:
                self._insert(key, value)

    def clear(self) -> None:
        """Remove every attribute except the spec-version entry."""
        value = self._entries[self._spec_version_key]
        removed = len(self._entries) - 1
        self._entries.clear()
        self._entries[self._spec_version_key] = value
        logger.debug("attributes_cleared", removed=removed)

    # -------------------------------------------------------------------------
    # Structured operations
    # -------------------------------------------------------------------------

    def add(self, key: str, value: Any) -> None:
        """
        Append a new attribute.

        Raises:
            InvalidKeyError: malformed key.
            NullValueError: ``value`` is None, for any key.
            DuplicateKeyError: ``key`` is already present (always true for
                the spec-version key).
        """
        self._insert(key, self._prepare_add(key, value, "add"))

    def try_add(self, key: str, value: Any) -> bool:
        """Like :meth:`add`, but returns False instead of raising for a duplicate key."""
        try:
            value = self._prepare_add(key, value, "try_add")
        except DuplicateKeyError:
            return False
        self._insert(key, value)
        return True

    def remove(self, key: str) -> bool:
        """
        Remove ``key``; return whether an entry was removed.

        Raises:
            ProtectedAttributeError: ``key`` is the spec-version key.
        """
        return self._delete(key, "remove")

    def remove_entry(self, key: str, value: Any) -> bool:
        """
        Remove ``key`` only if it currently maps to a value equal to ``value``.

        Raises:
            ProtectedAttributeError: ``key`` is the spec-version key, whatever
                ``value`` is.
        """
        if self.is_protected(key):
            raise self._reject(ProtectedAttributeError(key, "remove_entry"), "remove_entry")
        if key in self._entries and self._entries[key] == value:
            return self._delete(key, "remove_entry")
        return False

    def _extend(self, pairs: Iterable[Pair]) -> None:
        staged: dict[str, Any] = {}
        for pair in pairs:
            key, value = _unpack(pair)
            value = self._prepare_add(key, value, "extend")
            if key in staged:
                raise self._reject(DuplicateKeyError(key), "extend")
            staged[key] = value
        for key, value in staged.items():
            self._insert(key, value)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def copy(self) -> AttributeMap:
        """Independent map with the same configuration and entries."""
        clone = type(self)(self._initial_version, self._extensions, strict=self._strict)
        clone._entries = dict(self._entries)
        return clone

    def to_dict(self) -> dict[str, Any]:
        return dict(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._entries!r})"


class AttributeEntries(Collection[Pair]):
    """
    Live ``(key, value)`` collection view of an :class:`AttributeMap`.

    This is the bulk-collection surface: ``None`` values are errors here,
    never deletions, and pair-based removal only removes a matching value.
    """

    __slots__ = ("_map",)

    def __init__(self, attributes: AttributeMap):
        self._map = attributes

    def __len__(self) -> int:
        return len(self._map)

    def __iter__(self) -> Iterator[Pair]:
        return iter(self._map.items())

    def __contains__(self, pair: object) -> bool:
        if not (isinstance(pair, tuple) and len(pair) == 2):
            return False
        key, value = pair
        return key in self._map and self._map[key] == value

    def add(self, pair: Pair) -> None:
        self._map.add(*_unpack(pair))

    def try_add(self, pair: Pair) -> bool:
        return self._map.try_add(*_unpack(pair))

    def remove(self, pair: Pair) -> bool:
        """Remove a matching pair; ProtectedAttributeError for the spec-version key."""
        return self._map.remove_entry(*_unpack(pair))

    def discard(self, pair: Pair) -> None:
        self._map.remove_entry(*_unpack(pair))

    def extend(self, pairs: Iterable[Pair]) -> None:
        """Add every pair, all or nothing."""
        self._map._extend(pairs)

    def clear(self) -> None:
        self._map.clear()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"


def _unpack(pair: Any) -> Pair:
    try:
        key, value = pair
    except (TypeError, ValueError) as e:
        raise TypeError(f"Expected a (key, value) pair, got {pair!r}") from e
    return key, value


__all__ = [
    "AttributeMap",
    "AttributeEntries",
]
