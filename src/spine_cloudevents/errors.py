"""
Structured error types for the CloudEvents attribute map.

Every rejected mutation of an :class:`~spine_cloudevents.attributes.AttributeMap`
surfaces as one of the typed errors below. Each error carries a category, the
offending attribute name and the operation that was attempted, so callers
(serializers, event objects, protocol bindings) can branch on the type and
log the structured ``to_dict()`` payload without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** One error type per rejected transition
    - **Reject, never coerce:** Invalid input fails the call outright
    - **Rich Context:** Errors carry the attribute and operation for logging
    - **Stable Messages:** Message templates are module constants, so
      collaborators and tests can match on the prefix

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      CloudEventsError                            │
        │            (category, context, cause, to_dict())                 │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigurationError      AttributeValidationError                │
        │  (CONFIG)                (VALIDATION)                            │
        │                               │                                  │
        │                          InvalidKeyError                         │
        │                          NullValueError                          │
        │                          DuplicateKeyError                       │
        │                          UnknownAttributeError                   │
        │                          InvalidValueError                       │
        │                          ProtectedAttributeError                 │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidKeyError("Some Key")
    >>> str(error).startswith(KEY_NOT_WELL_FORMED.format(key="Some Key"))
    True
    >>> error.to_dict()["category"]
    'VALIDATION'

Guardrails:
    ❌ DON'T: Catch CloudEventsError and retry the same mutation
    ✅ DO: Fix the key or value; none of these errors are transient

Tags:
    error-handling, exception-hierarchy, cloudevents, attributes,
    validation, spine-cloudevents

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Message templates. Keep these stable: collaborators match on the prefix.
KEY_NOT_WELL_FORMED = (
    "The attribute key '{key}' is not well-formed: attribute names must "
    "consist of lower-case ASCII letters or digits"
)
SPEC_VERSION_CANNOT_BE_CLEARED = (
    "The spec-version attribute '{key}' cannot be cleared"
)
SPEC_VERSION_CANNOT_BE_REMOVED = (
    "The spec-version attribute '{key}' cannot be removed"
)
NULL_VALUE_NOT_ALLOWED = "A value must be supplied when adding attribute '{key}'"
DUPLICATE_KEY = "An attribute with the key '{key}' already exists"
UNKNOWN_ATTRIBUTE = (
    "The attribute '{key}' is neither a core attribute of spec version "
    "{spec_version} nor a registered extension"
)
INVALID_VALUE = "Invalid value for attribute '{key}': {reason}"


class ErrorCategory(str, Enum):
    """
    Error categories for classification and routing.

    Attributes:
        CONFIG: Invalid construction arguments or settings
        VALIDATION: A key or value rejected by the attribute rules
        INTERNAL: Bugs, unexpected state
    """

    CONFIG = "CONFIG"             # Bad construction arguments, settings
    VALIDATION = "VALIDATION"     # Rejected key or value
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        attribute: Attribute name the operation targeted
        operation: Map operation that was rejected (``set``, ``add``, ...)
        spec_version: Spec version the map was configured with
        metadata: Additional key-value pairs
    """

    attribute: str | None = None
    operation: str | None = None
    spec_version: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["attribute", "operation", "spec_version"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CloudEventsError(Exception):
    """
    Base exception for all attribute-map errors.

    Subclasses set ``default_category``. Every instance carries:

    - **category:** ErrorCategory for classification
    - **context:** ErrorContext with the attribute and operation
    - **cause:** Optional underlying exception for chaining

    Examples:
        >>> error = CloudEventsError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = CloudEventsError("Rejected").with_context(operation="set")
        >>> error.context.operation
        'set'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CloudEventsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InvalidKeyError(key).with_context(operation="add")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(CloudEventsError):
    """
    Invalid construction arguments.

    Raised when a map is created without a spec version, with an unknown
    spec version, or with a malformed extension descriptor set. No partial
    map is ever returned.
    """

    default_category = ErrorCategory.CONFIG


# =============================================================================
# ATTRIBUTE ERRORS
# =============================================================================


class AttributeValidationError(CloudEventsError):
    """Base class for rejected attribute mutations. The map is unchanged."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, key: Any, message: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.key = key
        if isinstance(key, str):
            self.context.attribute = key


class InvalidKeyError(AttributeValidationError):
    """The key is not a non-empty run of lower-case ASCII letters or digits."""

    def __init__(self, key: Any, **kwargs: Any):
        super().__init__(key, KEY_NOT_WELL_FORMED.format(key=key), **kwargs)


class NullValueError(AttributeValidationError):
    """``add`` was called with an absent value."""

    def __init__(self, key: str, **kwargs: Any):
        super().__init__(key, NULL_VALUE_NOT_ALLOWED.format(key=key), **kwargs)


class DuplicateKeyError(AttributeValidationError):
    """``add`` was called with a key that is already present."""

    def __init__(self, key: str, **kwargs: Any):
        super().__init__(key, DUPLICATE_KEY.format(key=key), **kwargs)


class UnknownAttributeError(AttributeValidationError):
    """Strict mode: the key is neither a core attribute nor a registered extension."""

    def __init__(self, key: str, spec_version: str, **kwargs: Any):
        super().__init__(
            key,
            UNKNOWN_ATTRIBUTE.format(key=key, spec_version=spec_version),
            **kwargs,
        )
        self.context.spec_version = spec_version


class InvalidValueError(AttributeValidationError):
    """Strict mode: the value does not satisfy the attribute's type rules."""

    def __init__(self, key: str, value: Any, reason: str, **kwargs: Any):
        super().__init__(key, INVALID_VALUE.format(key=key, reason=reason), **kwargs)
        self.value = value
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["value"] = repr(self.value)
        result["reason"] = self.reason
        return result


class ProtectedAttributeError(AttributeValidationError):
    """
    An attempt to clear or remove the spec-version attribute.

    ``operation`` distinguishes nulling out (``set``) from removal
    (``remove``, ``remove_entry``, ``pop`` ...); the message template
    follows it.
    """

    def __init__(self, key: str, operation: str = "remove", **kwargs: Any):
        template = (
            SPEC_VERSION_CANNOT_BE_CLEARED
            if operation == "set"
            else SPEC_VERSION_CANNOT_BE_REMOVED
        )
        super().__init__(key, template.format(key=key), **kwargs)
        self.context.operation = operation


__all__ = [
    # Message templates
    "KEY_NOT_WELL_FORMED",
    "SPEC_VERSION_CANNOT_BE_CLEARED",
    "SPEC_VERSION_CANNOT_BE_REMOVED",
    "NULL_VALUE_NOT_ALLOWED",
    "DUPLICATE_KEY",
    "UNKNOWN_ATTRIBUTE",
    "INVALID_VALUE",
    # Category enum
    "ErrorCategory",
    # Context
    "ErrorContext",
    # Base
    "CloudEventsError",
    # Config
    "ConfigurationError",
    # Attribute
    "AttributeValidationError",
    "InvalidKeyError",
    "NullValueError",
    "DuplicateKeyError",
    "UnknownAttributeError",
    "InvalidValueError",
    "ProtectedAttributeError",
]
