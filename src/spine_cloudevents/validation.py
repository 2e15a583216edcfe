"""
Key-format and value validation for CloudEvents attributes.

``is_valid_key`` is the single key rule every insertion path of the
attribute map shares: a key is one or more characters, each an ASCII
lower-case letter or an ASCII digit. Digits-only keys are accepted.

``validate_spec_version_value`` always guards the spec-version attribute.
``normalize_value`` implements the opt-in strict mode: core attributes are
type-checked against the configured spec version, extension attributes are
handed to their descriptor, anything else is rejected.

Examples:
    >>> is_valid_key("somekey"), is_valid_key("1somekey3324"), is_valid_key("123")
    (True, True, True)
    >>> is_valid_key("some key"), is_valid_key("Somekey"), is_valid_key("")
    (False, False, False)

Tags:
    validation, attribute-keys, rfc3339, cloudevents, spine-cloudevents

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

from spine_cloudevents.errors import (
    InvalidKeyError,
    InvalidValueError,
    UnknownAttributeError,
)
from spine_cloudevents.spec_version import (
    SpecVersion,
    data_attribute_name,
    data_content_encoding_attribute_name,
    data_content_type_attribute_name,
    data_schema_attribute_name,
    id_attribute_name,
    source_attribute_name,
    spec_version_attribute_name,
    subject_attribute_name,
    time_attribute_name,
    type_attribute_name,
)

_KEY_PATTERN = re.compile(r"[a-z0-9]+")
_MEDIA_TYPE_PATTERN = re.compile(r"[\w.+-]+/[\w.+-]+(\s*;.*)?", re.ASCII)


def is_valid_key(key: Any) -> bool:
    """True iff ``key`` is a non-empty str of lower-case ASCII letters and digits."""
    return isinstance(key, str) and _KEY_PATTERN.fullmatch(key) is not None


def validate_key(key: Any) -> str:
    """Return ``key`` unchanged or raise InvalidKeyError."""
    if not is_valid_key(key):
        raise InvalidKeyError(key)
    return key


# =============================================================================
# STRICT-MODE VALUE VALIDATION
# =============================================================================


def _require_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidValueError(key, value, f"expected str, got {type(value).__name__}")
    return value


def validate_spec_version_value(key: str, value: Any) -> str:
    """Return ``value`` if it is a string naming a known spec version.

    Applies to the spec-version attribute in every mode, strict or not.
    """
    _require_str(key, value)
    try:
        SpecVersion(value)
    except ValueError as e:
        raise InvalidValueError(key, value, "unknown spec version", cause=e) from e
    return value


def _uri_reference(key: str, value: Any) -> str:
    _require_str(key, value)
    if not value:
        raise InvalidValueError(key, value, "URI reference must not be empty")
    try:
        urlsplit(value)
    except ValueError as e:
        raise InvalidValueError(key, value, f"malformed URI reference: {e}", cause=e) from e
    return value


def _media_type(key: str, value: Any) -> str:
    _require_str(key, value)
    if _MEDIA_TYPE_PATTERN.fullmatch(value) is None:
        raise InvalidValueError(key, value, "expected a 'type/subtype' media type")
    return value


def _timestamp(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise InvalidValueError(key, value, "expected an RFC 3339 timestamp", cause=e) from e
    else:
        raise InvalidValueError(
            key, value, f"expected datetime or str, got {type(value).__name__}"
        )
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _any(key: str, value: Any) -> Any:
    return value


def core_value_rules(version: SpecVersion) -> dict[str, Any]:
    """Per-attribute validators for the core attributes of ``version``."""
    rules = {
        spec_version_attribute_name(version): validate_spec_version_value,
        type_attribute_name(version): _require_str,
        id_attribute_name(version): _require_str,
        source_attribute_name(version): _uri_reference,
        time_attribute_name(version): _timestamp,
        data_attribute_name(version): _any,
        data_content_type_attribute_name(version): _media_type,
        data_schema_attribute_name(version): _uri_reference,
    }
    if version is not SpecVersion.V0_2:
        rules[subject_attribute_name(version)] = _require_str
    if version is SpecVersion.V0_3:
        rules[data_content_encoding_attribute_name(version)] = _require_str
    return rules


def normalize_value(
    key: str,
    value: Any,
    spec_version: SpecVersion,
    extensions: Mapping[str, Any],
) -> Any:
    """
    Validate ``value`` for ``key`` and return the value to store.

    Raises:
        InvalidValueError: the value breaks the attribute's type rule.
        UnknownAttributeError: ``key`` is not a core attribute of
            ``spec_version`` and no extension descriptor claims it.
    """
    rule = core_value_rules(spec_version).get(key)
    if rule is not None:
        return rule(key, value)
    descriptor = extensions.get(key)
    if descriptor is not None:
        return descriptor.validate_and_normalize(value)
    raise UnknownAttributeError(key, spec_version.value)


__all__ = [
    "is_valid_key",
    "validate_key",
    "validate_spec_version_value",
    "core_value_rules",
    "normalize_value",
]
