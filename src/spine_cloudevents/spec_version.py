"""
CloudEvents spec versions and well-known attribute names.

Consumers address the mandatory attributes through these accessors instead
of hardcoding literals, so a single place knows that the schema URL was
``schemaurl`` before 1.0 and ``dataschema`` afterwards.

Examples:
    >>> spec_version_attribute_name()
    'specversion'
    >>> type_attribute_name()
    'type'
    >>> data_schema_attribute_name(SpecVersion.V0_3)
    'schemaurl'
    >>> SpecVersion.parse("1.0") is SpecVersion.V1_0
    True

Tags:
    cloudevents, spec-version, attribute-names, spine-cloudevents

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from enum import Enum

from spine_cloudevents.errors import ConfigurationError


class SpecVersion(str, Enum):
    """Supported CloudEvents spec versions, valued by their identifier."""

    V0_2 = "0.2"
    V0_3 = "0.3"
    V1_0 = "1.0"

    @classmethod
    def default(cls) -> SpecVersion:
        return cls.V1_0

    @classmethod
    def parse(cls, value: SpecVersion | str) -> SpecVersion:
        """
        Resolve a version identifier to a member.

        Raises:
            ConfigurationError: ``value`` is absent or not a known version.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            raise ConfigurationError("A spec version identifier is required")
        try:
            return cls(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown CloudEvents spec version: {value!r}", cause=e
            ) from e


def _resolve(version: SpecVersion | str | None) -> SpecVersion:
    if version is None:
        return SpecVersion.default()
    return SpecVersion.parse(version)


def spec_version_attribute_name(version: SpecVersion | str | None = None) -> str:
    """Name of the mandatory spec-version attribute."""
    _resolve(version)
    return "specversion"


def type_attribute_name(version: SpecVersion | str | None = None) -> str:
    """Name of the mandatory event-type attribute."""
    _resolve(version)
    return "type"


def id_attribute_name(version: SpecVersion | str | None = None) -> str:
    _resolve(version)
    return "id"


def source_attribute_name(version: SpecVersion | str | None = None) -> str:
    _resolve(version)
    return "source"


def subject_attribute_name(version: SpecVersion | str | None = None) -> str:
    _resolve(version)
    return "subject"


def time_attribute_name(version: SpecVersion | str | None = None) -> str:
    _resolve(version)
    return "time"


def data_attribute_name(version: SpecVersion | str | None = None) -> str:
    _resolve(version)
    return "data"


def data_content_type_attribute_name(version: SpecVersion | str | None = None) -> str:
    if _resolve(version) is SpecVersion.V0_2:
        return "contenttype"
    return "datacontenttype"


def data_schema_attribute_name(version: SpecVersion | str | None = None) -> str:
    if _resolve(version) is SpecVersion.V1_0:
        return "dataschema"
    return "schemaurl"


def data_content_encoding_attribute_name(version: SpecVersion | str | None = None) -> str:
    """Only defined by 0.3; later versions dropped the attribute."""
    _resolve(version)
    return "datacontentencoding"


def core_attribute_names(version: SpecVersion | str | None = None) -> frozenset[str]:
    """All attribute names the given spec version defines."""
    resolved = _resolve(version)
    names = {
        spec_version_attribute_name(resolved),
        type_attribute_name(resolved),
        id_attribute_name(resolved),
        source_attribute_name(resolved),
        time_attribute_name(resolved),
        data_attribute_name(resolved),
        data_content_type_attribute_name(resolved),
        data_schema_attribute_name(resolved),
    }
    if resolved is not SpecVersion.V0_2:
        names.add(subject_attribute_name(resolved))
    if resolved is SpecVersion.V0_3:
        names.add(data_content_encoding_attribute_name(resolved))
    return frozenset(names)


__all__ = [
    "SpecVersion",
    "spec_version_attribute_name",
    "type_attribute_name",
    "id_attribute_name",
    "source_attribute_name",
    "subject_attribute_name",
    "time_attribute_name",
    "data_attribute_name",
    "data_content_type_attribute_name",
    "data_schema_attribute_name",
    "data_content_encoding_attribute_name",
    "core_attribute_names",
]
