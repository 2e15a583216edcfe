"""Spine CloudEvents -- the attribute set of a CloudEvents envelope.

Manifesto:
    Serializers, protocol bindings and event objects all read and write
    event attributes. ``spine_cloudevents`` gives them one container that
    enforces the CloudEvents attribute rules, so none of them has to:
    well-formed keys, a spec-version attribute that is always present, and
    "assign None" meaning "remove".

Architecture::

    attributes.py      AttributeMap + AttributeEntries (the only mutable type)
    validation.py      Key rule + strict-mode value validation
    spec_version.py    SpecVersion enum + well-known attribute names
    extensions.py      Extension descriptor protocol + registry
    errors.py          Typed error hierarchy
    settings.py        CLOUDEVENTS_* environment settings
    logging.py         Structured logging (structlog)

Tags:
    spine-cloudevents, cloudevents, attributes, foundation

Doc-Types:
    package-overview, module-index
"""

from spine_cloudevents.attributes import AttributeEntries, AttributeMap
from spine_cloudevents.errors import (
    KEY_NOT_WELL_FORMED,
    AttributeValidationError,
    CloudEventsError,
    ConfigurationError,
    DuplicateKeyError,
    ErrorCategory,
    ErrorContext,
    InvalidKeyError,
    InvalidValueError,
    NullValueError,
    ProtectedAttributeError,
    UnknownAttributeError,
)
from spine_cloudevents.extensions import (
    ExtensionAttribute,
    ExtensionDescriptor,
    build_extension_registry,
)
from spine_cloudevents.spec_version import (
    SpecVersion,
    core_attribute_names,
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
from spine_cloudevents.validation import is_valid_key, validate_key

__version__ = "0.1.0"

__all__ = [
    # Attribute map
    "AttributeMap",
    "AttributeEntries",
    # Validation
    "is_valid_key",
    "validate_key",
    # Spec versions
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
    # Extensions
    "ExtensionDescriptor",
    "ExtensionAttribute",
    "build_extension_registry",
    # Errors
    "KEY_NOT_WELL_FORMED",
    "ErrorCategory",
    "ErrorContext",
    "CloudEventsError",
    "ConfigurationError",
    "AttributeValidationError",
    "InvalidKeyError",
    "NullValueError",
    "DuplicateKeyError",
    "UnknownAttributeError",
    "InvalidValueError",
    "ProtectedAttributeError",
]
