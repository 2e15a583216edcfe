"""Tests for spine_cloudevents.validation and strict-mode attribute maps."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from spine_cloudevents import (
    KEY_NOT_WELL_FORMED,
    AttributeMap,
    ExtensionAttribute,
    InvalidKeyError,
    InvalidValueError,
    SpecVersion,
    UnknownAttributeError,
    is_valid_key,
    validate_key,
)
from spine_cloudevents.validation import (
    core_value_rules,
    normalize_value,
    validate_spec_version_value,
)


# ── Key rule ─────────────────────────────────────────────────────────────


class TestIsValidKey:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("somekey", True),
            ("some key", False),
            ("Somekey", False),
            ("somEkey", False),
            ("1somekey3324", True),
            ("123", True),
            ("", False),
            ("some\n", False),
            ("tab\t", False),
            ("dot.ted", False),
            ("é", False),
            (None, False),
            (123, False),
        ],
    )
    def test_key_rule(self, key, expected):
        """Lower-case ASCII letters and digits only, at least one character."""
        assert is_valid_key(key) is expected

    def test_validate_key_returns_key(self):
        """A valid key comes back unchanged."""
        assert validate_key("type") == "type"

    def test_validate_key_message(self):
        """The error message is exactly the documented template."""
        with pytest.raises(InvalidKeyError) as exc_info:
            validate_key("Bad Key")
        assert str(exc_info.value) == KEY_NOT_WELL_FORMED.format(key="Bad Key")


# ── normalize_value ──────────────────────────────────────────────────────


class TestNormalizeValue:
    def test_string_attributes(self):
        """type and id must be strings."""
        assert normalize_value("type", "t", SpecVersion.V1_0, {}) == "t"
        with pytest.raises(InvalidValueError):
            normalize_value("id", 1, SpecVersion.V1_0, {})

    def test_spec_version_value(self):
        """specversion must name a known version."""
        assert normalize_value("specversion", "0.3", SpecVersion.V1_0, {}) == "0.3"
        with pytest.raises(InvalidValueError):
            normalize_value("specversion", "7.0", SpecVersion.V1_0, {})

    @pytest.mark.parametrize("value", [SpecVersion.V0_2, "0.3", "1.0"])
    def test_spec_version_value_accepts_known_versions(self, value):
        assert validate_spec_version_value("specversion", value) == value

    @pytest.mark.parametrize("value", [1.0, None, "1", "v1.0"])
    def test_spec_version_value_rejects_everything_else(self, value):
        """Non-strings and unknown version strings are both invalid."""
        with pytest.raises(InvalidValueError):
            validate_spec_version_value("specversion", value)

    def test_time_string_normalized_to_utc(self):
        """Offset timestamps are converted to UTC."""
        result = normalize_value("time", "2024-01-02T03:04:05+02:00", SpecVersion.V1_0, {})
        assert result == datetime(2024, 1, 2, 1, 4, 5, tzinfo=UTC)

    def test_time_zulu_suffix(self):
        result = normalize_value("time", "2024-01-02T03:04:05Z", SpecVersion.V1_0, {})
        assert result.tzinfo is not None
        assert result.hour == 3

    def test_naive_datetime_taken_as_utc(self):
        """A naive datetime is read as UTC."""
        result = normalize_value("time", datetime(2024, 1, 1, 12), SpecVersion.V1_0, {})
        assert result == datetime(2024, 1, 1, 12, tzinfo=UTC)

    def test_aware_datetime_converted(self):
        """An aware datetime is converted to UTC."""
        tz = timezone(timedelta(hours=-5))
        result = normalize_value("time", datetime(2024, 1, 1, 7, tzinfo=tz), SpecVersion.V1_0, {})
        assert result == datetime(2024, 1, 1, 12, tzinfo=UTC)

    def test_bad_time(self):
        """Unparseable strings and non-time types are rejected."""
        with pytest.raises(InvalidValueError):
            normalize_value("time", "yesterday", SpecVersion.V1_0, {})
        with pytest.raises(InvalidValueError):
            normalize_value("time", 12345, SpecVersion.V1_0, {})

    def test_source_uri_reference(self):
        """source must be a non-empty, parseable URI reference."""
        assert normalize_value("source", "/orders", SpecVersion.V1_0, {}) == "/orders"
        with pytest.raises(InvalidValueError):
            normalize_value("source", "", SpecVersion.V1_0, {})
        with pytest.raises(InvalidValueError):
            normalize_value("source", "http://[::1", SpecVersion.V1_0, {})

    def test_media_type(self):
        """datacontenttype needs a type/subtype shape."""
        assert normalize_value(
            "datacontenttype", "application/json; charset=utf-8", SpecVersion.V1_0, {}
        ).startswith("application/json")
        with pytest.raises(InvalidValueError):
            normalize_value("datacontenttype", "json", SpecVersion.V1_0, {})

    def test_data_accepts_anything(self):
        """data is stored as given."""
        payload = {"a": [1, 2]}
        assert normalize_value("data", payload, SpecVersion.V1_0, {}) is payload

    def test_version_specific_names(self):
        """Rules are keyed by the names of the given version."""
        assert "schemaurl" in core_value_rules(SpecVersion.V0_3)
        assert "dataschema" not in core_value_rules(SpecVersion.V0_3)
        assert "datacontentencoding" in core_value_rules(SpecVersion.V0_3)
        assert "contenttype" in core_value_rules(SpecVersion.V0_2)
        assert "subject" not in core_value_rules(SpecVersion.V0_2)

    def test_extension_descriptor_consulted(self):
        """Keys claimed by an extension use its descriptor."""
        ext = ExtensionAttribute("sampledrate", value_type=int)
        assert normalize_value("sampledrate", 3, SpecVersion.V1_0, {"sampledrate": ext}) == 3
        with pytest.raises(InvalidValueError):
            normalize_value("sampledrate", "3", SpecVersion.V1_0, {"sampledrate": ext})

    def test_unknown_attribute(self):
        """Keys nobody claims are rejected with the version in context."""
        with pytest.raises(UnknownAttributeError) as exc_info:
            normalize_value("mystery", "x", SpecVersion.V1_0, {})
        assert exc_info.value.context.spec_version == "1.0"


# ── Strict-mode maps ─────────────────────────────────────────────────────


class TestStrictAttributeMap:
    def test_time_stored_normalized(self, strict_attributes):
        """The normalized datetime is what the map stores."""
        strict_attributes["time"] = "2024-01-02T03:04:05Z"
        assert strict_attributes["time"] == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)

    def test_unknown_key_rejected(self, strict_attributes):
        """Strict maps refuse keys no extension claims."""
        with pytest.raises(UnknownAttributeError):
            strict_attributes["mystery"] = "x"
        assert "mystery" not in strict_attributes

    def test_registered_extension_accepted(self):
        """Extension rules apply to add and set alike."""
        attrs = AttributeMap(
            "1.0",
            [ExtensionAttribute("sampledrate", value_type=int)],
            strict=True,
        )
        attrs.add("sampledrate", 10)
        assert attrs["sampledrate"] == 10
        with pytest.raises(InvalidValueError):
            attrs["sampledrate"] = "ten"
        assert attrs["sampledrate"] == 10

    def test_spec_version_reassignment_validated(self, strict_attributes):
        """Reassignment accepts only known versions."""
        with pytest.raises(InvalidValueError):
            strict_attributes["specversion"] = "5.0"
        strict_attributes["specversion"] = "0.3"
        assert strict_attributes.spec_version is SpecVersion.V0_3

    def test_rules_follow_current_spec_version(self, strict_attributes):
        """After a reassignment the new version's names apply."""
        strict_attributes["specversion"] = "0.3"
        strict_attributes["schemaurl"] = "https://example.com/schema"
        with pytest.raises(UnknownAttributeError):
            strict_attributes["dataschema"] = "https://example.com/schema"

    def test_update_follows_spec_version_in_same_batch(self, strict_attributes):
        """A batch that switches the spec version is checked against the new version."""
        strict_attributes.update({"specversion": "0.3", "schemaurl": "https://example.com/schema"})
        assert strict_attributes.spec_version is SpecVersion.V0_3
        assert strict_attributes["schemaurl"] == "https://example.com/schema"

    def test_update_spec_version_position_in_batch_does_not_matter(self, strict_attributes):
        """The spec-version pair may come last in the batch."""
        strict_attributes.update([("schemaurl", "/schema"), ("specversion", "0.3")])
        assert strict_attributes.to_dict() == {"specversion": "0.3", "schemaurl": "/schema"}

    def test_update_rejected_batch_keeps_old_spec_version(self, strict_attributes):
        """A failed batch does not switch the spec version either."""
        with pytest.raises(UnknownAttributeError):
            strict_attributes.update({"specversion": "0.3", "dataschema": "/schema"})
        assert strict_attributes.spec_version is SpecVersion.V1_0
        assert strict_attributes.to_dict() == {"specversion": "1.0"}

    def test_key_rule_checked_before_value_rules(self, strict_attributes):
        """A bad key is reported before a bad value."""
        with pytest.raises(InvalidKeyError):
            strict_attributes["Type"] = 1

    def test_try_add_duplicate_wins_over_value_check(self, strict_attributes):
        """Duplicates are detected before value rules run."""
        strict_attributes["type"] = "t"
        assert strict_attributes.try_add("type", 123) is False

    def test_update_all_or_nothing_on_bad_value(self, strict_attributes):
        """One bad value leaves the whole batch unapplied."""
        with pytest.raises(InvalidValueError):
            strict_attributes.update({"type": "t", "id": 5})
        assert "type" not in strict_attributes

    def test_none_still_removes(self, strict_attributes):
        """None removes in strict mode too."""
        strict_attributes["type"] = "t"
        strict_attributes["type"] = None
        assert "type" not in strict_attributes
