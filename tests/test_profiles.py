"""Tests for validation profiles and the profile registry."""

import json

import pytest
import yaml
from pydantic import ValidationError

from einvoice.validation import (
    BELGIAN_RULES,
    RULE_CATALOG,
    BuiltinProfiles,
    InvoiceValidator,
    ProfileRegistry,
    ValidationProfile,
    register_rule,
)
from einvoice.validation.belgium import check_attachment_count, check_buyer_reference


def require_note(invoice):
    return [] if invoice.note else ["Note is required"]


class TestValidationProfile:
    """Tests for ValidationProfile."""

    def test_create_profile(self):
        """Test creating a profile with rules."""
        profile = ValidationProfile(
            name="Public Sector",
            description="Government buyers",
            rules=[check_buyer_reference],
            tags=["gov"],
        )

        assert profile.name == "public_sector"
        assert profile.version == "1.0"
        assert profile.rule_names == ["check_buyer_reference"]

    def test_empty_name(self):
        """Test that the name is required."""
        with pytest.raises(ValidationError):
            ValidationProfile(name="  ")

    def test_to_dict(self):
        """Test dictionary serialization by rule name."""
        profile = ValidationProfile(
            name="minimal",
            rules=[check_attachment_count],
            parent_profile="en16931",
        )

        assert profile.to_dict() == {
            "name": "minimal",
            "version": "1.0",
            "rules": ["check_attachment_count"],
            "parent_profile": "en16931",
        }

    def test_json_round_trip(self, tmp_path):
        """Test writing and reading JSON."""
        profile = BuiltinProfiles.ubl_be()
        path = tmp_path / "ubl_be.json"

        json_str = profile.to_json(path)
        loaded = ValidationProfile.from_json(path)

        assert json.loads(json_str)["rules"] == profile.rule_names
        assert loaded.rules == profile.rules
        assert loaded.parent_profile == "en16931"

    def test_yaml_round_trip(self):
        """Test writing and reading YAML strings."""
        profile = BuiltinProfiles.ubl_be()

        yaml_str = profile.to_yaml()
        loaded = ValidationProfile.from_yaml(yaml_str)

        assert yaml.safe_load(yaml_str)["name"] == "ubl_be"
        assert loaded.rules == list(BELGIAN_RULES)
        assert loaded.tags == ["belgium", "ubl_be"]

    def test_unknown_rule_name(self):
        """Test that unknown rule names are rejected on load."""
        with pytest.raises(KeyError, match="Unknown rule"):
            ValidationProfile.from_dict({"name": "x", "rules": ["check_everything"]})

    def test_core_rules_not_nameable(self):
        """Test that core rule names do not resolve in profile files."""
        assert "check_header" not in RULE_CATALOG

        with pytest.raises(KeyError, match="Unknown rule"):
            ValidationProfile.from_dict({"name": "x", "rules": ["check_header"]})

    def test_register_rule(self):
        """Test that registered custom rules resolve by name."""
        register_rule(require_note, name="require_note")
        try:
            profile = ValidationProfile.from_dict({"name": "notes", "rules": ["require_note"]})
            assert profile.rules == [require_note]
            assert profile.rule_names == ["require_note"]
        finally:
            RULE_CATALOG.pop("require_note", None)

    def test_merge_with_parent(self):
        """Test that parent rules run first and duplicates run once."""
        parent = ValidationProfile(name="parent", rules=[check_buyer_reference], tags=["b"])
        child = ValidationProfile(
            name="child",
            rules=[check_attachment_count, check_buyer_reference],
            tags=["a"],
        )

        merged = child.merge_with_parent(parent)

        assert merged.rules == [check_buyer_reference, check_attachment_count]
        assert merged.tags == ["a", "b"]
        assert merged.parent_profile == "parent"


class TestProfileRegistry:
    """Tests for ProfileRegistry."""

    @pytest.fixture
    def registry(self):
        """Create a fresh registry for each test."""
        return ProfileRegistry()

    def test_register_and_get(self, registry):
        """Test basic registration and retrieval."""
        registry.register(BuiltinProfiles.en16931())

        assert "en16931" in registry
        assert len(registry) == 1
        assert registry.get("en16931").name == "en16931"
        assert registry.get("missing") is None

    def test_get_or_raise(self, registry):
        """Test that get_or_raise raises KeyError for a missing profile."""
        with pytest.raises(KeyError, match="not found"):
            registry.get_or_raise("missing")

    def test_duplicate(self, registry):
        """Test duplicate registration with and without overwrite."""
        registry.register(ValidationProfile(name="p", description="First"))

        with pytest.raises(ValueError, match="already registered"):
            registry.register(ValidationProfile(name="p"))

        registry.register(ValidationProfile(name="p", description="Second"), overwrite=True)
        assert registry.get("p").description == "Second"

    def test_parent_merge_on_register(self, registry):
        """Test that a child registered after its parent inherits its rules."""
        registry.register(ValidationProfile(name="base", rules=[check_buyer_reference]))
        registry.register(
            ValidationProfile(name="derived", rules=[require_note], parent_profile="base")
        )

        assert registry.get("derived").rules == [check_buyer_reference, require_note]

    def test_unregister(self, registry):
        """Test removing profiles."""
        registry.register(BuiltinProfiles.en16931())

        assert registry.unregister("en16931") is True
        assert registry.unregister("en16931") is False
        assert list(registry) == []

    def test_search_by_tags(self):
        """Test tag search over the built-in profiles."""
        registry = BuiltinProfiles.create_registry()

        assert [p.name for p in registry.search_by_tags(["belgium"])] == ["ubl_be"]
        assert registry.search_by_tags(["nothing"]) == []

    def test_to_dict(self):
        """Test registry serialization."""
        data = BuiltinProfiles.create_registry().to_dict()
        assert set(data) == {"en16931", "ubl_be"}


class TestBuiltinProfiles:
    """Tests for the shipped profiles."""

    def test_get_all(self):
        """Test listing the built-in profiles."""
        assert set(BuiltinProfiles.get_all()) == {"en16931", "ubl_be"}

    def test_en16931_has_no_extra_rules(self):
        """Test that the core profile adds nothing."""
        assert BuiltinProfiles.en16931().rules == []

    def test_registry_resolves_ubl_be(self):
        """Test the Belgian profile in a registry."""
        profile = BuiltinProfiles.create_registry().get_or_raise("ubl_be")

        assert profile.rules == list(BELGIAN_RULES)
        assert profile.parent_profile == "en16931"

    def test_validator_for_profile(self):
        """Test building a validator from a profile name."""
        validator = InvoiceValidator.for_profile("ubl_be", extra_rules=[require_note])
        assert validator.rules[-1] is require_note
        assert validator.rules[-2] is BELGIAN_RULES[-1]
