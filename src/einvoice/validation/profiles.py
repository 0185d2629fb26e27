"""Validation profiles: named, composable bundles of extra rules.

This module provides:
- ValidationProfile: a named list of extra rules with YAML/JSON serialization
- ProfileRegistry: registry with parent-profile inheritance
- BuiltinProfiles: factory for the shipped ``en16931`` and ``ubl_be`` profiles

Rules are serialized by name. Names resolve through :data:`RULE_CATALOG`,
which holds the shipped jurisdiction rules; custom rules can be added with
:func:`register_rule`.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from einvoice.validation.belgium import BELGIAN_RULES
from einvoice.validation.rules import Rule

# Extra rules only; the core set always runs
RULE_CATALOG: dict[str, Rule] = {rule.__name__: rule for rule in BELGIAN_RULES}


def register_rule(rule: Rule, name: str | None = None) -> Rule:
    """Make ``rule`` resolvable by name when profiles are loaded from files.

    Usable as a decorator.
    """
    RULE_CATALOG[name or rule.__name__] = rule
    return rule


def _read_source(source: str | Path) -> str:
    """Return file content when ``source`` names an existing file, else ``source``."""
    if isinstance(source, Path):
        return source.read_text()
    if "\n" not in source:
        try:
            if Path(source).is_file():
                return Path(source).read_text()
        except OSError:
            # Too long to be a path name
            pass
    return source


def _rule_name(rule: Rule) -> str:
    for name, known in RULE_CATALOG.items():
        if known is rule:
            return name
    return getattr(rule, "__name__", repr(rule))


class ValidationProfile(BaseModel):
    """A named set of jurisdiction- or network-specific rules.

    The core rules always run; a profile only contributes extra ones.

    Example:
        ```python
        def require_contract(invoice):
            return [] if invoice.contract_reference else ["Contract reference required"]

        profile = ValidationProfile(
            name="public_sector",
            rules=[require_contract],
            parent_profile="ubl_be",
        )
        registry = BuiltinProfiles.create_registry()
        registry.register(profile)
        errors = invoice.validate_rules(profile=registry.get("public_sector"))
        ```
    """

    name: str = Field(description="Profile name for identification")
    description: str | None = Field(
        default=None,
        description="Human-readable description of the profile",
    )
    rules: list[Callable[..., list[str]]] = Field(
        default_factory=list,
        description="Extra rules run after the core rules",
    )
    version: str = Field(default="1.0", description="Profile version")
    tags: list[str] | None = Field(default=None, description="Tags for searching profiles")
    parent_profile: str | None = Field(
        default=None,
        description="Name of the profile whose rules run before this one's",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate profile name is non-empty and normalize it."""
        if not v or not v.strip():
            raise ValueError("Profile name cannot be empty")
        return v.strip().lower().replace(" ", "_")

    @property
    def rule_names(self) -> list[str]:
        return [_rule_name(rule) for rule in self.rules]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "rules": self.rule_names,
        }
        if self.description:
            data["description"] = self.description
        if self.tags:
            data["tags"] = self.tags
        if self.parent_profile:
            data["parent_profile"] = self.parent_profile
        return data

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> str:
        """Serialize profile to JSON, optionally writing it to ``path``."""
        json_str = json.dumps(self.to_dict(), indent=indent)
        if path:
            Path(path).write_text(json_str)
        return json_str

    def to_yaml(self, path: str | Path | None = None) -> str:
        """Serialize profile to YAML, optionally writing it to ``path``."""
        yaml_str: str = yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        if path:
            Path(path).write_text(yaml_str)
        return yaml_str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationProfile:
        """Create a profile from a dictionary, resolving rule names.

        Raises:
            KeyError: If a rule name is not in the rule catalog.
        """
        rules = []
        for rule_name in data.get("rules") or []:
            if rule_name not in RULE_CATALOG:
                raise KeyError(f"Unknown rule '{rule_name}'")
            rules.append(RULE_CATALOG[rule_name])
        return cls(
            name=data.get("name", "unnamed"),
            description=data.get("description"),
            rules=rules,
            version=data.get("version", "1.0"),
            tags=data.get("tags"),
            parent_profile=data.get("parent_profile"),
        )

    @classmethod
    def from_json(cls, source: str | Path) -> ValidationProfile:
        """Load profile from a JSON file or string."""
        return cls.from_dict(json.loads(_read_source(source)))

    @classmethod
    def from_yaml(cls, source: str | Path) -> ValidationProfile:
        """Load profile from a YAML file or string."""
        return cls.from_dict(yaml.safe_load(_read_source(source)))

    def merge_with_parent(self, parent: ValidationProfile) -> ValidationProfile:
        """Return a profile running the parent's rules, then this one's.

        A rule present in both runs once, at the parent's position.
        """
        merged: list[Rule] = list(parent.rules)
        merged.extend(rule for rule in self.rules if rule not in merged)
        merged_tags = sorted(set((parent.tags or []) + (self.tags or [])))

        return ValidationProfile(
            name=self.name,
            description=self.description or parent.description,
            rules=merged,
            version=self.version,
            tags=merged_tags or None,
            parent_profile=parent.name,
        )


class ProfileRegistry:
    """Registry for validation profiles, resolving parent inheritance on registration.

    Example:
        ```python
        registry = ProfileRegistry()
        registry.register(BuiltinProfiles.en16931())
        profile = registry.get_or_raise("en16931")
        ```
    """

    def __init__(self) -> None:
        self._profiles: dict[str, ValidationProfile] = {}

    def register(self, profile: ValidationProfile, overwrite: bool = False) -> None:
        """Register a profile, merging it with its parent if that is registered.

        Raises:
            ValueError: If a profile with the same name exists and overwrite=False.
        """
        if profile.name in self._profiles and not overwrite:
            raise ValueError(
                f"Profile '{profile.name}' already registered. Use overwrite=True to replace."
            )

        if profile.parent_profile:
            parent = self._profiles.get(profile.parent_profile)
            if parent:
                profile = profile.merge_with_parent(parent)

        self._profiles[profile.name] = profile

    def get(self, name: str) -> ValidationProfile | None:
        return self._profiles.get(name)

    def get_or_raise(self, name: str) -> ValidationProfile:
        """Get profile by name.

        Raises:
            KeyError: If the profile is not registered.
        """
        if name not in self._profiles:
            raise KeyError(f"Profile '{name}' not found in registry")
        return self._profiles[name]

    def unregister(self, name: str) -> bool:
        if name in self._profiles:
            del self._profiles[name]
            return True
        return False

    def list_profiles(self) -> list[str]:
        return list(self._profiles.keys())

    def search_by_tags(self, tags: list[str]) -> list[ValidationProfile]:
        """Find profiles with any of ``tags``."""
        tag_set = set(tags)
        return [p for p in self._profiles.values() if p.tags and tag_set.intersection(p.tags)]

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: profile.to_dict() for name, profile in self._profiles.items()}

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, name: str) -> bool:
        return name in self._profiles

    def __iter__(self) -> Iterator[str]:
        return iter(self._profiles)


class BuiltinProfiles:
    """Factory for the shipped validation profiles.

    Example:
        ```python
        errors = InvoiceValidator(BuiltinProfiles.ubl_be().rules).validate(invoice)
        ```
    """

    @staticmethod
    def en16931() -> ValidationProfile:
        """European core invoice: the core rules only."""
        return ValidationProfile(
            name="en16931",
            description="EN 16931 core invoice model",
            rules=[],
            tags=["en16931", "peppol"],
        )

    @staticmethod
    def ubl_be() -> ValidationProfile:
        """Belgian UBL.BE, layered on EN 16931."""
        return ValidationProfile(
            name="ubl_be",
            description="Belgian UBL.BE profile",
            rules=list(BELGIAN_RULES),
            tags=["belgium", "ubl_be"],
            parent_profile="en16931",
        )

    @classmethod
    def get_all(cls) -> dict[str, ValidationProfile]:
        return {
            "en16931": cls.en16931(),
            "ubl_be": cls.ubl_be(),
        }

    @classmethod
    def create_registry(cls) -> ProfileRegistry:
        """Create a registry pre-populated with the built-in profiles."""
        registry = ProfileRegistry()
        for profile in cls.get_all().values():
            registry.register(profile)
        return registry
