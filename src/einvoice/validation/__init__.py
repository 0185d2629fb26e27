"""Business-rule validation."""

from einvoice.validation.belgium import BELGIAN_RULES
from einvoice.validation.profiles import (
    RULE_CATALOG,
    BuiltinProfiles,
    ProfileRegistry,
    ValidationProfile,
    register_rule,
)
from einvoice.validation.rules import CORE_RULES, Rule
from einvoice.validation.validator import InvoiceValidator

__all__ = [
    "BELGIAN_RULES",
    "CORE_RULES",
    "RULE_CATALOG",
    "BuiltinProfiles",
    "InvoiceValidator",
    "ProfileRegistry",
    "Rule",
    "ValidationProfile",
    "register_rule",
]
