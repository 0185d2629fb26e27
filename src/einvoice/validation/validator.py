"""Business-rule validator."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from einvoice.models.invoice import Invoice
from einvoice.validation.profiles import BuiltinProfiles, ProfileRegistry, ValidationProfile
from einvoice.validation.rules import CORE_RULES, Rule

logger = logging.getLogger(__name__)


class InvoiceValidator:
    """Runs the core rules plus any extra rules against an invoice.

    Validation is exhaustive and pure: every rule runs, none short-circuits,
    and the invoice is never modified. Validating the same state twice gives
    the same list.

    Example:
        ```python
        from einvoice.validation import BELGIAN_RULES, InvoiceValidator

        validator = InvoiceValidator(extra_rules=BELGIAN_RULES)
        errors = validator.validate(invoice)
        if errors:
            print("\\n".join(errors))
        ```
    """

    def __init__(self, extra_rules: Sequence[Rule] = ()) -> None:
        # Core rules always run first and only once
        extra = [rule for rule in extra_rules if rule not in CORE_RULES]
        self._rules: tuple[Rule, ...] = (*CORE_RULES, *extra)

    @classmethod
    def for_profile(
        cls,
        profile: ValidationProfile | str | None,
        extra_rules: Sequence[Rule] = (),
        registry: ProfileRegistry | None = None,
    ) -> InvoiceValidator:
        """Build a validator for a profile given by object or registered name.

        Raises:
            KeyError: If ``profile`` names no registered profile.
        """
        if isinstance(profile, str):
            registry = registry or BuiltinProfiles.create_registry()
            profile = registry.get_or_raise(profile)
        profile_rules = profile.rules if profile is not None else []
        return cls(extra_rules=[*profile_rules, *extra_rules])

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def validate(self, invoice: Invoice) -> list[str]:
        """Return every violation found, in rule order (empty if conformant)."""
        errors: list[str] = []
        for rule in self._rules:
            errors.extend(rule(invoice))
        logger.debug(
            "Validated invoice %s with %d rule(s): %d violation(s)",
            invoice.invoice_number,
            len(self._rules),
            len(errors),
        )
        return errors

    def is_valid(self, invoice: Invoice) -> bool:
        return not self.validate(invoice)
