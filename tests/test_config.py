"""Tests for configuration classes."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from einvoice.core.config import DEFAULT_TOLERANCE, ImportConfig


class TestImportConfig:
    """Tests for ImportConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = ImportConfig()

        assert config.strict is True
        assert config.tolerance == Decimal("0.02")
        assert config.tolerance == DEFAULT_TOLERANCE
        assert config.currency_tolerances == {}

    def test_custom_values(self):
        """Test custom configuration values."""
        config = ImportConfig(
            strict=False,
            tolerance="0.05",
            currency_tolerances={"JPY": "1"},
        )

        assert config.strict is False
        assert config.tolerance == Decimal("0.05")
        assert config.currency_tolerances == {"JPY": Decimal("1")}

    def test_negative_tolerance_rejected(self):
        """Test that tolerance must be non-negative."""
        with pytest.raises(ValidationError):
            ImportConfig(tolerance="-0.01")

    def test_unknown_currency_in_tolerances(self):
        """Test that override keys must be known currency codes."""
        with pytest.raises(ValidationError):
            ImportConfig(currency_tolerances={"XYZ": "1"})

    def test_negative_currency_tolerance(self):
        """Test that override values must be non-negative."""
        with pytest.raises(ValidationError):
            ImportConfig(currency_tolerances={"EUR": "-1"})

    def test_tolerance_for(self):
        """Test per-currency tolerance resolution."""
        config = ImportConfig(tolerance="0.02", currency_tolerances={"JPY": "1"})

        assert config.tolerance_for("JPY") == Decimal("1")
        assert config.tolerance_for("EUR") == Decimal("0.02")
