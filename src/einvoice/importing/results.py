"""Result types for invoice imports."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from einvoice.core.exceptions import InvoiceImportWarning
from einvoice.models.invoice import Invoice

logger = logging.getLogger(__name__)


class ImportStatus(str, Enum):
    """Outcome of an import."""

    CLEAN = "clean"
    WARNING = "warning"


class ImportAnomaly(BaseModel):
    """A field-level inconsistency tolerated by a lenient import."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Dotted path of the field in the source document")
    message: str = Field(description="What was wrong")
    raw_value: str | None = Field(default=None, description="Value kept as found in the source")

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class TotalsDiscrepancy(BaseModel):
    """A declared total that differs from the recomputed one beyond tolerance."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Name of the compared total")
    declared: Decimal = Field(description="Value declared by the source document")
    computed: Decimal = Field(description="Value recomputed from lines and adjustments")
    difference: Decimal = Field(description="Absolute gap between the two")
    tolerance: Decimal = Field(description="Tolerance that was exceeded")

    def __str__(self) -> str:
        return (
            f"{self.field}: declared {self.declared}, computed {self.computed} "
            f"(difference {self.difference} > {self.tolerance})"
        )


class AnomalyCollector:
    """Accumulates anomalies during a single lenient import."""

    def __init__(self) -> None:
        self._anomalies: list[ImportAnomaly] = []

    def add(self, field: str, message: str, raw_value: object = None) -> ImportAnomaly:
        anomaly = ImportAnomaly(
            field=field,
            message=message,
            raw_value=None if raw_value is None else str(raw_value),
        )
        logger.warning("Import anomaly on %s: %s", field, message)
        self._anomalies.append(anomaly)
        return anomaly

    @property
    def anomalies(self) -> list[ImportAnomaly]:
        return list(self._anomalies)

    def __len__(self) -> int:
        return len(self._anomalies)

    def __bool__(self) -> bool:
        return bool(self._anomalies)

    def __iter__(self) -> Iterator[ImportAnomaly]:
        return iter(self._anomalies)


class ImportResult(BaseModel):
    """Outcome of importing one document.

    The invoice is always fully built. ``status`` is ``WARNING`` exactly when
    anomalies or totals discrepancies were found; callers that prefer an
    exception use :meth:`raise_for_warnings`.
    """

    invoice: Invoice = Field(description="The imported invoice, totals recomputed")
    status: ImportStatus = Field(default=ImportStatus.CLEAN, description="Import outcome")
    anomalies: list[ImportAnomaly] = Field(
        default_factory=list,
        description="Field-level inconsistencies tolerated in lenient mode",
    )
    discrepancies: list[TotalsDiscrepancy] = Field(
        default_factory=list,
        description="Declared totals that disagree with the recomputation",
    )
    strict: bool = Field(default=True, description="Whether the import ran in strict mode")

    @model_validator(mode="after")
    def _validate_status(self) -> ImportResult:
        """Ensure the status agrees with the findings."""
        has_findings = bool(self.anomalies or self.discrepancies)
        if has_findings and self.status is ImportStatus.CLEAN:
            raise ValueError("status must be WARNING when anomalies or discrepancies are present")
        if not has_findings and self.status is ImportStatus.WARNING:
            raise ValueError("status WARNING requires at least one anomaly or discrepancy")
        return self

    @property
    def is_clean(self) -> bool:
        return self.status is ImportStatus.CLEAN

    @property
    def messages(self) -> list[str]:
        """All findings as text, anomalies first."""
        return [str(a) for a in self.anomalies] + [str(d) for d in self.discrepancies]

    def raise_for_warnings(self) -> Invoice:
        """Return the invoice, or raise if the import carried warnings.

        Raises:
            InvoiceImportWarning: Carrying the invoice, anomalies and discrepancies.
        """
        if self.status is ImportStatus.WARNING:
            raise InvoiceImportWarning(self.invoice, self.anomalies, self.discrepancies)
        return self.invoice
