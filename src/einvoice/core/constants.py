"""Closed code lists recognised by the invoice model.

Every vocabulary here is checked by membership only; nothing is looked up
externally.
"""

from decimal import Decimal
from enum import Enum


class TaxCategory(str, Enum):
    """VAT category codes (UNCL5305 subset)."""

    STANDARD = "S"
    ZERO_RATED = "Z"
    EXEMPT = "E"
    REVERSE_CHARGE = "AE"
    INTRA_COMMUNITY = "K"
    EXPORT = "G"
    OUTSIDE_SCOPE = "O"
    CANARY_ISLANDS = "L"
    CEUTA_MELILLA = "M"


class InvoiceTypeCode(str, Enum):
    """Document type codes (UNCL1001 subset)."""

    COMMERCIAL_INVOICE = "380"
    CREDIT_NOTE = "381"
    DEBIT_NOTE = "383"
    CORRECTED_INVOICE = "384"
    PREPAYMENT_INVOICE = "386"
    SELF_BILLED_INVOICE = "389"


# Categories whose rate must be exactly zero
ZERO_RATE_CATEGORIES = frozenset(
    {
        TaxCategory.ZERO_RATED,
        TaxCategory.EXEMPT,
        TaxCategory.REVERSE_CHARGE,
        TaxCategory.INTRA_COMMUNITY,
        TaxCategory.EXPORT,
        TaxCategory.OUTSIDE_SCOPE,
    }
)

# Categories whose breakdown entry needs an exemption reason
EXEMPTION_REQUIRED_CATEGORIES = frozenset(
    {
        TaxCategory.EXEMPT,
        TaxCategory.REVERSE_CHARGE,
        TaxCategory.INTRA_COMMUNITY,
        TaxCategory.EXPORT,
        TaxCategory.OUTSIDE_SCOPE,
    }
)

CURRENCY_CODES = frozenset(
    {
        "EUR", "USD", "GBP", "CHF", "CAD", "JPY", "AUD", "NZD", "SEK",
        "NOK", "DKK", "PLN", "CZK", "HUF", "RON", "BGN", "HRK",
    }
)

# UN/ECE Recommendation 20, most common codes
UNIT_CODES: dict[str, str] = {
    "C62": "One (intangible unit)",
    "H87": "Piece",
    "HUR": "Hour",
    "DAY": "Day",
    "MON": "Month",
    "ANN": "Year",
    "MTR": "Metre",
    "KMT": "Kilometre",
    "MTK": "Square metre",
    "MTQ": "Cubic metre",
    "LTR": "Litre",
    "KGM": "Kilogram",
    "TNE": "Tonne",
    "GRM": "Gram",
    "MGM": "Milligram",
    "KWH": "Kilowatt hour",
    "MWH": "Megawatt hour",
    "SET": "Set",
    "MIN": "Minute",
    "SEC": "Second",
    "WEE": "Week",
    "BX": "Box",
    "PK": "Pack",
    "EA": "Each",
    "PR": "Pair",
    "DZN": "Dozen",
    "GLL": "Gallon",
    "ONZ": "Ounce",
    "LBR": "Pound",
    "FOT": "Foot",
    "INH": "Inch",
    "YRD": "Yard",
    "SMI": "Mile",
    "ZZ": "Mutually defined",
}

# UNCL4461
PAYMENT_MEANS_CODES: dict[str, str] = {
    "1": "Instrument not defined",
    "10": "In cash",
    "20": "Cheque",
    "30": "Credit transfer",
    "31": "Debit transfer",
    "42": "Payment to bank account",
    "48": "Bank card",
    "49": "Direct debit",
    "57": "Standing agreement",
    "58": "SEPA credit transfer",
    "59": "SEPA direct debit",
    "97": "Clearing between partners",
}

# Means codes for which an IBAN is expected
CREDIT_TRANSFER_MEANS = frozenset({"30", "31", "58"})

TAX_EXEMPTION_REASONS: dict[str, str] = {
    "VATEX-EU-79-C": "Exempt based on article 79, point c of Council Directive 2006/112/EC",
    "VATEX-EU-132": "Exempt based on article 132 of Council Directive 2006/112/EC",
    "VATEX-EU-143": "Exempt based on article 143 of Council Directive 2006/112/EC",
    "VATEX-EU-148": "Exempt based on article 148 of Council Directive 2006/112/EC",
    "VATEX-EU-151": "Exempt based on article 151 of Council Directive 2006/112/EC",
    "VATEX-EU-309": "Exempt based on article 309 of Council Directive 2006/112/EC",
    "VATEX-EU-AE": "Reverse charge",
    "VATEX-EU-IC": "Intra-community supply",
    "VATEX-EU-G": "Export outside the EU",
    "VATEX-EU-O": "Not subject to VAT",
    "VATEX-BE-SMALL": "Small enterprise exemption (Belgium)",
}

# ISO 6523 ICD
ELECTRONIC_ADDRESS_SCHEMES: dict[str, str] = {
    "0002": "SIRENE (France)",
    "0007": "LIEF (Sweden)",
    "0009": "SIRET (France)",
    "0037": "LY-tunnus (Finland)",
    "0060": "DUNS",
    "0088": "EAN/GLN",
    "0096": "Danish CVR",
    "0106": "Belgian enterprise number (KBO)",
    "0135": "SIA (Italy)",
    "0142": "SECETI",
    "0184": "DIGSTORG (Denmark)",
    "0190": "Dutch Originator's Identification Number",
    "0191": "Centre of Registers and Information Systems (Estonia)",
    "0192": "Enhetsregisteret (Norway)",
    "0195": "Registre de Commerce et des Societes (Luxembourg)",
    "0196": "Icelandic VAT number",
    "0208": "Belgian enterprise number",
    "9925": "VAT number prefixed by country code",
    "9956": "Belgian Crossroad Bank of Enterprises",
}

SUPPORTED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "application/xml",
        "text/xml",
        "text/csv",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/zip",
        "text/plain",
    }
)

MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024

# UNCL5189 (allowances), non-exhaustive
ALLOWANCE_REASON_CODES: dict[str, str] = {
    "41": "Bonus for works ahead of schedule",
    "42": "Other bonus",
    "60": "Manufacturer's consumer discount",
    "62": "Due to military status",
    "63": "Due to work accident",
    "64": "Special agreement",
    "65": "Production error discount",
    "66": "New outlet discount",
    "67": "Sample discount",
    "68": "End-of-range discount",
    "70": "Incoterm discount",
    "71": "Point of sales threshold allowance",
    "88": "Material surcharge/deduction",
    "95": "Discount",
    "100": "Special rebate",
    "102": "Fixed long term",
    "103": "Temporary",
    "104": "Standard",
    "105": "Yearly turnover",
}

# UNCL7161 (charges), non-exhaustive
CHARGE_REASON_CODES: dict[str, str] = {
    "AA": "Advertising",
    "AAA": "Telecommunication",
    "ABL": "Picking",
    "ABN": "Royalties",
    "ABR": "Testing",
    "ABS": "Transformation",
    "ABT": "Transportation",
    "ABU": "Packing",
    "ACF": "Acceptance",
    "ADC": "Freight charges",
    "ADE": "Freight insurance",
    "ADJ": "Insurance",
    "ADK": "Installation",
    "ADL": "Labelling",
    "ADM": "Maintenance",
    "ADN": "Overtime",
    "ADO": "Packaging",
    "ADP": "Palletizing",
    "ADQ": "Postal charges",
    "ADR": "Printing",
    "ADT": "Shipment",
    "ADW": "Warehousing",
    "ADX": "Wrapping",
    "FC": "Freight charges",
    "FI": "Financing",
    "LA": "Labelling and tagging",
    "PC": "Packing",
    "SH": "Shipping and handling",
    "SM": "Shipment consolidation",
    "TAE": "Testing and certification",
    "TX": "Tax",
    "ZZZ": "Mutually defined",
}

BELGIAN_VAT_RATES = frozenset({Decimal("21"), Decimal("12"), Decimal("6"), Decimal("0")})
