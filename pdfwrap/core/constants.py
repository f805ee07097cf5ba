"""Fixed values shared across the production pipeline.

Queue delivery methods
----------------------
The queue tables flag each row with ``DelMeth``; only rows delivered by
email are claimed and produced by this program.

Field value types
-----------------
``tstdletterfields.FieldValueType`` selects how a resolved scalar is
formatted into a letter:

0 TEXT      : used as-is
1 INTEGER   : decimal string
2 CURRENCY  : currency symbol + two decimal places
3 DATE      : DD/MM/YYYY
"""
from __future__ import annotations

from enum import IntEnum

from pdfwrap import __version__

PROGRAM_VERSION = f"PDFWrap v{__version__}"

DELMETH_EMAIL = 1
DELMETH_PAPER = 0


class FieldValueType(IntEnum):
    TEXT = 0
    INTEGER = 1
    CURRENCY = 2
    DATE = 3


# Column order of a customer record, also the positional order used to map
# ``email.plan_fields`` placeholders onto customer values.
CUSTOMER_FIELDS: tuple[str, ...] = (
    "Product",
    "cEmail",
    "cPhone",
    "cPostcode",
    "cTitle",
    "cFirstname",
    "cLastname",
    "CustomerPassword",
    "RecordStatus",
    "PlanNo",
)

DRAFT_MARKER = "-draft"
