"""Typed field resolution for letter placeholders.

Each ``tstdletterfields`` row names a SQL fragment (everything after
``SELECT``, up to but excluding the ``WHERE``) and a value type.  The
fragment is completed with ``WHERE PlanNo = :plan_no`` and executed with
the plan number bound as a parameter; the first column of the first row is
formatted according to the field's type.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import text
from sqlalchemy.orm import Session

from pdfwrap.core.constants import FieldValueType
from pdfwrap.core.errors import FieldFormatError
from pdfwrap.db.repositories import StdLetterFieldRepository

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_CENTS = Decimal("0.01")


def format_date(value: object) -> str:
    """Return ``DD/MM/YYYY`` for a date, datetime or ``YYYY-MM-DD...`` string."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    match = _ISO_DATE.match(str(value))
    if match is None:
        raise FieldFormatError(f"cannot format {value!r} as a date; expected YYYY-MM-DD")
    year, month, day = match.groups()
    return f"{day}/{month}/{year}"


def format_currency(value: object, symbol: str) -> str:
    try:
        amount = Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise FieldFormatError(f"cannot format {value!r} as currency") from exc
    return f"{symbol}{amount}"


def format_integer(value: object) -> str:
    try:
        return str(int(value))
    except (TypeError, ValueError) as exc:
        raise FieldFormatError(f"cannot format {value!r} as an integer") from exc


class FieldResolver:
    """Resolve a field id for one plan into its formatted letter text."""

    def __init__(
        self,
        db: Session,
        *,
        currency_symbol: str = "£",
        default_date: str = "2004-01-01",
    ) -> None:
        self.db = db
        self.fields = StdLetterFieldRepository(db)
        self.currency_symbol = currency_symbol
        self.default_date = default_date

    def resolve(self, field_id: str, plan_no: int | str) -> str:
        """Return the formatted value of *field_id* for *plan_no*.

        Unknown field ids resolve to an empty string.  A query returning no
        row (or a null) yields the type's default.

        Raises
        ------
        FieldFormatError
            If the value cannot be formatted as the field's type.
        """
        field = self.fields.get(field_id)
        if field is None or not field.field_sql:
            logger.debug("Unknown letter field %s", field_id)
            return ""

        stmt = text(f"SELECT {field.field_sql} WHERE PlanNo = :plan_no")
        row = self.db.execute(stmt, {"plan_no": plan_no}).first()
        value = row[0] if row is not None else None
        return self.format(value, field.value_type)

    def format(self, value: object, value_type: int) -> str:
        if value_type == FieldValueType.CURRENCY:
            return format_currency(0 if value is None else value, self.currency_symbol)
        if value_type == FieldValueType.DATE:
            return format_date(self.default_date if value is None else value)
        if value_type == FieldValueType.INTEGER:
            return format_integer(0 if value is None else value)
        return "" if value is None else str(value)
