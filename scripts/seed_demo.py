#!/usr/bin/env python3
"""Seed demo data: customers, standard letters, letter fields and queued documents.

Usage:
    DATABASE_URL=sqlite+pysqlite:///demo.db python scripts/seed_demo.py
    python scripts/seed_demo.py --cfg site.yml     # MySQL settings from the override file

Creates the tables when they do not exist.  Intended for a scratch database;
the production schema is owned elsewhere.
"""
from __future__ import annotations

import argparse
import sys
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

# Ensure project root is on sys.path
sys.path.insert(0, ".")

from pdfwrap.core.config import load_config
from pdfwrap.core.constants import DELMETH_EMAIL, DELMETH_PAPER, FieldValueType
from pdfwrap.core.settings import get_settings
from pdfwrap.db.base import Base
from pdfwrap.db.models import (
    Customer,
    DDNotice,
    LetterQueue,
    Literal,
    StdLetter,
    StdLetterField,
    StdLetterFooter,
    StdLetterHeader,
)
from pdfwrap.db.session import get_engine


def seed(session: Session, page2_letter_id: int) -> None:
    """Insert demo customers and queue one document of each kind for them."""

    demo_customers = [
        # (plan, product, email, phone, title, first, last, balance, start)
        (1001, "Standard", "alice@example.com", "01632 960 001", "Mrs", "Alice", "Johnson", "125.50", date(2019, 4, 1)),
        (1002, "Premium", "bob@example.com", "01632 960 002", "Mr", "Bob", "Smith", "1999.99", date(2020, 1, 15)),
        (1003, "Standard", None, "01632 960 003", None, "Carla", "Rivera", None, None),
        (1004, None, "dan@example.com", None, "Dr", "Dan", "Chen", "0.00", date(2021, 7, 30)),
    ]
    for plan_no, product, email, phone, title, first, last, balance, start in demo_customers:
        session.add(
            Customer(
                plan_no=plan_no,
                product=product,
                email=email,
                phone=phone,
                postcode="AB1 2CD",
                title=title,
                first_name=first,
                last_name=last,
                balance=Decimal(balance) if balance is not None else None,
                start_date=start,
            )
        )

    session.add(Literal(name="Company", value="Demo Plans Ltd"))
    session.add(StdLetterHeader(id=1, header="Demo Plans Ltd"))
    session.add(StdLetterFooter(id=1, footer="Registered in England"))
    session.add(
        StdLetter(
            id=page2_letter_id,
            title="Direct debit notice page 2",
            header_id=1,
            footer_id=1,
            body=(
                "Dear [[SALUTATION]],\n"
                "Your plan started on [[STARTDATE]] and the balance is [[BALANCE]].\n"
                "Plan reference [[PLANREF]]."
            ),
        )
    )
    session.add_all(
        [
            StdLetterField(field_id="SALUTATION", field_sql="cLastname FROM tcustomers", value_type=FieldValueType.TEXT),
            StdLetterField(field_id="STARTDATE", field_sql="StartDate FROM tcustomers", value_type=FieldValueType.DATE),
            StdLetterField(field_id="BALANCE", field_sql="Balance FROM tcustomers", value_type=FieldValueType.CURRENCY),
            StdLetterField(field_id="PLANREF", field_sql="PlanNo FROM tcustomers", value_type=FieldValueType.INTEGER),
        ]
    )

    for plan_no, *_ in demo_customers:
        session.add(LetterQueue(plan_no=plan_no, letter_id=7, del_meth=DELMETH_EMAIL))
        session.add(DDNotice(account_ref=str(plan_no), del_meth=DELMETH_EMAIL))
    session.add(LetterQueue(plan_no=1001, letter_id=8, del_meth=DELMETH_PAPER))

    session.commit()
    print(
        f"Seeded {len(demo_customers)} customers, {len(demo_customers) + 1} queued letters, "
        f"{len(demo_customers)} DD notices (page 2 letter {page2_letter_id})."
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a PDFWrap demo database")
    parser.add_argument("--cfg", default=None, help="Configuration override file")
    args = parser.parse_args()

    settings = get_settings()
    config = load_config(args.cfg or settings.config_path, database_url=settings.database_url)
    engine = get_engine(config)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seed(session, config.dds.page2_ltr or 90)
    engine.dispose()


if __name__ == "__main__":
    main()
