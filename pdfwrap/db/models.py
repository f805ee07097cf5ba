"""ORM mapping of the plan-administration tables this program reads and writes.

The schema is owned by the plan-administration system; these models mirror
the columns PDFWrap touches so repositories can query them and tests can
build the tables on SQLite.  Column names keep the production spelling.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text, text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pdfwrap.db.base import Base


class Literal(Base):
    __tablename__ = "tliterals"

    id: Mapped[int] = mapped_column("ID", Integer, primary_key=True)
    name: Mapped[str] = mapped_column("Literal", String(64), nullable=False)
    value: Mapped[str | None] = mapped_column("Value", Text, nullable=True)


class Customer(Base):
    __tablename__ = "tcustomers"

    plan_no: Mapped[int] = mapped_column("PlanNo", Integer, primary_key=True, autoincrement=False)
    product: Mapped[str | None] = mapped_column("Product", String(32), nullable=True)
    email: Mapped[str | None] = mapped_column("cEmail", String(128), nullable=True)
    phone: Mapped[str | None] = mapped_column("cPhone", String(32), nullable=True)
    postcode: Mapped[str | None] = mapped_column("cPostcode", String(16), nullable=True)
    title: Mapped[str | None] = mapped_column("cTitle", String(16), nullable=True)
    first_name: Mapped[str | None] = mapped_column("cFirstname", String(64), nullable=True)
    last_name: Mapped[str | None] = mapped_column("cLastname", String(64), nullable=True)
    customer_password: Mapped[str | None] = mapped_column("CustomerPassword", String(64), nullable=True)
    record_status: Mapped[int] = mapped_column("RecordStatus", Integer, nullable=False, default=0, server_default=sql_text("0"))
    balance: Mapped[Decimal | None] = mapped_column("Balance", Numeric(12, 2), nullable=True)
    start_date: Mapped[date | None] = mapped_column("StartDate", Date, nullable=True)


class StdLetterHeader(Base):
    __tablename__ = "tstdletterheaders"

    id: Mapped[int] = mapped_column("HdrID", Integer, primary_key=True)
    header: Mapped[str | None] = mapped_column("HdrHeader", Text, nullable=True)


class StdLetterFooter(Base):
    __tablename__ = "tstdletterfooters"

    id: Mapped[int] = mapped_column("FtrID", Integer, primary_key=True)
    footer: Mapped[str | None] = mapped_column("FtrFooter", Text, nullable=True)


class StdLetter(Base):
    __tablename__ = "tstdletters"

    id: Mapped[int] = mapped_column("LtrID", Integer, primary_key=True, autoincrement=False)
    title: Mapped[str | None] = mapped_column("LtrTitle", String(128), nullable=True)
    header_id: Mapped[int | None] = mapped_column("LtrHeaderID", ForeignKey("tstdletterheaders.HdrID"), nullable=True)
    footer_id: Mapped[int | None] = mapped_column("LtrFooterID", ForeignKey("tstdletterfooters.FtrID"), nullable=True)
    body: Mapped[str] = mapped_column("LtrBody", Text, nullable=False, default="", server_default=sql_text("''"))

    header: Mapped[StdLetterHeader | None] = relationship()
    footer: Mapped[StdLetterFooter | None] = relationship()


class StdLetterField(Base):
    __tablename__ = "tstdletterfields"

    field_id: Mapped[str] = mapped_column("FieldID", String(64), primary_key=True)
    field_sql: Mapped[str] = mapped_column("FieldSQL", Text, nullable=False)
    value_type: Mapped[int] = mapped_column("FieldValueType", Integer, nullable=False, default=0, server_default=sql_text("0"))


class LetterQueue(Base):
    __tablename__ = "tletterqq"

    id: Mapped[int] = mapped_column("ID", Integer, primary_key=True)
    plan_no: Mapped[int] = mapped_column("PlanNo", Integer, nullable=False)
    letter_id: Mapped[int] = mapped_column("LetterID", Integer, nullable=False)
    del_meth: Mapped[int] = mapped_column("DelMeth", Integer, nullable=False, default=0, server_default=sql_text("0"))
    print_batch: Mapped[int] = mapped_column("PrintBatch", Integer, nullable=False, default=0, server_default=sql_text("0"))
    printed_when: Mapped[date | None] = mapped_column("PrintedWhen", Date, nullable=True)


class DDNotice(Base):
    __tablename__ = "dd_notify"

    id: Mapped[int] = mapped_column("ID", Integer, primary_key=True)
    account_ref: Mapped[str] = mapped_column("AccountRef", String(32), nullable=False)
    edited: Mapped[int] = mapped_column("edited", Integer, nullable=False, default=0, server_default=sql_text("0"))
    page2_body: Mapped[str | None] = mapped_column("ltr2Body", Text, nullable=True)
    del_meth: Mapped[int] = mapped_column("DelMeth", Integer, nullable=False, default=0, server_default=sql_text("0"))
    print_batch: Mapped[int] = mapped_column("PrintBatch", Integer, nullable=False, default=0, server_default=sql_text("0"))


class OutgoingEmail(Base):
    __tablename__ = "toutgoingemails"

    id: Mapped[int] = mapped_column("ID", Integer, primary_key=True)
    sent_at: Mapped[datetime | None] = mapped_column("SentAt", DateTime, nullable=True)
    sent_by: Mapped[str] = mapped_column("SentBy", String(64), nullable=False)
    plan_no: Mapped[int] = mapped_column("PlanNo", Integer, nullable=False)
    to_address: Mapped[str] = mapped_column("ToAddress", String(256), nullable=False)
    bc_address: Mapped[str | None] = mapped_column("BCAddress", String(256), nullable=True)
    subject: Mapped[str] = mapped_column("Subject", String(256), nullable=False)
    msg_text: Mapped[str] = mapped_column("MsgText", Text, nullable=False)
    attachments: Mapped[str] = mapped_column("Attachments", Text, nullable=False)
