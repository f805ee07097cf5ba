"""Tests for pdfwrap/notification/email_dispatch.py."""
from __future__ import annotations

import re

from pdfwrap.core.config import EmailConfig
from pdfwrap.db.repositories import CustomerRecord
from pdfwrap.notification.email_dispatch import EmailDispatcher, greeting


def _customer(**overrides) -> CustomerRecord:
    values = dict(
        product="Standard",
        email="jane@example.com",
        phone="01234 567 890",
        postcode="AB1 2CD",
        title="Mrs",
        first_name="Jane",
        last_name="Smith",
        customer_password="pw",
        record_status="1",
        plan_no="123",
    )
    values.update(overrides)
    return CustomerRecord(**values)


def _email_config(**overrides) -> EmailConfig:
    values = dict(
        bcc="",
        subject="Your documents",
        bodytext="Dear #DearSir#, plan #PlanNo# (#Product#) postcode #cPostcode#.",
        bad_email_default="fallback@localhost",
        sending_user="pdfwrap",
        plan_fields=("Product", "cEmail", "cPhone", "cPostcode", "cTitle", "cFirstname", "cLastname",
                     "CustomerPassword", "RecordStatus", "PlanNo"),
    )
    values.update(overrides)
    return EmailConfig(**values)


class TestGreeting:
    def test_title_and_last_name(self):
        assert greeting("Mr", "John", "Smith") == "Mr Smith"

    def test_initial_when_no_title(self):
        assert greeting("", "John", "Smith") == "J Smith"

    def test_no_title_no_first_name(self):
        assert greeting("", "", "Smith") == "Smith"


class TestRenderBody:
    def test_all_placeholders_replaced(self, db_session):
        body = EmailDispatcher(db_session, _email_config()).render_body(_customer())
        assert body == "Dear Mrs Smith, plan 123 (Standard) postcode AB1 2CD."
        assert not re.search(r"#\w+#", body)

    def test_plan_fields_are_positional(self, db_session):
        config = _email_config(bodytext="#First#/#Second#", plan_fields=("First", "Second"))
        body = EmailDispatcher(db_session, config).render_body(_customer())
        assert body == "Standard/jane@example.com"


class TestEnqueue:
    def test_inserts_outgoing_email(self, db_session):
        record = EmailDispatcher(db_session, _email_config()).enqueue("/pdfs/secure-123-1.pdf", _customer())

        assert record.id is not None
        assert record.sent_by == "pdfwrap"
        assert record.plan_no == 123
        assert record.to_address == "jane@example.com"
        assert record.bc_address is None
        assert record.subject == "Your documents"
        assert record.attachments == "/pdfs/secure-123-1.pdf"
        assert record.sent_at is not None

    def test_bcc_only_when_configured(self, db_session):
        config = _email_config(bcc="archive@example.com")
        record = EmailDispatcher(db_session, config).enqueue("x.pdf", _customer())
        assert record.bc_address == "archive@example.com"

    def test_empty_address_uses_default(self, db_session):
        record = EmailDispatcher(db_session, _email_config()).enqueue("x.pdf", _customer(email=""))
        assert record.to_address == "fallback@localhost"
