"""Outgoing email records for secured documents.

One ``toutgoingemails`` row per secured PDF.  The configured body is
personalised by replacing ``#DearSir#`` with the greeting and each
configured plan field placeholder with the matching customer value.

Safety: recipient addresses are never logged, only plan numbers.
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sqlalchemy.orm import Session

from pdfwrap.core.config import EmailConfig
from pdfwrap.db.models import OutgoingEmail
from pdfwrap.db.repositories import CustomerRecord, OutgoingEmailRepository
from pdfwrap.letters.substitution import substitute_named

logger = logging.getLogger(__name__)


def greeting(title: str, first_name: str, last_name: str) -> str:
    """``Mr Smith``, or ``J Smith`` when no title is held."""
    salutation = title or first_name[:1]
    return f"{salutation} {last_name}".strip()


class EmailDispatcher:
    def __init__(self, db: Session, email: EmailConfig) -> None:
        self.email = email
        self.outgoing = OutgoingEmailRepository(db)

    def render_body(self, customer: CustomerRecord) -> str:
        values = dict(zip(self.email.plan_fields, customer.values()))
        values["DearSir"] = greeting(customer.title, customer.first_name, customer.last_name)
        return substitute_named(self.email.bodytext, values)

    def enqueue(self, attachment: str | Path, customer: CustomerRecord) -> OutgoingEmail:
        """Insert the outgoing email for *attachment*; flushes, does not commit."""
        record = self.outgoing.create(
            sent_at=datetime.now(),
            sent_by=self.email.sending_user,
            plan_no=int(customer.plan_no),
            to_address=customer.email or self.email.bad_email_default,
            bc_address=self.email.bcc or None,
            subject=self.email.subject,
            msg_text=self.render_body(customer),
            attachments=str(attachment),
        )
        logger.info("Queued email for plan %s", customer.plan_no)
        return record
