"""Secure output: password-protect produced PDFs and queue them for email.

For each file in the output folder matching ``pdftk.pdf_mask``:

1. the plan number is read from the digits following ``pdftk.pdf_prefix``;
2. the customer record for that plan is fetched;
3. the user password is the customer's phone number without spaces;
4. the product's permission arguments (``email.terms``) are applied,
   writing the ``pdf_prefix2`` intermediate;
5. the run's info file and the passwords are applied, writing the
   ``pdf_prefix3`` secured file;
6. the source and the intermediate are removed;
7. an outgoing email is queued with the secured file attached.

Files without a plan number or without a customer are skipped.  A PDF tool
failure leaves the source in place for the next run.  The steps are not
transactional: a crash between 5 and 7 can leave a secured file with no
email queued, or an orphaned intermediate.
"""
from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal

from sqlalchemy.orm import Session

from pdfwrap.core.config import PdfWrapConfig
from pdfwrap.core.constants import PROGRAM_VERSION
from pdfwrap.core.errors import ExternalToolError
from pdfwrap.db.repositories import CustomerRepository
from pdfwrap.notification.email_dispatch import EmailDispatcher
from pdfwrap.production.tools import PdfTool

logger = logging.getLogger(__name__)


@dataclass
class SecuredDocument:
    """Outcome of securing one file from the output folder."""

    source: Path
    status: Literal["SECURED", "SKIPPED", "FAILED"]
    plan_no: str | None = None
    path: Path | None = None
    reason: str | None = None


@dataclass
class SecureReport:
    documents: list[SecuredDocument] = field(default_factory=list)

    @property
    def secured(self) -> int:
        return sum(1 for d in self.documents if d.status == "SECURED")

    @property
    def skipped(self) -> list[SecuredDocument]:
        return [d for d in self.documents if d.status == "SKIPPED"]

    @property
    def failed(self) -> list[SecuredDocument]:
        return [d for d in self.documents if d.status == "FAILED"]


def derive_user_password(phone: str | None) -> str:
    """The document password is the phone number with every space removed."""
    return (phone or "").replace(" ", "")


def pdf_date(moment: datetime) -> str:
    return f"D'{moment:%Y%m%d%H%M%S}{moment.microsecond // 1000:03d}'"


def write_info_file(path: Path, *, title: str, author: str, producer: str, created: datetime) -> Path:
    """Write PDF metadata in the PDF tool's ``update_info`` format."""
    entries = [
        ("Title", title),
        ("Author", author),
        ("Producer", producer),
        ("CreationDate", pdf_date(created)),
    ]
    lines: list[str] = []
    for key, value in entries:
        lines += ["InfoBegin", f"InfoKey: {key}", f"InfoValue: {value}"]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class SecureOutputProcessor:
    def __init__(
        self,
        db: Session,
        config: PdfWrapConfig,
        *,
        pdf_tool: PdfTool | None = None,
        dispatcher: EmailDispatcher | None = None,
    ) -> None:
        self.db = db
        self.pdftk = config.pdftk
        self.email = config.email
        self.folder = Path(config.pdftk.folder)
        self.info_file = self.folder / config.pdftk.infofile
        self.pdf_tool = pdf_tool or PdfTool.from_config(config)
        self.dispatcher = dispatcher or EmailDispatcher(db, config.email)
        self.customers = CustomerRepository(db)
        self._mask = re.compile(config.pdftk.pdf_mask)
        self._plan_no = re.compile(re.escape(config.pdftk.pdf_prefix) + r"-?(\d+)-")

    # -- naming -------------------------------------------------------------

    def extract_plan_no(self, filename: str) -> str | None:
        match = self._plan_no.match(filename)
        return match.group(1) if match else None

    def intermediate_path(self, source: Path) -> Path:
        return source.with_name(source.name.replace(self.pdftk.pdf_prefix, self.pdftk.pdf_prefix2, 1))

    def secured_path(self, source: Path) -> Path:
        return source.with_name(source.name.replace(self.pdftk.pdf_prefix, self.pdftk.pdf_prefix3, 1))

    def permissions_for(self, product: str) -> list[str]:
        terms = self.email.terms.get(product)
        if terms is None:
            logger.warning("No terms configured for product %r; applying no permissions", product)
            return []
        return shlex.split(terms)

    # -- run ----------------------------------------------------------------

    def write_info_file(self, now: datetime | None = None) -> Path:
        self.folder.mkdir(parents=True, exist_ok=True)
        return write_info_file(
            self.info_file,
            title=self.pdftk.title,
            author=self.pdftk.author,
            producer=PROGRAM_VERSION,
            created=now or datetime.now(),
        )

    def pending_files(self) -> list[Path]:
        if not self.folder.is_dir():
            return []
        return sorted(
            path for path in self.folder.iterdir() if path.is_file() and self._mask.search(path.name)
        )

    def secure_folder(self) -> SecureReport:
        """Write the info file and secure every matching file in the folder."""
        logger.info("Making secure PDFs ...")
        self.write_info_file()
        report = SecureReport()
        for path in self.pending_files():
            report.documents.append(self.secure(path))

        logger.info("%d PDFs secured", report.secured)
        if report.failed:
            logger.warning("%d PDFs could not be secured", len(report.failed))
        return report

    def secure(self, source: Path) -> SecuredDocument:
        """Secure *source* and queue its email; the email row is committed."""
        logger.debug("Securing %s", source.name)
        plan_no = self.extract_plan_no(source.name)
        if plan_no is None:
            logger.warning("Cannot process file %s. No plan number", source.name)
            return SecuredDocument(source=source, status="SKIPPED", reason="no plan number")

        customer = self.customers.get_record(
            plan_no,
            bad_product_default=self.email.bad_product_default,
            bad_email_default=self.email.bad_email_default,
        )
        if customer is None:
            logger.warning("Cannot process file %s. No customer for plan %s", source.name, plan_no)
            return SecuredDocument(source=source, status="SKIPPED", plan_no=plan_no, reason="no customer")

        password = derive_user_password(customer.phone)
        if not password:
            logger.info("Plan %s has no phone number; %s gets no user password", plan_no, source.name)

        intermediate = self.intermediate_path(source)
        secured = self.secured_path(source)
        try:
            self.pdf_tool.restrict(source, intermediate, self.permissions_for(customer.product))
            self.pdf_tool.update_info(
                intermediate,
                secured,
                self.info_file,
                owner_password=self.pdftk.owner_pass,
                user_password=password,
            )
        except ExternalToolError as exc:
            logger.error("Securing %s failed: %s", source.name, exc)
            intermediate.unlink(missing_ok=True)
            secured.unlink(missing_ok=True)
            return SecuredDocument(source=source, status="FAILED", plan_no=plan_no, reason=str(exc))

        source.unlink(missing_ok=True)
        intermediate.unlink(missing_ok=True)

        self.dispatcher.enqueue(secured, customer)
        self.db.commit()
        return SecuredDocument(source=source, status="SECURED", plan_no=plan_no, path=secured)
