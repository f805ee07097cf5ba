"""One production run.

Stage order
-----------
1. letters     : claim and produce the ``crninja.crletters`` queue
2. DD notices  : prime page-2 bodies, then claim and produce ``crninja.crdouble``
3. secure      : password-protect every produced PDF and queue its email

Each stage runs to completion before the next starts.  Per-document
failures are collected in the stage reports; database errors propagate.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from pdfwrap.core.config import PdfWrapConfig
from pdfwrap.letters.dd_notices import NoticeFormatter
from pdfwrap.letters.fields import FieldResolver
from pdfwrap.letters.substitution import TemplateEngine
from pdfwrap.production.producer import DocumentProducer, ProductionReport
from pdfwrap.production.secure import SecureOutputProcessor, SecureReport

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    letters: ProductionReport
    notices_prepared: int
    notices: ProductionReport
    secured: SecureReport

    @property
    def generated(self) -> int:
        return self.letters.generated + self.notices.generated

    @property
    def failures(self) -> int:
        return len(self.letters.failed) + len(self.notices.failed) + len(self.secured.failed)


def build_template_engine(db: Session, config: PdfWrapConfig) -> TemplateEngine:
    resolver = FieldResolver(
        db,
        currency_symbol=config.letters.currency_symbol,
        default_date=config.letters.default_date,
    )
    return TemplateEngine(resolver)


def run_pipeline(
    db: Session,
    config: PdfWrapConfig,
    *,
    producer: DocumentProducer | None = None,
    securer: SecureOutputProcessor | None = None,
) -> RunSummary:
    producer = producer or DocumentProducer(db, config)
    securer = securer or SecureOutputProcessor(db, config)

    logger.info("Processing letters ...")
    letters = producer.produce(config.crninja.crletters)

    logger.info("Processing DDs ...")
    formatter = NoticeFormatter(db, build_template_engine(db, config), config.dds.page2_ltr)
    prepared = formatter.prepare()
    notices = producer.produce(config.crninja.crdouble)

    secured = securer.secure_folder()

    summary = RunSummary(letters=letters, notices_prepared=prepared, notices=notices, secured=secured)
    if summary.failures:
        logger.warning("Run complete with %d failures", summary.failures)
    else:
        logger.info("Run complete")
    return summary
