"""Direct-debit notice page 2.

Before the ``dd_notify`` queue is produced, the standard letter configured
as ``dds.page2_ltr`` is resolved against each unedited notice's account
reference and stored in ``ltr2Body``.  The report template prints that
text as-is; it is not substituted again.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from pdfwrap.core.errors import FieldFormatError
from pdfwrap.db.repositories import DDNoticeRepository, StdLetterRepository
from pdfwrap.letters.substitution import TemplateEngine

logger = logging.getLogger(__name__)


class NoticeFormatter:
    def __init__(self, db: Session, engine: TemplateEngine, page2_letter_id: int) -> None:
        self.db = db
        self.engine = engine
        self.page2_letter_id = page2_letter_id
        self.letters = StdLetterRepository(db)
        self.notices = DDNoticeRepository(db)

    def prepare(self) -> int:
        """Write the resolved page-2 body onto every unedited notice.

        Returns the number of notices updated.  A notice whose fields cannot
        be formatted is logged and left unchanged.
        """
        body = self.letters.get_body(self.page2_letter_id)
        if body is None:
            logger.warning("Page 2 letter %s not found; notices get an empty page 2", self.page2_letter_id)
            body = ""

        updated = 0
        for notice in self.notices.list_unedited():
            try:
                page2 = self.engine.substitute(body, notice.account_ref)
            except FieldFormatError as exc:
                logger.error("Cannot format page 2 for notice %s: %s", notice.id, exc)
                continue
            self.notices.update(notice, page2_body=page2)
            updated += 1

        self.db.commit()
        logger.info("%d DD notices prepared", updated)
        return updated
