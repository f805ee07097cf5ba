"""Document production for one print queue.

Claims the pending batch of a queue and, per claimed row, renders the
report into ``<prefix><plan>-<letter>-draft.pdf``, overlays the letterhead
into ``<prefix><plan>-<letter>.pdf`` and removes the draft.

A renderer or PDF tool failure marks only that row ``FAILED`` and removes
its draft and any partial output; database errors propagate and end the
run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from sqlalchemy.orm import Session

from pdfwrap.core.config import PdfWrapConfig, StreamConfig
from pdfwrap.core.constants import DRAFT_MARKER
from pdfwrap.core.errors import ExternalToolError
from pdfwrap.production.batch import BatchClaim, BatchClaimer, ClaimedRow
from pdfwrap.production.tools import PdfTool, ReportRenderer

logger = logging.getLogger(__name__)


@dataclass
class ProducedDocument:
    """Outcome of producing one claimed queue row."""

    batch: int
    plan_no: str
    letter_id: str
    path: Path
    status: Literal["PRODUCED", "FAILED"]
    error: str | None = None


@dataclass
class ProductionReport:
    table: str
    claim: BatchClaim
    documents: list[ProducedDocument] = field(default_factory=list)

    @property
    def generated(self) -> int:
        return sum(1 for d in self.documents if d.status == "PRODUCED")

    @property
    def failed(self) -> list[ProducedDocument]:
        return [d for d in self.documents if d.status == "FAILED"]


class DocumentProducer:
    def __init__(
        self,
        db: Session,
        config: PdfWrapConfig,
        *,
        claimer: BatchClaimer | None = None,
        renderer: ReportRenderer | None = None,
        pdf_tool: PdfTool | None = None,
    ) -> None:
        self.config = config
        self.folder = Path(config.pdftk.folder)
        self.prefix = config.pdftk.pdf_prefix
        self.claimer = claimer or BatchClaimer(db)
        self.renderer = renderer or ReportRenderer.from_config(config)
        self.pdf_tool = pdf_tool or PdfTool.from_config(config)
        self.folder.mkdir(parents=True, exist_ok=True)

    def draft_path(self, plan_no: str, letter_id: str) -> Path:
        return self.folder / f"{self.prefix}{plan_no}-{letter_id}{DRAFT_MARKER}.pdf"

    def output_path(self, plan_no: str, letter_id: str) -> Path:
        return self.folder / f"{self.prefix}{plan_no}-{letter_id}.pdf"

    # -- batch --------------------------------------------------------------

    def produce(self, stream: StreamConfig) -> ProductionReport:
        """Claim the pending rows of *stream* and produce one PDF per row."""
        claim = self.claimer.claim(stream)
        report = ProductionReport(table=stream.table, claim=claim)
        for row in self.claimer.rows(stream, claim):
            report.documents.append(self.produce_row(stream, row))

        logger.info("%d PDFs generated", report.generated)
        if report.failed:
            logger.warning("%d PDFs failed for %s", len(report.failed), stream.table)
        return report

    # -- single row ---------------------------------------------------------

    def produce_row(self, stream: StreamConfig, row: ClaimedRow) -> ProducedDocument:
        draft = self.draft_path(row.plan_no, row.letter_id)
        output = self.output_path(row.plan_no, row.letter_id)
        background = self.folder / stream.blank if stream.blank else None

        try:
            self.renderer.render(stream.rpt, draft, row.batch)
            self.pdf_tool.overlay(draft, output, background)
        except ExternalToolError as exc:
            logger.error("Batch %d (plan %s) failed: %s", row.batch, row.plan_no, exc)
            draft.unlink(missing_ok=True)
            output.unlink(missing_ok=True)
            return ProducedDocument(
                batch=row.batch,
                plan_no=row.plan_no,
                letter_id=row.letter_id,
                path=output,
                status="FAILED",
                error=str(exc),
            )

        draft.unlink(missing_ok=True)
        return ProducedDocument(
            batch=row.batch,
            plan_no=row.plan_no,
            letter_id=row.letter_id,
            path=output,
            status="PRODUCED",
        )
