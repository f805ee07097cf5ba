"""Batch claiming for the print queues.

Every queue row carries ``PrintBatch``; zero means unclaimed.  A claim
gives each pending email row its own batch number, continuing from the
highest number already in the table, so numbers are never reused and the
rows of one run form the contiguous range ``(previous_max, last_batch]``.

The lock-read-assign sequence runs in a transaction of its own: any
transaction already open on the session is committed first, so no read
snapshot taken earlier (a connectivity probe, say) is reused.  Pending rows
are selected ``FOR UPDATE`` before the maximum is read, so a second run on
an engine with row locking waits for the first to commit and then numbers
after it.  Rows inserted once the pending rows have been selected keep
``PrintBatch = 0`` and are left for the next run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import Date, Integer, bindparam, column, func, literal_column, select, table, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import TableClause

from pdfwrap.core.config import StreamConfig
from pdfwrap.core.constants import DELMETH_EMAIL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchClaim:
    """Batch numbers ``previous_max + 1 .. last_batch`` belong to this run."""

    previous_max: int
    last_batch: int

    @property
    def size(self) -> int:
        return self.last_batch - self.previous_max

    @property
    def is_empty(self) -> bool:
        return self.last_batch == self.previous_max

    def __contains__(self, batch: int) -> bool:
        return self.previous_max < batch <= self.last_batch


@dataclass(frozen=True)
class ClaimedRow:
    batch: int
    plan_no: str
    letter_id: str


def _queue_table(stream: StreamConfig) -> TableClause:
    columns = [
        column("PrintBatch", Integer),
        column("DelMeth", Integer),
    ]
    if stream.key_column not in ("PrintBatch", "DelMeth"):
        columns.append(column(stream.key_column))
    if stream.printed_when:
        columns.append(column(stream.printed_when, Date))
    return table(stream.table, *columns)


class BatchClaimer:
    def __init__(self, db: Session) -> None:
        self.db = db

    def claim(self, stream: StreamConfig, *, today: date | None = None) -> BatchClaim:
        """Assign batch numbers to every pending email row and commit.

        Stamps the stream's printed-at column with *today* when configured.
        An empty queue yields an empty claim.
        """
        if self.db.in_transaction():
            self.db.commit()

        queue = _queue_table(stream)
        batch_col = queue.c.PrintBatch
        key_col = queue.c[stream.key_column]

        try:
            pending = self.db.execute(
                select(key_col)
                .where(batch_col == 0, queue.c.DelMeth == DELMETH_EMAIL)
                .order_by(key_col)
                .with_for_update()
            ).scalars().all()

            previous_max = self.db.execute(
                select(func.coalesce(func.max(batch_col), 0)).select_from(queue)
            ).scalar_one()

            if pending:
                values = {"PrintBatch": bindparam("new_batch", type_=Integer)}
                if stream.printed_when:
                    values[stream.printed_when] = bindparam("printed_on", type_=Date)
                stmt = (
                    update(queue)
                    .where(key_col == bindparam("row_key"), batch_col == 0)
                    .values(values)
                )
                params = [
                    {"row_key": key, "new_batch": previous_max + offset}
                    for offset, key in enumerate(pending, start=1)
                ]
                if stream.printed_when:
                    printed_on = today or date.today()
                    for param in params:
                        param["printed_on"] = printed_on
                self.db.execute(stmt, params)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        claim = BatchClaim(previous_max=int(previous_max), last_batch=int(previous_max) + len(pending))
        logger.debug(
            "Claimed %d rows from %s (batches %d..%d)",
            claim.size,
            stream.table,
            claim.previous_max + 1,
            claim.last_batch,
        )
        return claim

    def rows(self, stream: StreamConfig, claim: BatchClaim) -> list[ClaimedRow]:
        """Return the rows of *claim* ordered by batch number."""
        if claim.is_empty:
            return []
        queue = _queue_table(stream)
        batch_col = queue.c.PrintBatch
        stmt = (
            select(
                batch_col,
                literal_column(stream.plan_no).label("plan_no"),
                literal_column(stream.ltrid).label("letter_id"),
            )
            .select_from(queue)
            .where(batch_col > claim.previous_max, batch_col <= claim.last_batch)
            .order_by(batch_col)
        )
        return [
            ClaimedRow(batch=int(row.PrintBatch), plan_no=str(row.plan_no), letter_id=str(row.letter_id))
            for row in self.db.execute(stmt)
        ]
