from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from pdfwrap.core.constants import CUSTOMER_FIELDS
from pdfwrap.db import models

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs) -> ModelT:
        entity = self.model(**kwargs)
        self.db.add(entity)
        self.db.flush()
        return entity

    def get(self, entity_id: Any) -> ModelT | None:
        return self.db.get(self.model, entity_id)

    def update(self, entity: ModelT, **kwargs) -> ModelT:
        for key, value in kwargs.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity


@dataclass(frozen=True)
class CustomerRecord:
    """Customer fields used to key, address and personalise a secured document.

    Nulls are already replaced: product and email by the configured
    defaults, everything else by an empty string.
    """

    product: str
    email: str
    phone: str
    postcode: str
    title: str
    first_name: str
    last_name: str
    customer_password: str
    record_status: str
    plan_no: str

    def values(self) -> tuple[str, ...]:
        """Field values in ``CUSTOMER_FIELDS`` order."""
        return (
            self.product,
            self.email,
            self.phone,
            self.postcode,
            self.title,
            self.first_name,
            self.last_name,
            self.customer_password,
            self.record_status,
            self.plan_no,
        )

    def as_dict(self) -> dict[str, str]:
        return dict(zip(CUSTOMER_FIELDS, self.values()))


class CustomerRepository(BaseRepository[models.Customer]):
    model = models.Customer

    def get_record(
        self,
        plan_no: int | str,
        *,
        bad_product_default: str = "",
        bad_email_default: str = "",
    ) -> CustomerRecord | None:
        customer = self.get(int(plan_no))
        if customer is None:
            return None
        return CustomerRecord(
            product=customer.product if customer.product is not None else bad_product_default,
            email=customer.email if customer.email is not None else bad_email_default,
            phone=customer.phone or "",
            postcode=customer.postcode or "",
            title=customer.title or "",
            first_name=customer.first_name or "",
            last_name=customer.last_name or "",
            customer_password=customer.customer_password or "",
            record_status=str(customer.record_status),
            plan_no=str(customer.plan_no),
        )


class StdLetterRepository(BaseRepository[models.StdLetter]):
    model = models.StdLetter

    def get_body(self, letter_id: int) -> str | None:
        stmt = (
            select(models.StdLetter.body)
            .outerjoin(models.StdLetterHeader, models.StdLetter.header_id == models.StdLetterHeader.id)
            .outerjoin(models.StdLetterFooter, models.StdLetter.footer_id == models.StdLetterFooter.id)
            .where(models.StdLetter.id == letter_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()


class StdLetterFieldRepository(BaseRepository[models.StdLetterField]):
    model = models.StdLetterField


class DDNoticeRepository(BaseRepository[models.DDNotice]):
    model = models.DDNotice

    def list_unedited(self) -> list[models.DDNotice]:
        stmt = select(models.DDNotice).where(models.DDNotice.edited == 0).order_by(models.DDNotice.id)
        return self.db.execute(stmt).scalars().all()


class OutgoingEmailRepository(BaseRepository[models.OutgoingEmail]):
    model = models.OutgoingEmail
