from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from billbook.dates import format_date, normalize_timestamp, now_timestamp, parse_date, today
from billbook.exceptions import ValidationError


class LineItem(BaseModel):
    # Bills copy the items they are given, so renumbering never touches the caller's objects.
    model_config = ConfigDict(validate_assignment=True, revalidate_instances="always")

    sno: int = 1
    description: str
    qty: Decimal = Field(default=Decimal("0"), ge=0)
    rate: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("description")
    @classmethod
    def _require_description(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Item description is required")
        return value

    @computed_field
    @property
    def amount(self) -> Decimal:
        return self.qty * self.rate


class Bill(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    invoice_number: str
    date: str = Field(default_factory=today)  # 'DD/MM/YYYY'
    customer_name: str
    customer_phone: str | None = None
    items: list[LineItem]
    created_at: datetime = Field(default_factory=now_timestamp)
    # Placeholders for an external sync that is not implemented.
    synced_to_google_drive: bool = False
    google_drive_file_id: str | None = None

    @field_validator("invoice_number")
    @classmethod
    def _require_invoice_number(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Invoice number is required")
        return value

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return format_date(parse_date(value))

    @field_validator("customer_name")
    @classmethod
    def _require_customer_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Customer name is required")
        return value

    @field_validator("customer_phone")
    @classmethod
    def _blank_phone_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("items")
    @classmethod
    def _require_items(cls, value: list[LineItem]) -> list[LineItem]:
        if not value:
            raise ValueError("At least one item is required")
        return value

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return normalize_timestamp(value)

    @model_validator(mode="after")
    def _number_items(self) -> Bill:
        self._renumber()
        return self

    def _renumber(self) -> None:
        for position, item in enumerate(self.items, start=1):
            if item.sno != position:
                item.sno = position

    @computed_field
    @property
    def total_amount(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))

    @property
    def date_key(self) -> str:
        """Sortable 'YYYY-MM-DD' form of ``date``."""
        return parse_date(self.date).isoformat()

    def add_item(self, description: str, qty: Decimal | int | str = 0, rate: Decimal | int | str = 0) -> LineItem:
        try:
            item = LineItem(sno=len(self.items) + 1, description=description, qty=qty, rate=rate)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from exc
        self.items.append(item)
        self._renumber()
        return item

    def remove_item(self, index: int) -> LineItem:
        if len(self.items) <= 1:
            raise ValidationError("A bill needs at least one item")
        item = self.items.pop(index)
        self._renumber()
        return item
