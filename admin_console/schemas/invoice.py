from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

import dateparser
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from admin_console.schemas.catalog import (
    ClientOption,
    ClientSummary,
    Money,
    Product,
    ProductOption,
)


def parse_calendar_date(value):
    """Coerce picker input into a calendar date.

    ISO strings and ``date``/``datetime`` objects pass straight through; any
    other text is handed to ``dateparser`` with day-first ordering.
    """

    if value is None or isinstance(value, date):
        if isinstance(value, datetime):
            return value.date()
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        parsed = dateparser.parse(
            text,
            settings={"DATE_ORDER": "DMY", "PREFER_DAY_OF_MONTH": "first"},
            languages=["en"],
        )
        if parsed is None:
            raise ValueError(f"Could not understand date '{value}'")
        return parsed.date()
    return value


class ServiceLineItem(BaseModel):
    """One service entry on an invoice draft."""

    model_config = ConfigDict(frozen=True)

    product: Optional[Product] = None
    service_description: str = ""
    duration: str = ""
    quantity: int = Field(default=1, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @computed_field
    @property
    def submittable(self) -> bool:
        return (
            self.product is not None
            and self.start_date is not None
            and self.end_date is not None
        )


class SetDescription(BaseModel):
    op: Literal["set_description"] = "set_description"
    value: str


class SetDuration(BaseModel):
    op: Literal["set_duration"] = "set_duration"
    value: str


class SetQuantity(BaseModel):
    op: Literal["set_quantity"] = "set_quantity"
    value: int = Field(..., ge=1)


class SetStartDate(BaseModel):
    op: Literal["set_start_date"] = "set_start_date"
    value: Optional[date] = None

    @field_validator("value", mode="before")
    def _parse_date(cls, value):
        return parse_calendar_date(value)


class SetEndDate(BaseModel):
    op: Literal["set_end_date"] = "set_end_date"
    value: Optional[date] = None

    @field_validator("value", mode="before")
    def _parse_date(cls, value):
        return parse_calendar_date(value)


class SetProduct(BaseModel):
    op: Literal["set_product"] = "set_product"
    product_id: str


LineItemUpdate = Annotated[
    Union[SetDescription, SetDuration, SetQuantity, SetStartDate, SetEndDate, SetProduct],
    Field(discriminator="op"),
]


class InvoiceServiceEntry(BaseModel):
    """A line item as sent to ``/api/admin/createInvoice``."""

    model_config = ConfigDict(populate_by_name=True)

    product: str
    service_description: str = Field(alias="serviceDescription")
    duration: str
    quantity: int
    unit_price: Money = Field(alias="unitPrice")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")


class CreateInvoiceRequest(BaseModel):
    client_id: str
    gst: int
    services: List[InvoiceServiceEntry]


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmissionOutcome(BaseModel):
    status: Literal["succeeded", "failed", "ignored"]
    error_kind: Optional[
        Literal["validation", "server", "transport", "unexpected_response", "download"]
    ] = None
    message: str
    saved_path: Optional[Path] = None


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str


class SessionView(BaseModel):
    session_id: str
    clients: List[ClientOption] = Field(default_factory=list)
    products: List[ProductOption] = Field(default_factory=list)
    selected_client: Optional[ClientSummary] = None
    tax_rate: str
    services: List[ServiceLineItem]
    submission_state: SubmissionState
    last_outcome: Optional[SubmissionOutcome] = None
    notifications: List[Notification] = Field(default_factory=list)

