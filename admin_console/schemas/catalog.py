from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer


def _decimal_to_number(value: Decimal) -> Union[int, float]:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def is_exact_wire_number(value: Decimal) -> bool:
    """True when the JSON number written for ``value`` reads back as the same amount."""

    if value == value.to_integral_value():
        return True
    return Decimal(repr(float(value))) == value


# Prices keep their exact catalog value and go back on the wire as JSON numbers.
Money = Annotated[
    Decimal,
    PlainSerializer(_decimal_to_number, return_type=Union[int, float], when_used="json"),
]


class Product(BaseModel):
    """A catalog product as served by ``/api/admin/getAllProducts``."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    product_id: str = Field(alias="_id")
    name: str = Field(alias="product")
    unit_price: Money = Field(alias="unitPrice")


class Client(BaseModel):
    """A catalog client as served by ``/api/admin/getAllClients``."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore", coerce_numbers_to_str=True
    )

    record_id: str = Field(alias="_id")
    client_id: str
    client_name: str = Field(default="", alias="clientName")
    company_name: str = Field(default="", alias="companyName")
    brand_name: str = Field(default="", alias="brandName")


class ClientOption(BaseModel):
    record_id: str
    label: str


class ProductOption(BaseModel):
    product_id: str
    label: str
    unit_price: Money


class ClientSummary(BaseModel):
    """Card shown once a client has been picked."""

    client_id: str
    client_name: str
    company_name: str
