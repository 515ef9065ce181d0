from __future__ import annotations

import logging
from typing import Mapping, Tuple

from admin_console.schemas.catalog import Product
from admin_console.schemas.invoice import (
    LineItemUpdate,
    ServiceLineItem,
    SetDescription,
    SetDuration,
    SetEndDate,
    SetProduct,
    SetQuantity,
    SetStartDate,
)

logger = logging.getLogger(__name__)


class LineItemStore:
    """Ordered collection of service line items addressed by position.

    Every operation swaps in a new tuple, so a sequence handed out by
    :attr:`items` keeps describing the state it was read from.
    """

    def __init__(self) -> None:
        self._items: Tuple[ServiceLineItem, ...] = ()

    @property
    def items(self) -> Tuple[ServiceLineItem, ...]:
        return self._items

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._items)

    def append(self) -> Tuple[ServiceLineItem, ...]:
        self._items = self._items + (ServiceLineItem(),)
        return self._items

    def remove_at(self, index: int) -> Tuple[ServiceLineItem, ...]:
        if not self._in_range(index):
            logger.debug("Ignoring removal of line item %s; %s items held", index, len(self._items))
            return self._items
        self._items = self._items[:index] + self._items[index + 1 :]
        return self._items

    def update_at(
        self,
        index: int,
        update: LineItemUpdate,
        products: Mapping[str, Product],
    ) -> Tuple[ServiceLineItem, ...]:
        if not self._in_range(index):
            logger.debug("Ignoring %s on line item %s; %s items held", update.op, index, len(self._items))
            return self._items
        current = self._items[index]
        replacement = current.model_copy(update=_changes_for(update, products))
        self._items = self._items[:index] + (replacement,) + self._items[index + 1 :]
        return self._items


def _changes_for(update: LineItemUpdate, products: Mapping[str, Product]) -> dict:
    if isinstance(update, SetDescription):
        return {"service_description": update.value}
    if isinstance(update, SetDuration):
        return {"duration": update.value}
    if isinstance(update, SetQuantity):
        return {"quantity": update.value}
    if isinstance(update, SetStartDate):
        return {"start_date": update.value}
    if isinstance(update, SetEndDate):
        return {"end_date": update.value}
    if isinstance(update, SetProduct):
        product = products.get(update.product_id)
        if product is None:
            logger.info("Product %s is not in the catalog; clearing selection", update.product_id)
            return {"product": None}
        # snapshot, later catalog reloads must not reach into the line item
        return {"product": product.model_copy(deep=True)}
    raise TypeError(f"Unsupported line item update: {update!r}")
