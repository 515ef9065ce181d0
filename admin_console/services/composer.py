from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from admin_console.clients.admin_api import AdminApiClient
from admin_console.schemas.catalog import (
    Client,
    ClientOption,
    ClientSummary,
    ProductOption,
)
from admin_console.schemas.invoice import (
    LineItemUpdate,
    Notification,
    ServiceLineItem,
    SessionView,
    SubmissionOutcome,
)
from admin_console.services.downloads import LocalDownloadSaver
from admin_console.services.invoice import DEFAULT_FILENAME, InvoiceSubmitter
from admin_console.services.line_items import LineItemStore
from admin_console.services.notifications import Notifier
from admin_console.services.reference_data import ReferenceData, ReferenceDataLoader

logger = logging.getLogger(__name__)


class InvoiceComposer:
    """One invoice form session.

    Owns the catalog tables, the selected client, the GST input and the line
    items, and hands the catalog to the collaborators that need it.
    """

    def __init__(
        self,
        client: AdminApiClient,
        *,
        saver: LocalDownloadSaver,
        filename: str = DEFAULT_FILENAME,
        tz: str = "UTC",
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.reference = ReferenceData()
        self.store = LineItemStore()
        self.notifier = Notifier()
        self.selected_client: Optional[Client] = None
        self.tax_rate = "0"
        self._saver = saver
        self._loader = ReferenceDataLoader(client)
        self.submitter = InvoiceSubmitter(
            client,
            saver=saver,
            notifier=self.notifier,
            filename=filename,
            tz=tz,
        )

    async def mount(self) -> None:
        logger.info("Loading reference data for session %s", self.session_id)
        await self._loader.load(self.reference)

    def select_client(self, record_id: str | None) -> Optional[Client]:
        client = self.reference.clients.get(record_id) if record_id else None
        self.selected_client = client.model_copy() if client is not None else None
        return self.selected_client

    def set_tax_rate(self, value: str) -> None:
        self.tax_rate = value

    def append_service(self) -> Tuple[ServiceLineItem, ...]:
        return self.store.append()

    def remove_service(self, index: int) -> Tuple[ServiceLineItem, ...]:
        return self.store.remove_at(index)

    def update_service(self, index: int, update: LineItemUpdate) -> Tuple[ServiceLineItem, ...]:
        return self.store.update_at(index, update, self.reference.products)

    async def submit(self) -> SubmissionOutcome:
        return await self.submitter.submit(
            self.selected_client, self.tax_rate, self.store.items
        )

    def slip_path(self) -> Optional[Path]:
        """Where the last successful submission saved its slip, if it is still there."""

        outcome = self.submitter.last_outcome
        if outcome is None or outcome.status != "succeeded" or outcome.saved_path is None:
            return None
        return outcome.saved_path if outcome.saved_path.exists() else None

    def close(self) -> None:
        logger.info("Closing invoice session %s", self.session_id)
        self._saver.purge()

    def drain_notifications(self) -> List[Notification]:
        return self.notifier.drain()

    def view(self) -> SessionView:
        selected = None
        if self.selected_client is not None:
            selected = ClientSummary(
                client_id=self.selected_client.client_id,
                client_name=self.selected_client.client_name,
                company_name=self.selected_client.company_name,
            )
        return SessionView(
            session_id=self.session_id,
            clients=[
                ClientOption(record_id=client.record_id, label=client.brand_name)
                for client in self.reference.clients.values()
            ],
            products=[
                ProductOption(
                    product_id=product.product_id,
                    label=f"{product.name} - Unit Price - {product.unit_price}",
                    unit_price=product.unit_price,
                )
                for product in self.reference.products.values()
            ],
            selected_client=selected,
            tax_rate=self.tax_rate,
            services=list(self.store.items),
            submission_state=self.submitter.state,
            last_outcome=self.submitter.last_outcome,
            notifications=self.drain_notifications(),
        )
