from __future__ import annotations

import asyncio
import logging
import re
from datetime import date, datetime, time, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from admin_console.clients.admin_api import AdminApiClient
from admin_console.schemas.catalog import Client, is_exact_wire_number
from admin_console.schemas.invoice import (
    CreateInvoiceRequest,
    InvoiceServiceEntry,
    ServiceLineItem,
    SubmissionOutcome,
    SubmissionState,
)
from admin_console.services.downloads import LocalDownloadSaver
from admin_console.services.exceptions import (
    DownstreamServiceError,
    InvoiceValidationError,
    ServiceError,
    UnexpectedResponseError,
)
from admin_console.services.mock_store import InvoiceRepository, get_mock_store
from admin_console.services.notifications import Notifier

logger = logging.getLogger(__name__)

CREATE_INVOICE_PATH = "/api/admin/createInvoice"
DEFAULT_FILENAME = "invoice_slip.pdf"
SUCCESS_MESSAGE = "Invoice Slip is downloaded successfully."
GENERIC_FAILURE_MESSAGE = "Failed to download Invoice slip."

_LEADING_INT = re.compile(r"^\s*([+-]?[0-9]+)", re.ASCII)


def parse_tax_rate(raw: str | int | None) -> int:
    """Read the GST field as an integer using its leading digits."""

    if isinstance(raw, bool):
        raise InvoiceValidationError("GST must be a whole number.")
    if isinstance(raw, int):
        return raw
    match = _LEADING_INT.match(raw or "")
    if not match:
        raise InvoiceValidationError("GST must be a whole number.")
    return int(match.group(1))


def to_wire_instant(day: date, tz: ZoneInfo) -> str:
    """Midnight of ``day`` in ``tz`` as a UTC timestamp with millisecond precision."""

    local_midnight = datetime.combine(day, time.min, tzinfo=tz)
    instant = local_midnight.astimezone(timezone.utc)
    return instant.strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"


class InvoiceSubmitter:
    """Validates an invoice draft, submits it and saves the returned slip."""

    def __init__(
        self,
        client: AdminApiClient,
        *,
        saver: LocalDownloadSaver,
        notifier: Notifier,
        filename: str = DEFAULT_FILENAME,
        tz: str = "UTC",
        repository: InvoiceRepository | None = None,
    ) -> None:
        self._client = client
        self._saver = saver
        self._notifier = notifier
        self._filename = filename
        self._tz = ZoneInfo(tz)
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().invoices
        self._lock = asyncio.Lock()
        self.state = SubmissionState.IDLE
        self.last_outcome: Optional[SubmissionOutcome] = None

    def _transition(self, state: SubmissionState) -> None:
        logger.debug("Invoice submission %s -> %s", self.state.value, state.value)
        self.state = state

    def build_request(
        self,
        client: Client | None,
        tax_rate: str | int | None,
        items: Sequence[ServiceLineItem],
    ) -> CreateInvoiceRequest:
        if client is None:
            raise InvoiceValidationError("Please select a client.")
        gst = parse_tax_rate(tax_rate)
        if not items:
            raise InvoiceValidationError("Add at least one service to the invoice.")

        services = []
        for position, item in enumerate(items, start=1):
            if not item.submittable:
                raise InvoiceValidationError(
                    f"Service {position} needs a product, a start date and an end date."
                )
            if not is_exact_wire_number(item.product.unit_price):
                raise InvoiceValidationError(
                    f"Service {position} has a unit price that cannot be sent without rounding."
                )
            services.append(
                InvoiceServiceEntry(
                    product=item.product.name,
                    service_description=item.service_description,
                    duration=item.duration,
                    quantity=item.quantity,
                    unit_price=item.product.unit_price,
                    start_date=to_wire_instant(item.start_date, self._tz),
                    end_date=to_wire_instant(item.end_date, self._tz),
                )
            )
        return CreateInvoiceRequest(client_id=client.client_id, gst=gst, services=services)

    async def submit(
        self,
        client: Client | None,
        tax_rate: str | int | None,
        items: Sequence[ServiceLineItem],
    ) -> SubmissionOutcome:
        if self._lock.locked():
            logger.warning("Ignoring invoice submit while another one is in flight")
            return SubmissionOutcome(
                status="ignored", message="An invoice is already being submitted."
            )

        async with self._lock:
            outcome = await self._run(client, tax_rate, tuple(items))
        self.last_outcome = outcome
        return outcome

    async def _run(
        self,
        client: Client | None,
        tax_rate: str | int | None,
        items: Sequence[ServiceLineItem],
    ) -> SubmissionOutcome:
        self._transition(SubmissionState.VALIDATING)
        try:
            request = self.build_request(client, tax_rate, items)
        except InvoiceValidationError as exc:
            return self._fail("validation", str(exc))

        self._transition(SubmissionState.SUBMITTING)
        payload = request.model_dump(mode="json", by_alias=True)
        logger.info(
            "Creating invoice for client %s with %s services", request.client_id, len(request.services)
        )
        try:
            document = await self._create(payload)
        except DownstreamServiceError as exc:
            kind = "transport" if exc.status_code is None else "server"
            return self._fail(kind, exc.server_message or GENERIC_FAILURE_MESSAGE)
        except UnexpectedResponseError as exc:
            return self._fail("unexpected_response", exc.server_message or GENERIC_FAILURE_MESSAGE)
        except ServiceError as exc:
            logger.error("Invoice creation failed: %s", exc)
            return self._fail("server", GENERIC_FAILURE_MESSAGE)

        try:
            saved_path = self._saver.save(document, self._filename)
        except OSError:
            logger.exception("Unable to save %s", self._filename)
            return self._fail("download", GENERIC_FAILURE_MESSAGE)

        self._transition(SubmissionState.SUCCEEDED)
        self._notifier.success(SUCCESS_MESSAGE)
        return SubmissionOutcome(status="succeeded", message=SUCCESS_MESSAGE, saved_path=saved_path)

    async def _create(self, payload: dict) -> bytes:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock invoice repository not configured")
            return await self._repository.create(payload)

        try:
            return await self._client.post_for_document(CREATE_INVOICE_PATH, payload)
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating invoice")
            raise ServiceError("Failed to create invoice", cause=exc)

    def _fail(self, kind: str, message: str) -> SubmissionOutcome:
        logger.info("Invoice submission failed (%s): %s", kind, message)
        self._transition(SubmissionState.FAILED)
        self._notifier.error(message)
        return SubmissionOutcome(status="failed", error_kind=kind, message=message)
