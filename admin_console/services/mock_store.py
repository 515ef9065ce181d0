from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from admin_console.services.exceptions import DownstreamServiceError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class CatalogRepository:
    """Seeded client and product records shaped like the admin API payloads."""

    def __init__(self) -> None:
        self._clients: List[Dict[str, Any]] = []
        self._products: List[Dict[str, Any]] = []
        self._seed()

    def _seed(self) -> None:
        self._clients = [
            {
                "_id": "c-1001",
                "client_id": "CL-1001",
                "clientName": "asha verma",
                "companyName": "Northwind Traders",
                "brandName": "Northwind",
            },
            {
                "_id": "c-1002",
                "client_id": "CL-1002",
                "clientName": "daniel okafor",
                "companyName": "Blue Harbor Logistics",
                "brandName": "Blue Harbor",
            },
            {
                "_id": "c-1003",
                "client_id": "CL-1003",
                "clientName": "mei tanaka",
                "companyName": "Sakura Wellness Pvt Ltd",
                "brandName": "Sakura Wellness",
            },
        ]
        self._products = [
            {"_id": "p-2001", "product": "Social Media Management", "unitPrice": Decimal("15000")},
            {"_id": "p-2002", "product": "Search Engine Optimisation", "unitPrice": Decimal("12500.50")},
            {"_id": "p-2003", "product": "Website Maintenance", "unitPrice": Decimal("4999.99")},
            {"_id": "p-2004", "product": "Paid Ads Management", "unitPrice": Decimal("8000")},
        ]

    def clients(self) -> List[Dict[str, Any]]:
        return [dict(client) for client in self._clients]

    def products(self) -> List[Dict[str, Any]]:
        return [dict(product) for product in self._products]

    def find_client(self, client_id: str) -> Optional[Dict[str, Any]]:
        return next(
            (dict(client) for client in self._clients if client["client_id"] == client_id),
            None,
        )

    def set_unit_price(self, product_id: str, unit_price: Decimal) -> None:
        for product in self._products:
            if product["_id"] == product_id:
                product["unitPrice"] = unit_price
                return
        raise KeyError(product_id)


class InvoiceRepository(_BaseRepository):
    def __init__(self, catalog: CatalogRepository) -> None:
        super().__init__("INV")
        self._catalog = catalog

    async def create(self, payload: Dict[str, Any]) -> bytes:
        client = self._catalog.find_client(str(payload.get("client_id")))
        if client is None:
            raise DownstreamServiceError(
                "Admin API returned an error response",
                status_code=404,
                server_message="Client not found",
            )
        services = list(payload.get("services") or [])
        if not services:
            raise DownstreamServiceError(
                "Admin API returned an error response",
                status_code=400,
                server_message="At least one service is required",
            )

        subtotal = sum(
            (Decimal(str(item["unitPrice"])) * int(item["quantity"]) for item in services),
            Decimal("0"),
        )
        gst = Decimal(int(payload.get("gst") or 0))
        total = (subtotal * (1 + gst / 100)).quantize(Decimal("0.01"))

        invoice_id = self._next_id()
        record = {
            "invoice_id": invoice_id,
            "client_id": client["client_id"],
            "company_name": client["companyName"],
            "gst": int(gst),
            "services": services,
            "total": total,
            "created_at": _utc_now_iso(),
        }
        return render_invoice_pdf(record)


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def render_invoice_pdf(record: Dict[str, Any]) -> bytes:
    """Render a single page PDF listing the invoice lines."""

    lines = [
        f"Invoice {record['invoice_id']}",
        f"Client: {record['company_name']} ({record['client_id']})",
        f"GST: {record['gst']}%",
    ]
    for item in record["services"]:
        lines.append(
            f"{item['product']} x{item['quantity']} @ {item['unitPrice']}"
            f" ({item['startDate'][:10]} to {item['endDate'][:10]})"
        )
    lines.append(f"Total: {record['total']}")

    text_ops = ["BT", "/F1 11 Tf", "50 780 Td", "14 TL"]
    for line in lines:
        text_ops.append(f"({_pdf_escape(line)}) Tj T*")
    text_ops.append("ET")
    stream = "\n".join(text_ops).encode("latin-1", "replace")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 595 842] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_at
    return bytes(out)


@dataclass
class MockDataStore:
    catalog: CatalogRepository
    invoices: InvoiceRepository


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        catalog = CatalogRepository()
        invoices = InvoiceRepository(catalog)
        _mock_store = MockDataStore(catalog=catalog, invoices=invoices)
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
