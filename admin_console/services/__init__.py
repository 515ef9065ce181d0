"""Service package public API definitions.

``admin_console.clients.admin_api`` imports ``admin_console.services.exceptions``,
and the service implementations import the client, so the implementations are
loaded lazily on first attribute access to keep that import cycle open.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "InvoiceComposer",
    "InvoiceSubmitter",
    "LineItemStore",
    "ReferenceDataLoader",
]

_SERVICE_MODULES = {
    "InvoiceComposer": "composer",
    "InvoiceSubmitter": "invoice",
    "LineItemStore": "line_items",
    "ReferenceDataLoader": "reference_data",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .composer import InvoiceComposer as InvoiceComposer
    from .invoice import InvoiceSubmitter as InvoiceSubmitter
    from .line_items import LineItemStore as LineItemStore
    from .reference_data import ReferenceDataLoader as ReferenceDataLoader
