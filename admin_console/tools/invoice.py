from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from pydantic import BaseModel

from admin_console.config import Settings, get_settings
from admin_console.dependencies.services import (
    ComposerSessions,
    get_composer,
    get_sessions,
    new_composer,
)
from admin_console.schemas.invoice import LineItemUpdate, SessionView, SubmissionOutcome
from admin_console.services import InvoiceComposer

router = APIRouter()


class ClientSelection(BaseModel):
    client_id: str | None = None


class TaxRateInput(BaseModel):
    value: str = ""


class ServiceUpdate(BaseModel):
    update: LineItemUpdate


@router.post("/sessions", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def open_session(
    composer: InvoiceComposer = Depends(new_composer),
    sessions: ComposerSessions = Depends(get_sessions),
):
    sessions.add(composer)
    await composer.mount()
    return composer.view()


@router.get("/sessions/{session_id}", response_model=SessionView)
async def read_session(composer: InvoiceComposer = Depends(get_composer)):
    return composer.view()


@router.delete("/sessions/{session_id}")
async def close_session(
    session_id: str,
    composer: InvoiceComposer = Depends(get_composer),
    sessions: ComposerSessions = Depends(get_sessions),
):
    sessions.discard(session_id)
    return {"status": "closed", "session_id": session_id}


@router.post("/sessions/{session_id}/reference-data/reload", response_model=SessionView)
async def reload_reference_data(composer: InvoiceComposer = Depends(get_composer)):
    await composer.mount()
    return composer.view()


@router.put("/sessions/{session_id}/client", response_model=SessionView)
async def select_client(
    req: ClientSelection,
    composer: InvoiceComposer = Depends(get_composer),
):
    composer.select_client(req.client_id)
    return composer.view()


@router.put("/sessions/{session_id}/tax-rate", response_model=SessionView)
async def set_tax_rate(
    req: TaxRateInput,
    composer: InvoiceComposer = Depends(get_composer),
):
    composer.set_tax_rate(req.value)
    return composer.view()


@router.post("/sessions/{session_id}/services", response_model=SessionView)
async def add_service(composer: InvoiceComposer = Depends(get_composer)):
    composer.append_service()
    return composer.view()


@router.delete("/sessions/{session_id}/services/{index}", response_model=SessionView)
async def remove_service(index: int, composer: InvoiceComposer = Depends(get_composer)):
    composer.remove_service(index)
    return composer.view()


@router.patch("/sessions/{session_id}/services/{index}", response_model=SessionView)
async def update_service(
    index: int,
    req: ServiceUpdate,
    composer: InvoiceComposer = Depends(get_composer),
):
    composer.update_service(index, req.update)
    return composer.view()


@router.post("/sessions/{session_id}/submit", response_model=SubmissionOutcome)
async def submit_invoice(composer: InvoiceComposer = Depends(get_composer)):
    return await composer.submit()


@router.get("/sessions/{session_id}/slip")
async def download_slip(
    composer: InvoiceComposer = Depends(get_composer),
    settings: Settings = Depends(get_settings),
):
    path = composer.slip_path()
    if path is None:
        raise HTTPException(status_code=404, detail="No invoice slip for this session")
    return FileResponse(path, media_type="application/pdf", filename=settings.invoice_filename)
