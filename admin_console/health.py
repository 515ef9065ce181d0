# admin_console/health.py
from fastapi import APIRouter

from admin_console.dependencies.services import get_admin_client_cached

router = APIRouter()


@router.get("/health")
def health():
    client = get_admin_client_cached()
    return {"ok": True, "mode": "mock" if client.use_mock_data else "live"}
