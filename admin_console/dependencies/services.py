from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from functools import lru_cache

from fastapi import Depends, HTTPException, Request

from admin_console.clients.admin_api import AdminApiClient
from admin_console.config import Settings, get_settings
from admin_console.services import InvoiceComposer
from admin_console.services.downloads import LocalDownloadSaver

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_admin_client_cached() -> AdminApiClient:
    settings = get_settings()
    return AdminApiClient(
        str(settings.api_base_url) if settings.api_base_url else None,
        timeout=settings.api_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.api_token,
    )


def get_admin_client(settings: Settings = Depends(get_settings)) -> AdminApiClient:
    return get_admin_client_cached()


class ComposerSessions:
    """Invoice composer sessions currently open against this process.

    Holds at most ``max_sessions``; opening one more closes the session that
    was used least recently.
    """

    def __init__(self, max_sessions: int = 100) -> None:
        self._max_sessions = max_sessions
        self._sessions: "OrderedDict[str, InvoiceComposer]" = OrderedDict()

    def add(self, composer: InvoiceComposer) -> InvoiceComposer:
        self._sessions[composer.session_id] = composer
        self._sessions.move_to_end(composer.session_id)
        while len(self._sessions) > self._max_sessions:
            session_id, evicted = self._sessions.popitem(last=False)
            logger.info("Evicting idle invoice session %s", session_id)
            evicted.close()
        return composer

    def get(self, session_id: str) -> InvoiceComposer | None:
        composer = self._sessions.get(session_id)
        if composer is not None:
            self._sessions.move_to_end(session_id)
        return composer

    def discard(self, session_id: str) -> bool:
        composer = self._sessions.pop(session_id, None)
        if composer is None:
            return False
        composer.close()
        return True

    def __len__(self) -> int:
        return len(self._sessions)


def get_sessions(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ComposerSessions:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        sessions = request.app.state.sessions = ComposerSessions(settings.max_sessions)
    return sessions


def new_composer(
    settings: Settings = Depends(get_settings),
    client: AdminApiClient = Depends(get_admin_client),
) -> InvoiceComposer:
    session_id = uuid.uuid4().hex
    return InvoiceComposer(
        client,
        saver=LocalDownloadSaver(settings.download_dir / session_id),
        filename=settings.invoice_filename,
        tz=settings.timezone,
        session_id=session_id,
    )


def get_composer(
    session_id: str,
    sessions: ComposerSessions = Depends(get_sessions),
) -> InvoiceComposer:
    composer = sessions.get(session_id)
    if composer is None:
        raise HTTPException(status_code=404, detail="Unknown invoice session")
    return composer
