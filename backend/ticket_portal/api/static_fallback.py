"""Static Fallback — serves the SPA bundle and answers unknown paths with index.html.

Invariants:
    - Mounted at "/" AFTER every API route group, so API routes always win
    - Existing files are served as-is; any other GET/HEAD path gets the entry document with 200
    - Non-GET/HEAD methods keep StaticFiles' 405

Design Decisions:
    - StaticFiles subclass over a catch-all route: range requests, ETags and
      content types stay Starlette's job
    - html=True alone only serves index.html for directories, not for client-side
      routes like /some/client/route, hence the 404 → entry document rewrite
"""

import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.types import Scope

from ticket_portal.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENTRY_DOCUMENT = "index.html"


class SPAStaticFiles(StaticFiles):
    """StaticFiles that falls back to the SPA entry document on 404."""

    def __init__(self, *, directory: str, entry_document: str = ENTRY_DOCUMENT):
        super().__init__(directory=directory, html=True)
        self.entry_document = entry_document

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response(self.entry_document, scope)


def mount_static_fallback(app: FastAPI, static_dir: str) -> None:
    """Mount the SPA bundle as the last route on the app."""
    if not os.path.isdir(static_dir):
        raise ConfigurationError(
            f"STATIC_DIR {static_dir!r} is not a directory", "static_dir",
        )
    if not os.path.isfile(os.path.join(static_dir, ENTRY_DOCUMENT)):
        raise ConfigurationError(
            f"STATIC_DIR {static_dir!r} has no {ENTRY_DOCUMENT}", "static_dir",
        )
    app.mount("/", SPAStaticFiles(directory=static_dir), name="static")
    logger.info(f"SPA bundle mounted from {static_dir}")
