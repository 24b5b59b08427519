"""Shellvetica FastAPI server: terminal output to HTML over HTTP."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from markup import MarkupOptions
from settings import Settings, load_settings
from shellvetica import __version__, convert

logger = logging.getLogger(__name__)


class ConvertResponse(BaseModel):
    html: str
    hash: str
    bytes: int
    ts: str


class HealthResponse(BaseModel):
    status: str
    version: str


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Shellvetica", version=__version__)
    security = HTTPBearer(auto_error=False)

    def verify(creds: HTTPAuthorizationCredentials | None = Depends(security)) -> None:
        # No token configured means the server is open.
        if not settings.token:
            return
        if creds is None or creds.credentials != settings.token:
            raise HTTPException(status_code=401, detail="Invalid token")

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return {"status": "ok", "version": __version__}

    @app.post("/convert", response_model=ConvertResponse, dependencies=[Depends(verify)])
    async def convert_output(
        request: Request,
        pre: bool | None = Query(default=None),
    ):
        raw = await request.body()
        if len(raw) > settings.max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Body exceeds {settings.max_bytes} bytes",
            )

        wrap_pre = settings.wrap_pre if pre is None else pre
        markup = convert(raw, MarkupOptions(wrap_pre=wrap_pre))
        logger.debug("converted %d bytes into %d characters", len(raw), len(markup))

        return {
            "html": markup,
            "hash": hashlib.sha256(raw).hexdigest()[:16],
            "bytes": len(raw),
            "ts": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=_settings.host, port=_settings.port)
