"""
FastAPI application factory and routes.

Thin HTTP surface over one in-process ``Session``: the presentation layer
uploads files, asks for views and forwards legend clicks. All computation
happens in the engine; nothing is cached between requests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel

from increment import __version__
from increment.config import get_config
from increment.contracts import Metric, TimeWindow, ToggleRequest, UploadKind, ViewRequest
from increment.exceptions import DatasetNotReadyError, ParseError
from increment.export import export_comparison_csv, export_filename
from increment.ingestion.loaders import decode_upload
from increment.session import Session


# =============================================================================
# Pydantic Models for API
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    dataset_ready: bool


class UploadResponse(BaseModel):
    kind: str
    filename: str
    dataset_ready: bool
    missing: list[str]
    channels: list[str]
    dataset: dict[str, Any] | None = None


class VisibilityResponse(BaseModel):
    hidden: list[str]
    all_visible: bool


# =============================================================================
# App factory
# =============================================================================

def create_app(session: Session | None = None) -> FastAPI:
    """Build the API around *session* (a fresh one by default)."""
    config = get_config()
    state = session or Session()

    app = FastAPI(
        title="Increment API",
        description="MMM vs attribution channel analytics",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.session = state

    def _not_ready(e: DatasetNotReadyError) -> HTTPException:
        return HTTPException(status_code=409, detail={"code": e.code, "message": str(e), "missing": e.missing})

    def _visibility() -> VisibilityResponse:
        vis = state.visibility
        order = state.dataset.visibility_universe() if state.dataset else None
        return VisibilityResponse(hidden=vis.sorted_hidden(order), all_visible=vis.all_visible)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now().isoformat(),
            version=__version__,
            dataset_ready=state.is_ready,
        )

    @app.post("/upload/{kind}", response_model=UploadResponse)
    async def upload(kind: UploadKind, file: UploadFile = File(...)) -> UploadResponse:
        filename = file.filename or ""
        try:
            content = decode_upload(await file.read(), source=filename)
            dataset = state.upload(kind, content, filename)
        except ParseError as e:
            raise HTTPException(status_code=422, detail={"code": e.code, "message": str(e), "source": e.source})

        return UploadResponse(
            kind=kind.value,
            filename=filename,
            dataset_ready=state.is_ready,
            missing=state.missing_uploads,
            channels=dataset.channels if dataset else [],
            dataset=dataset.summary() if dataset else None,
        )

    @app.post("/view")
    def view(request: ViewRequest) -> dict[str, Any]:
        try:
            return state.view(request).to_dict()
        except DatasetNotReadyError as e:
            raise _not_ready(e)

    @app.post("/visibility/toggle", response_model=VisibilityResponse)
    def toggle(request: ToggleRequest) -> VisibilityResponse:
        try:
            state.toggle(request.channel)
        except DatasetNotReadyError as e:
            raise _not_ready(e)
        return _visibility()

    @app.post("/visibility/reset", response_model=VisibilityResponse)
    def reset() -> VisibilityResponse:
        state.reset_visibility()
        return _visibility()

    @app.get("/export")
    def export(
        metric: Metric = Query(Metric.VOLUME),
        window: TimeWindow = Query(TimeWindow.ALL),
    ) -> Response:
        try:
            result = state.view(ViewRequest(view="comparison", metric=metric, window=window))
        except DatasetNotReadyError as e:
            raise _not_ready(e)

        if result.spend_required:
            raise HTTPException(
                status_code=409,
                detail={"code": "SPEND_REQUIRED", "message": f"Spend data required for {metric.value} export"},
            )

        filename = export_filename(metric)
        logger.info(f"Serving export {filename} ({len(result.comparison.rows)} rows)")
        return Response(
            content=export_comparison_csv(result.comparison.rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


def run_server(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    config = get_config()
    host = host or config.server.api_host
    port = port or config.server.api_port
    logger.info(f"Starting Increment API on {host}:{port}")
    uvicorn.run("increment.api.app:create_app", host=host, port=port, reload=reload, factory=True)
