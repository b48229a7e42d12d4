"""
ThreatRadar - API Routes
Same endpoints for every row store and LLM provider.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse, JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from threatradar.api.schemas import (
    AssetResponse, AssetThreatsResponse, ChatRequest, ChatResponse,
    ClientResponse, EventResponse, HealthResponse, ReportExportRequest,
)
from threatradar.assistant.chat import AssistantService
from threatradar.auth.middleware import require_auth
from threatradar.config import get_settings
from threatradar.db.session import get_db
from threatradar.domain import Client
from threatradar.reports.aggregator import ReportWindow, utcnow
from threatradar.reports.generator import ReportGenerator
from threatradar.store.base import RowStore
from threatradar.store.factory import get_row_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1")

APP_VERSION = "1.0.0"


# ─── Dependencies (overridable in tests) ───

def get_store() -> RowStore:
    return get_row_store()


def get_report_generator() -> ReportGenerator:
    return ReportGenerator()


def get_assistant(store: RowStore = Depends(get_store)) -> AssistantService:
    return AssistantService(store)


async def _client_or_404(store: RowStore, client_id: str) -> Client:
    client = await store.get_client(client_id)
    if client is None:
        raise HTTPException(status_code=404, detail=f"Client {client_id} not found")
    return client


def _window(start: Optional[datetime], end: Optional[datetime]) -> ReportWindow:
    """Both unset → last REPORT_DEFAULT_DAYS days. One unset → incomplete window."""
    if start is None and end is None:
        end = utcnow()
        start = end - timedelta(days=get_settings().report_default_days)
    return ReportWindow(start=start, end=end)


def _content_disposition(filename: str) -> str:
    """ASCII filename= for old clients plus RFC 5987 filename*= for the UTF-8 name."""
    fallback = re.sub(r'[^\x20-\x7e]|["\\]', "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


# ============================================================
# Health & Status
# ============================================================

@router.get("/health", response_model=HealthResponse)
async def health(store: RowStore = Depends(get_store)):
    settings = get_settings()
    return HealthResponse(
        version=APP_VERSION,
        store_backend=store.backend_name,
        store_healthy=await store.health_check(),
        llm_provider=settings.llm_provider,
        auth_enabled=settings.auth_enabled,
        mode="local" if settings.is_local_mode else "cloud",
    )


# ============================================================
# Clients, Events, Assets
# ============================================================

@router.get("/clients", response_model=list[ClientResponse])
async def list_clients(store: RowStore = Depends(get_store), user=Depends(require_auth)):
    return [c.to_dict() for c in await store.list_clients()]


@router.get("/clients/{client_id}/events", response_model=list[EventResponse])
async def list_events(
    client_id: str,
    limit: int = Query(100, ge=1, le=1000),
    store: RowStore = Depends(get_store),
    user=Depends(require_auth),
):
    await _client_or_404(store, client_id)
    return [e.to_dict() for e in await store.list_events(client_id, limit=limit)]


@router.get("/clients/{client_id}/assets", response_model=list[AssetResponse])
async def list_assets(client_id: str, store: RowStore = Depends(get_store), user=Depends(require_auth)):
    await _client_or_404(store, client_id)
    return [a.to_dict() for a in await store.list_assets(client_id)]


@router.get("/assets/{asset_id}/threats", response_model=AssetThreatsResponse)
async def asset_threats(asset_id: str, store: RowStore = Depends(get_store), user=Depends(require_auth)):
    """Events whose host IP or host name matches the asset, newest first."""
    asset = await store.get_asset(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Asset {asset_id} not found")
    threats = await store.list_asset_threats(asset)
    return {
        "asset": asset.to_dict(),
        "threats": [e.to_dict() for e in threats],
        "total": len(threats),
    }


# ============================================================
# Reports
# ============================================================

@router.get("/clients/{client_id}/report")
async def report_view(
    client_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store: RowStore = Depends(get_store),
    generator: ReportGenerator = Depends(get_report_generator),
    user=Depends(require_auth),
):
    """Report summary for the tabbed view (InvalidWindow → 422, store failure → 502)."""
    window = _window(start, end).require()
    client = await _client_or_404(store, client_id)
    events = await store.list_events(client_id)
    assets = await store.list_assets(client_id)
    data = generator.build(events, assets, window)
    return {"client": client.to_dict(), **data.to_dict()}


@router.post("/clients/{client_id}/report/export")
async def report_export(
    client_id: str,
    req: ReportExportRequest,
    store: RowStore = Depends(get_store),
    generator: ReportGenerator = Depends(get_report_generator),
    user=Depends(require_auth),
):
    window = _window(req.start, req.end).require()
    client = await _client_or_404(store, client_id)
    events = await store.list_events(client_id)
    assets = await store.list_assets(client_id)

    result = generator.generate(events, assets, window, client.name, output_format=req.format)
    logger.info(f"Exported {req.format} report for {client.name}")

    if req.format == "json":
        return JSONResponse(result["content"])
    if req.format == "xlsx":
        return FileResponse(result["filepath"], media_type=result["content_type"], filename=result["filename"])
    return Response(
        content=result["content"],
        media_type=result["content_type"],
        headers={"Content-Disposition": _content_disposition(result["filename"])},
    )


# ============================================================
# Assistant
# ============================================================

@router.post("/clients/{client_id}/chat", response_model=ChatResponse)
async def chat(
    client_id: str,
    req: ChatRequest,
    store: RowStore = Depends(get_store),
    assistant: AssistantService = Depends(get_assistant),
    user=Depends(require_auth),
):
    client = await _client_or_404(store, client_id)
    reply = await assistant.respond(
        client_id, req.message,
        history=[t.model_dump() for t in req.history],
        client_name=client.name,
    )
    return ChatResponse(
        id=reply.id,
        response=reply.content,
        source=reply.source,
        timestamp=reply.timestamp,
        context=reply.context,
    )


# ============================================================
# Demo Data
# ============================================================

@router.post("/demo/seed")
async def seed_demo_data(db: AsyncSession = Depends(get_db), user=Depends(require_auth)):
    """Load the sample tenants, assets and events (SQL store only)."""
    if get_settings().store_backend != "sql":
        raise HTTPException(status_code=400, detail="Demo seeding requires STORE_BACKEND=sql")
    from threatradar.demo_seed import seed_demo
    counts = await seed_demo(db)
    return {"ok": True, **counts}
