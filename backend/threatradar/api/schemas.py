"""
ThreatRadar - API Schemas (Pydantic)
Request and response models for the REST API.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


# ============================================================
# Health / Status
# ============================================================

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    store_backend: str
    store_healthy: bool
    llm_provider: str
    auth_enabled: bool
    mode: str  # "local" or "cloud"


# ============================================================
# Clients / Events / Assets
# ============================================================

class ClientResponse(BaseModel):
    id: str
    name: str
    email: str
    settings: dict[str, Any]


class VulnerabilityResponse(BaseModel):
    cve: str
    severity: str
    description: str


class AssetResponse(BaseModel):
    id: str
    client_id: str
    name: str
    ip_address: str
    status: str
    vulnerabilities: list[VulnerabilityResponse] = []


class EventResponse(BaseModel):
    """Security event with forensic detail passed through as extra fields."""
    model_config = {"extra": "allow"}

    event_id: str
    client_id: str
    timestamp: Optional[str] = None
    severity: str
    event_type: str
    alert_name: str
    host_name: str
    host_ip: str
    label: str
    label_text: str
    status: str
    comments: str


class AssetThreatsResponse(BaseModel):
    asset: AssetResponse
    threats: list[EventResponse]
    total: int


# ============================================================
# Reports
# ============================================================

class ReportExportRequest(BaseModel):
    format: Literal["pdf", "json", "markdown", "csv", "xlsx"] = "pdf"
    start: Optional[datetime] = None
    end: Optional[datetime] = None


# ============================================================
# Assistant
# ============================================================

class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: list[ChatTurn] = []


class ChatResponse(BaseModel):
    id: str
    response: str
    source: str
    timestamp: datetime
    context: dict[str, int]
