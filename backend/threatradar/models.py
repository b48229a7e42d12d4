"""
ThreatRadar - Database Models (SQLAlchemy ORM)
Same schema works on Docker Postgres (local), Supabase Postgres, and SQLite (tests).
Deleting a client cascades to its assets and logs.
"""

import uuid

from sqlalchemy import (
    Column, Integer, Boolean, DateTime, Text,
    ForeignKey, JSON, Index, Uuid, CheckConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class Client(Base):
    """Tenant organization."""
    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, unique=True, nullable=False)
    email = Column(Text, nullable=False)
    settings = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # --- Relationships ---
    assets = relationship("Asset", back_populates="client", cascade="all, delete-orphan")
    logs = relationship("LogEvent", back_populates="client", cascade="all, delete-orphan")


class Asset(Base):
    """Monitored host or device belonging to a client."""
    __tablename__ = "assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    ip_address = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    vulnerabilities = Column(JSON, default=list)        # [{cve, severity, description}]
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    client = relationship("Client", back_populates="assets")

    __table_args__ = (
        CheckConstraint("status IN ('online', 'offline', 'maintenance')", name="ck_asset_status"),
        Index("ix_assets_client", "client_id"),
    )


class LogEvent(Base):
    """Security event with forensic detail (the `logs` table)."""
    __tablename__ = "logs"

    event_id = Column(Text, primary_key=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"))
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    event_type = Column(Text)
    severity = Column(Text)
    alert_name = Column(Text)
    alert_category = Column(Text)
    detection_engine = Column(Text)
    action_taken = Column(Text)

    # --- Process ---
    process_name = Column(Text)
    process_path = Column(Text)
    process_id = Column(Integer)
    parent_process_name = Column(Text)
    parent_process_id = Column(Integer)
    user_name = Column(Text)

    # --- Host / File ---
    host_name = Column(Text)
    host_ip = Column(Text)
    file_name = Column(Text)
    file_path = Column(Text)
    file_hash_md5 = Column(Text)
    file_hash_sha256 = Column(Text)

    # --- Network ---
    network_connection = Column(Boolean)
    source_ip = Column(Text)
    source_port = Column(Integer)
    destination_ip = Column(Text)
    destination_port = Column(Integer)
    protocol = Column(Text)

    # --- Persistence / ATT&CK ---
    registry_key = Column(Text)
    persistence_mechanism = Column(Text)
    geo_location = Column(Text)
    mitre_attack_tactic = Column(Text)
    mitre_attack_technique = Column(Text)

    # --- Triage ---
    status = Column(Text)
    comments = Column(Text)
    label = Column(Text)                                  # TP, TN, FP, FN

    client = relationship("Client", back_populates="logs")

    __table_args__ = (
        CheckConstraint("label IN ('TP', 'TN', 'FP', 'FN')", name="ck_logs_label"),
        Index("ix_logs_client_timestamp", "client_id", "timestamp"),
        Index("ix_logs_host", "host_name", "host_ip"),
    )


# Table name → ORM class, used by the SQL row store
TABLES = {
    "clients": Client,
    "assets": Asset,
    "logs": LogEvent,
}
