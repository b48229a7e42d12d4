"""
ThreatRadar - Demo Data Seeder
Loads sample tenants, their asset inventories and 30 days of security
events into the SQL row store.

Run: python3 -m threatradar.demo_seed
Or:  POST /api/v1/demo/seed

What it does:
  1. Creates 7 sample client organizations (skips names that already exist)
  2. Gives each client the same 7-asset inventory
  3. Adds 10 detailed threat templates per client (full forensic columns)
  4. Adds 15 generated events per asset with mixed severity and labels

Seeded with a fixed RNG so every run produces the same data.
No network calls. No AI needed.
"""

import asyncio
import logging
import os
import random
import sys
from datetime import datetime, timedelta, timezone
from typing import Optional

# Allow running as standalone script
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from threatradar.models import Asset, Client, LogEvent

logger = logging.getLogger(__name__)

SEED = 1337

# ─── Tenants ───

DEMO_CLIENTS = [
    ("ORION Corporation", "security@orion-corp.com", {"alert_threshold": "medium", "auto_email": True}),
    ("FFHB Financial Group", "soc@ffhb-financial.com", {"alert_threshold": "high", "auto_email": False}),
    ("BOTICINAL Pharmaceuticals", "alerts@boticinal-pharma.com", {"alert_threshold": "low", "auto_email": True}),
    ("NEXUS Technologies", "security@nexus-tech.com", {"alert_threshold": "medium", "auto_email": True}),
    ("QUANTUM Defense Systems", "it-security@quantum-defense.com", {"alert_threshold": "high", "auto_email": False}),
    ("APEX Manufacturing", "security@apex-mfg.com", {"alert_threshold": "medium", "auto_email": True}),
    ("STELLAR Communications", "soc@stellar-comm.com", {"alert_threshold": "low", "auto_email": False}),
]

# ─── Asset inventory (same for every tenant) ───

ASSET_TEMPLATES = [
    ("DC-SERVER-01", "192.168.1.10", "online",
     [{"cve": "CVE-2023-1234", "severity": "high", "description": "Remote code execution vulnerability"}]),
    ("WEB-SERVER-02", "192.168.1.20", "online", []),
    ("DB-SERVER-03", "192.168.1.30", "maintenance",
     [{"cve": "CVE-2023-5678", "severity": "medium", "description": "SQL injection vulnerability"}]),
    ("WORKSTATION-04", "192.168.1.40", "online",
     [{"cve": "CVE-2023-9012", "severity": "low", "description": "Local privilege escalation"}]),
    ("FIREWALL-01", "192.168.1.1", "online", []),
    ("EMAIL-SERVER-05", "192.168.1.50", "online",
     [{"cve": "CVE-2023-3456", "severity": "critical", "description": "Authentication bypass"}]),
    ("BACKUP-SERVER-06", "192.168.1.60", "offline",
     [{"cve": "CVE-2023-7890", "severity": "high", "description": "Directory traversal vulnerability"}]),
]

# ─── Detailed threat templates ───

THREAT_TEMPLATES = [
    {"event_type": "malware_detection", "severity": "critical", "alert_name": "Advanced Persistent Threat Detected",
     "alert_category": "malware", "detection_engine": "CrowdStrike", "action_taken": "quarantined",
     "process_name": "powershell.exe", "parent_process_name": "cmd.exe", "user_name": "SYSTEM",
     "host_name": "DC-SERVER-01", "host_ip": "192.168.1.10", "file_name": "malicious.exe",
     "file_path": "C:\\temp\\malicious.exe", "network_connection": True, "source_ip": "10.0.0.100",
     "source_port": 443, "destination_ip": "192.168.1.10", "destination_port": 80, "protocol": "TCP",
     "persistence_mechanism": "registry_persistence", "geo_location": "US-East",
     "mitre_attack_tactic": "Execution", "mitre_attack_technique": "T1059.001", "status": "active",
     "comments": "Sophisticated malware with C2 communication detected", "label": "TP"},
    {"event_type": "network_anomaly", "severity": "high", "alert_name": "Suspicious Network Traffic Pattern",
     "alert_category": "network", "detection_engine": "Suricata", "action_taken": "monitored",
     "user_name": "user1", "host_name": "WEB-SERVER-02", "host_ip": "192.168.1.20",
     "network_connection": True, "source_ip": "203.0.113.1", "source_port": 22,
     "destination_ip": "192.168.1.20", "destination_port": 22, "protocol": "SSH", "geo_location": "China",
     "mitre_attack_tactic": "Command and Control", "mitre_attack_technique": "T1071.001",
     "status": "investigating", "comments": "Multiple failed SSH login attempts from foreign IP", "label": "FP"},
    {"event_type": "file_modification", "severity": "medium", "alert_name": "Critical System File Modified",
     "alert_category": "file_integrity", "detection_engine": "OSSEC", "action_taken": "logged",
     "process_name": "notepad.exe", "parent_process_name": "explorer.exe", "user_name": "administrator",
     "host_name": "WORKSTATION-04", "host_ip": "192.168.1.40", "file_name": "system32.dll",
     "file_path": "C:\\Windows\\System32\\system32.dll", "network_connection": False,
     "geo_location": "US-West", "mitre_attack_tactic": "Defense Evasion", "mitre_attack_technique": "T1112",
     "status": "resolved", "comments": "Legitimate administrative file update", "label": "TN"},
    {"event_type": "authentication_failure", "severity": "high", "alert_name": "Multiple Authentication Failures",
     "alert_category": "authentication", "detection_engine": "Windows Security", "action_taken": "blocked",
     "process_name": "winlogon.exe", "parent_process_name": "services.exe", "user_name": "guest",
     "host_name": "DB-SERVER-03", "host_ip": "192.168.1.30", "network_connection": False,
     "source_ip": "198.51.100.5", "geo_location": "Russia", "mitre_attack_tactic": "Credential Access",
     "mitre_attack_technique": "T1110.001", "status": "blocked",
     "comments": "Brute force attack blocked by security controls", "label": "TP"},
    {"event_type": "process_injection", "severity": "critical", "alert_name": "Process Hollowing Attack Detected",
     "alert_category": "process_behavior", "detection_engine": "Sysmon", "action_taken": "terminated",
     "process_name": "svchost.exe", "parent_process_name": "winlogon.exe", "user_name": "SYSTEM",
     "host_name": "FIREWALL-01", "host_ip": "192.168.1.1", "file_name": "injected.dll",
     "file_path": "C:\\temp\\injected.dll", "network_connection": False,
     "persistence_mechanism": "process_hollowing", "geo_location": "Germany",
     "mitre_attack_tactic": "Defense Evasion", "mitre_attack_technique": "T1055.012", "status": "contained",
     "comments": "Advanced process injection technique neutralized", "label": "TP"},
    {"event_type": "lateral_movement", "severity": "high", "alert_name": "Lateral Movement Attempt",
     "alert_category": "network", "detection_engine": "Zeek", "action_taken": "monitored",
     "process_name": "psexec.exe", "parent_process_name": "services.exe", "user_name": "admin",
     "host_name": "EMAIL-SERVER-05", "host_ip": "192.168.1.50", "network_connection": True,
     "source_ip": "192.168.1.10", "source_port": 445, "destination_ip": "192.168.1.50",
     "destination_port": 445, "protocol": "SMB", "persistence_mechanism": "scheduled_task",
     "geo_location": "Internal", "mitre_attack_tactic": "Lateral Movement", "mitre_attack_technique": "T1021.002",
     "status": "investigating", "comments": "Suspicious SMB activity between internal hosts", "label": "FN"},
    {"event_type": "data_exfiltration", "severity": "critical", "alert_name": "Large Data Transfer Detected",
     "alert_category": "data_loss", "detection_engine": "DLP Agent", "action_taken": "blocked",
     "process_name": "chrome.exe", "parent_process_name": "explorer.exe", "user_name": "user2",
     "host_name": "WORKSTATION-04", "host_ip": "192.168.1.40", "file_name": "sensitive_data.zip",
     "network_connection": True, "source_ip": "192.168.1.40", "source_port": 443,
     "destination_ip": "203.0.113.50", "destination_port": 443, "protocol": "HTTPS",
     "geo_location": "US-West", "mitre_attack_tactic": "Exfiltration", "mitre_attack_technique": "T1041",
     "status": "blocked", "comments": "Attempted upload of classified documents blocked", "label": "TP"},
    {"event_type": "privilege_escalation", "severity": "high", "alert_name": "Privilege Escalation Attempt",
     "alert_category": "privilege_escalation", "detection_engine": "Windows Defender", "action_taken": "blocked",
     "process_name": "cmd.exe", "parent_process_name": "powershell.exe", "user_name": "guest",
     "host_name": "BACKUP-SERVER-06", "host_ip": "192.168.1.60", "network_connection": False,
     "registry_key": "HKEY_LOCAL_MACHINE\\SAM", "persistence_mechanism": "token_manipulation",
     "geo_location": "Internal", "mitre_attack_tactic": "Privilege Escalation", "mitre_attack_technique": "T1134",
     "status": "blocked", "comments": "Guest account attempted to access admin privileges", "label": "TP"},
    {"event_type": "dns_tunneling", "severity": "medium", "alert_name": "DNS Tunneling Activity",
     "alert_category": "network", "detection_engine": "PiHole", "action_taken": "monitored",
     "user_name": "system", "host_name": "DC-SERVER-01", "host_ip": "192.168.1.10",
     "network_connection": True, "source_ip": "192.168.1.10", "source_port": 53,
     "destination_ip": "8.8.8.8", "destination_port": 53, "protocol": "DNS", "geo_location": "External",
     "mitre_attack_tactic": "Command and Control", "mitre_attack_technique": "T1071.004",
     "status": "investigating", "comments": "Unusual DNS query patterns detected", "label": "FP"},
    {"event_type": "ransomware_behavior", "severity": "critical", "alert_name": "Ransomware Encryption Activity",
     "alert_category": "ransomware", "detection_engine": "Behavioral Analysis", "action_taken": "terminated",
     "process_name": "encrypt.exe", "parent_process_name": "explorer.exe", "user_name": "user3",
     "host_name": "WEB-SERVER-02", "host_ip": "192.168.1.20", "file_name": "important.docx",
     "network_connection": False, "persistence_mechanism": "file_encryption", "geo_location": "Internal",
     "mitre_attack_tactic": "Impact", "mitre_attack_technique": "T1486", "status": "terminated",
     "comments": "Ransomware process terminated before encryption completed", "label": "TP"},
]

# ─── Generated events ───

LABELS = ["TP", "TN", "FP", "FN"]
SEVERITIES = ["critical", "high", "medium", "low", "info"]
EVENT_TYPES = [
    "malware_detection", "network_anomaly", "file_modification", "authentication_failure",
    "process_injection", "lateral_movement", "data_exfiltration", "privilege_escalation",
]
EVENTS_PER_ASSET = 15


def _status(rng: random.Random) -> str:
    roll = rng.random()
    if roll < 0.3:
        return "active"
    if roll < 0.7:
        return "resolved"
    return "investigating"


async def seed_demo(session: AsyncSession, now: Optional[datetime] = None, seed: int = SEED) -> dict:
    """Insert demo tenants with assets and events. Existing client names are skipped.

    Returns:
        Counts of inserted clients, assets and events
    """
    now = now or datetime.now(timezone.utc)
    rng = random.Random(seed)
    counts = {"clients": 0, "assets": 0, "events": 0}

    existing = set((await session.execute(select(Client.name))).scalars().all())

    for c_idx, (name, email, settings) in enumerate(DEMO_CLIENTS):
        if name in existing:
            logger.info(f"Demo client '{name}' already present, skipping")
            continue

        client = Client(name=name, email=email, settings=dict(settings))
        session.add(client)
        await session.flush()
        counts["clients"] += 1

        for asset_name, ip, status, vulns in ASSET_TEMPLATES:
            session.add(Asset(
                client_id=client.id, name=asset_name, ip_address=ip,
                status=status, vulnerabilities=[dict(v) for v in vulns],
            ))
            counts["assets"] += 1

        serial = 0

        def next_id() -> str:
            nonlocal serial
            serial += 1
            return f"TRD-{c_idx + 1:02d}{serial:05d}"

        for template in THREAT_TEMPLATES:
            session.add(LogEvent(
                event_id=next_id(),
                client_id=client.id,
                timestamp=now - timedelta(seconds=rng.uniform(0, 30 * 86400)),
                **template,
            ))
            counts["events"] += 1

        for asset_name, ip, _, _ in ASSET_TEMPLATES:
            for i in range(1, EVENTS_PER_ASSET + 1):
                session.add(LogEvent(
                    event_id=next_id(),
                    client_id=client.id,
                    timestamp=now - timedelta(seconds=rng.uniform(0, 30 * 86400)),
                    event_type=rng.choice(EVENT_TYPES),
                    severity=rng.choice(SEVERITIES),
                    alert_name=f"Automated Threat Detection #{i}",
                    host_name=asset_name,
                    host_ip=ip,
                    label=rng.choice(LABELS),
                    status=_status(rng),
                    comments="Automated threat analysis result",
                ))
                counts["events"] += 1

    await session.flush()
    logger.info(
        f"Demo seed: {counts['clients']} clients, {counts['assets']} assets, {counts['events']} events"
    )
    return counts


async def _main():
    from threatradar.db.session import get_sessionmaker, init_db

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    await init_db()
    async with get_sessionmaker()() as session:
        counts = await seed_demo(session)
        await session.commit()
    print(f"Seeded {counts['clients']} clients, {counts['assets']} assets, {counts['events']} events")


if __name__ == "__main__":
    asyncio.run(_main())
