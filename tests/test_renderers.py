"""
ThreatRadar - Report Renderer Tests
Tests: reports/renderers.py, reports/generator.py
Run: pytest tests/test_renderers.py -v
"""

import csv
import io
import os
import sys
from datetime import datetime, timedelta, timezone

import openpyxl
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from helpers import make_asset, make_event, vuln
from threatradar.reports.aggregator import ReportAggregator, ReportWindow
from threatradar.reports.generator import FORMATS, ReportGenerator
from threatradar.reports.pdf import PDFSerializer
from threatradar.reports.renderers import CSVRenderer, JSONRenderer, MarkdownRenderer, XLSXRenderer
from threatradar.reports.telemetry import StaticTelemetry

START = datetime(2025, 3, 1, tzinfo=timezone.utc)
END = datetime(2025, 3, 31, 23, 59, 59, tzinfo=timezone.utc)
NOW = datetime(2025, 3, 31, 18, 0, tzinfo=timezone.utc)


def _aggregator():
    return ReportAggregator(telemetry=StaticTelemetry(), clock=lambda: NOW)


def _inputs():
    events = [
        make_event("C-1", severity="critical", alert_name="Ransomware Detected",
                   timestamp=(START + timedelta(days=2)).isoformat()),
        make_event("H-1", severity="high", alert_name="Brute Force Attack",
                   timestamp=(START + timedelta(days=5)).isoformat()),
        make_event("L-1", severity="low", timestamp=(START + timedelta(days=6)).isoformat()),
    ]
    assets = [
        make_asset("a-1", name="DC-SERVER-01", vulnerabilities=[vuln("critical")]),
        make_asset("a-2", name="FIREWALL-01", status="offline"),
    ]
    return events, assets, ReportWindow(start=START, end=END)


def _data():
    events, assets, window = _inputs()
    return _aggregator().aggregate(events, assets, window)


def _generator(tmp_path):
    return ReportGenerator(
        aggregator=_aggregator(),
        pdf=PDFSerializer(export_dir=str(tmp_path), clock=lambda: NOW),
        export_dir=str(tmp_path),
    )


# ═══════════════════════════════════════
# Renderers
# ═══════════════════════════════════════

class TestJSONRenderer:
    def test_includes_client(self):
        payload = JSONRenderer().render(_data(), "Acme Corp")
        assert payload["client"] == "Acme Corp"
        assert payload["executive_summary"]["total_events"] == 3
        assert [e["id"] for e in payload["top_events"]] == ["H-1", "C-1"]


class TestMarkdownRenderer:
    def test_sections(self):
        md = MarkdownRenderer().render(_data(), "Acme Corp")
        assert md.startswith("# Security Operations Report")
        assert "**Client:** Acme Corp" in md
        assert "**Risk Score: 100/100**" in md
        assert "| Critical | 1 | 33% |" in md
        assert "## Top Security Events" in md
        assert "| DC-SERVER-01 | 1 | 1 |" in md
        assert "- System Uptime: Not reported" in md

    def test_empty_tables_omitted(self):
        data = _aggregator().aggregate([], [], ReportWindow(start=START, end=END))
        md = MarkdownRenderer().render(data, "Acme Corp")
        assert "## Top Security Events" not in md
        assert "## Vulnerable Assets Summary" not in md
        assert "1. Regular security awareness training for all users" in md

    def test_pipes_escaped_in_table_cells(self):
        events = [make_event("P-1", severity="high", alert_name="Exfil | DNS", host_name="WEB|01",
                             timestamp=(START + timedelta(days=1)).isoformat())]
        assets = [make_asset("a-1", name="DB|PRIMARY", vulnerabilities=[vuln("critical")])]
        data = _aggregator().aggregate(events, assets, ReportWindow(start=START, end=END))
        md = MarkdownRenderer().render(data, "Acme Corp")
        assert "| HIGH | Exfil \\| DNS | WEB\\|01 | Mar 02, 2025 |" in md
        assert "| DB\\|PRIMARY | 1 | 1 |" in md


class TestCSVRenderer:
    def test_top_events_rows(self):
        rows = list(csv.reader(io.StringIO(CSVRenderer().render(_data()))))
        assert rows[0] == ["Event ID", "Timestamp", "Severity", "Event Type", "Alert Name", "Host"]
        assert [r[0] for r in rows[1:]] == ["H-1", "C-1"]
        assert rows[2][2] == "CRITICAL"


class TestXLSXRenderer:
    def test_workbook_sheets(self, tmp_path):
        path = str(tmp_path / "report.xlsx")
        XLSXRenderer().render(_data(), "Acme Corp", path)
        wb = openpyxl.load_workbook(path)
        assert wb.sheetnames == ["Executive Summary", "Threat Overview", "Top Events", "Vulnerable Assets"]
        summary = wb["Executive Summary"]
        assert summary["A1"].value == "Security Operations Report"
        assert summary["A6"].value == "Risk Score"
        assert summary["B6"].value == "100/100"
        assert wb["Top Events"]["B2"].value == "Brute Force Attack"
        assert wb["Vulnerable Assets"]["A2"].value == "DC-SERVER-01"
        assert wb["Threat Overview"]["A2"].value == "Critical"


# ═══════════════════════════════════════
# Generator dispatch
# ═══════════════════════════════════════

class TestReportGenerator:
    def test_formats(self):
        assert FORMATS == ("pdf", "json", "markdown", "csv", "xlsx")

    def test_pdf(self, tmp_path):
        events, assets, window = _inputs()
        result = _generator(tmp_path).generate(events, assets, window, "Acme Corp")
        assert result["content"].startswith(b"%PDF")
        assert result["filename"] == "security-report-acme-corp-2025-03-31.pdf"
        assert os.path.exists(result["filepath"])

    def test_json(self, tmp_path):
        events, assets, window = _inputs()
        result = _generator(tmp_path).generate(events, assets, window, "Acme Corp", "json")
        assert result["content_type"] == "application/json"
        assert result["content"]["client"] == "Acme Corp"

    def test_markdown_alias(self, tmp_path):
        events, assets, window = _inputs()
        result = _generator(tmp_path).generate(events, assets, window, "Acme Corp", "md")
        assert result["content_type"] == "text/markdown"
        assert result["filename"] == "security-report-acme-corp-2025-03-31.md"

    def test_csv(self, tmp_path):
        events, assets, window = _inputs()
        result = _generator(tmp_path).generate(events, assets, window, "Acme Corp", "CSV")
        assert result["content_type"] == "text/csv"
        assert result["content"].startswith("Event ID,")

    def test_xlsx(self, tmp_path):
        events, assets, window = _inputs()
        result = _generator(tmp_path).generate(events, assets, window, "Acme Corp", "xlsx")
        assert result["filename"].endswith(".xlsx")
        assert os.path.exists(result["filepath"])

    def test_xlsx_name_with_path_separators(self, tmp_path):
        events, assets, window = _inputs()
        out = tmp_path / "exports"
        result = _generator(out).generate(events, assets, window, "x/../../escaped", "xlsx")
        assert result["filename"] == "security-report-x-..-..-escaped-2025-03-31.xlsx"
        assert os.listdir(out) == [result["filename"]]
        assert os.listdir(tmp_path) == ["exports"]

    def test_unknown_format(self, tmp_path):
        events, assets, window = _inputs()
        with pytest.raises(ValueError):
            _generator(tmp_path).generate(events, assets, window, "Acme Corp", "docx")
