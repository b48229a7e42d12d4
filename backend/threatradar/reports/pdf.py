"""
ThreatRadar - PDF Report Serializer
Paginated A4 security report drawn on a reportlab canvas.

Layout is expressed in millimetres from the top-left corner of the page
and converted to reportlab's bottom-left point space on draw. Every page
carries the branded header band and the confidentiality footer.

Page breaks (cursor = distance from top edge):
  section title   cursor + 10 > page height - 40
  text line       cursor      > page height - 20
  table start     cursor + 5  > page height - 60
  table row       cursor      > page height - 20
After a break the header is redrawn and the cursor resets to 50mm.
"""

import io
import logging
import os
import re
from datetime import datetime
from typing import Callable, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from threatradar.config import get_settings
from threatradar.reports.aggregator import ReportData, ReportWindow, utcnow

logger = logging.getLogger(__name__)

PAGE_WIDTH = A4[0] / mm     # 210
PAGE_HEIGHT = A4[1] / mm    # 297
MARGIN = 20
HEADER_HEIGHT = 40
CONTENT_TOP = 50
LINE_HEIGHT = 5
ROW_HEIGHT = 8

BRAND = (41, 128, 185)
FOOTER_TAG = "Confidential - NextDefense SOC Platform"

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


def slugify(name: str) -> str:
    """'Acme Corp' -> 'acme-corp', 'R&D/Labs' -> 'r-d-labs'"""
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^\w.-]+", "-", slug)


def report_filename(client_name: str, when: datetime) -> str:
    return f"security-report-{slugify(client_name)}-{when.strftime('%Y-%m-%d')}.pdf"


def export_path(export_dir: str, filename: str) -> str:
    """Join filename onto export_dir, refusing paths that resolve elsewhere."""
    filepath = os.path.join(export_dir, filename)
    root = os.path.realpath(export_dir)
    if os.path.dirname(os.path.realpath(filepath)) != root:
        raise ValueError(f"Export filename {filename!r} resolves outside {export_dir}")
    return filepath


def format_generated(ts: datetime) -> str:
    """'Mar 05, 2025, 2:07:09 PM'"""
    clock = ts.strftime("%I:%M:%S %p").lstrip("0")
    return f"{ts.strftime('%b %d, %Y')}, {clock}"


def _rgb(color: tuple) -> tuple:
    return tuple(c / 255 for c in color)


class _PageWriter:
    """Cursor-tracking drawing helper for one document."""

    def __init__(self, c: canvas.Canvas, client_name: str, window: ReportWindow, footer: str):
        self.c = c
        self.client_name = client_name
        self.window = window
        self.footer = footer
        self.y = MARGIN
        self.pages = 1

    # --- Coordinates ---

    @staticmethod
    def _x(x_mm: float) -> float:
        return x_mm * mm

    @staticmethod
    def _y(y_mm: float) -> float:
        return (PAGE_HEIGHT - y_mm) * mm

    # --- Page chrome ---

    def header(self):
        c = self.c
        c.setFillColorRGB(*_rgb(BRAND))
        c.rect(0, self._y(HEADER_HEIGHT), PAGE_WIDTH * mm, HEADER_HEIGHT * mm, stroke=0, fill=1)

        c.setFillColorRGB(1, 1, 1)
        c.setFont(FONT_BOLD, 20)
        c.drawString(self._x(MARGIN), self._y(25), "Security Operations Report")

        c.setFont(FONT, 12)
        c.drawString(self._x(MARGIN), self._y(32), f"Client: {self.client_name}")
        if self.window.is_complete:
            c.drawRightString(self._x(PAGE_WIDTH - 80), self._y(32), f"Period: {self.window.label}")

    def _footer(self):
        c = self.c
        c.setFont(FONT, 8)
        c.setFillColorRGB(*_rgb((128, 128, 128)))
        c.drawCentredString(self._x(PAGE_WIDTH / 2), self._y(PAGE_HEIGHT - 10), self.footer)

    def new_page(self):
        self._footer()
        self.c.showPage()
        self.pages += 1
        self.header()
        self.y = CONTENT_TOP

    def finish(self):
        self._footer()
        self.c.showPage()

    # --- Content ---

    def section_title(self, title: str):
        self.y += 10
        if self.y > PAGE_HEIGHT - 40:
            self.new_page()
        self.c.setFillColorRGB(*_rgb(BRAND))
        self.c.setFont(FONT_BOLD, 16)
        self.c.drawString(self._x(MARGIN), self._y(self.y), title)
        self.y += 8

    def text(self, text: str, font_size: int = 10, bold: bool = False):
        font = FONT_BOLD if bold else FONT
        lines = simpleSplit(text, font, font_size, (PAGE_WIDTH - 2 * MARGIN) * mm) or [""]
        for line in lines:
            if self.y > PAGE_HEIGHT - 20:
                self.new_page()
            self.c.setFillColorRGB(0, 0, 0)
            self.c.setFont(font, font_size)
            self.c.drawString(self._x(MARGIN), self._y(self.y), line)
            self.y += LINE_HEIGHT

    def table(self, headers: list[str], rows: list[list]):
        self.y += 5
        if self.y > PAGE_HEIGHT - 60:
            self.new_page()

        table_width = PAGE_WIDTH - 2 * MARGIN
        col_width = table_width / len(headers)
        c = self.c

        c.setFillColorRGB(*_rgb((240, 240, 240)))
        c.rect(self._x(MARGIN), self._y(self.y + ROW_HEIGHT), table_width * mm, ROW_HEIGHT * mm,
               stroke=0, fill=1)
        c.setFillColorRGB(0, 0, 0)
        c.setFont(FONT_BOLD, 9)
        for i, header in enumerate(headers):
            c.drawString(self._x(MARGIN + i * col_width + 2), self._y(self.y + 5), header)
        self.y += ROW_HEIGHT

        for index, row in enumerate(rows):
            if self.y > PAGE_HEIGHT - 20:
                self.new_page()
            if index % 2 == 0:
                c.setFillColorRGB(*_rgb((248, 248, 248)))
                c.rect(self._x(MARGIN), self._y(self.y + ROW_HEIGHT), table_width * mm,
                       ROW_HEIGHT * mm, stroke=0, fill=1)
            c.setFillColorRGB(0, 0, 0)
            c.setFont(FONT, 9)
            for i, cell in enumerate(row):
                c.drawString(self._x(MARGIN + i * col_width + 2), self._y(self.y + 5), str(cell))
            self.y += ROW_HEIGHT


class PDFSerializer:
    """Renders ReportData into the branded multi-page PDF."""

    def __init__(self, export_dir: Optional[str] = None, clock: Callable[[], datetime] = utcnow):
        self.export_dir = export_dir or get_settings().report_export_dir
        self.clock = clock

    def serialize(self, report: ReportData, client_name: str,
                  window: Optional[ReportWindow] = None) -> bytes:
        window = window or report.window
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle(f"Security Operations Report - {client_name}")

        footer = f"Generated on {format_generated(self.clock())} | {FOOTER_TAG}"
        page = _PageWriter(c, client_name, window, footer)
        page.header()
        page.y = CONTENT_TOP

        self._executive_summary(page, report)
        self._threat_overview(page, report)
        self._asset_status(page, report)
        self._top_events(page, report)
        self._vulnerable_assets(page, report)
        self._recommendations(page, report)
        self._compliance(page, report)

        page.finish()
        c.save()
        logger.info(f"Rendered PDF report for {client_name}: {page.pages} page(s)")
        return buffer.getvalue()

    def export(self, report: ReportData, client_name: str,
               window: Optional[ReportWindow] = None) -> dict:
        """Serialize and save to the export directory."""
        content = self.serialize(report, client_name, window)
        filename = report_filename(client_name, self.clock())
        os.makedirs(self.export_dir, exist_ok=True)
        filepath = export_path(self.export_dir, filename)
        with open(filepath, "wb") as f:
            f.write(content)
        return {
            "content": content,
            "content_type": "application/pdf",
            "filepath": filepath,
            "filename": filename,
        }

    # ─── Sections ───

    def _executive_summary(self, page: _PageWriter, d: ReportData):
        es = d.executive_summary
        page.section_title("Executive Summary")
        page.text(f"Risk Score: {es.risk_score}/100", 12, True)
        page.text("Overall security posture assessment for the reporting period.")
        page.y += 5
        page.text(f"• Total Security Events: {es.total_events}")
        page.text(f"• Critical Alerts: {es.critical_alerts}")
        page.text(f"• High Priority Alerts: {es.high_alerts}")
        page.text(f"• Assets Under Monitoring: {es.assets_monitored}")

    def _threat_overview(self, page: _PageWriter, d: ReportData):
        page.section_title("Threat Overview")
        rows = [
            [severity.capitalize(), count, f"{d.severity_percentage(severity)}%"]
            for severity, count in d.threat_overview.items()
        ]
        page.table(["Severity", "Count", "Percentage"], rows)

    def _asset_status(self, page: _PageWriter, d: ReportData):
        s = d.asset_status
        page.section_title("Asset Status Summary")
        page.text(f"• Total Assets: {s.total}")
        page.text(f"• Online Assets: {s.online}")
        page.text(f"• Offline Assets: {s.offline}")
        page.text(f"• Vulnerable Assets: {s.vulnerable}")

    def _top_events(self, page: _PageWriter, d: ReportData):
        if not d.top_events:
            return
        page.section_title("Top Security Events")
        rows = []
        for e in d.top_events[:10]:
            name = e.alert_name[:30] + ("..." if len(e.alert_name) > 30 else "")
            rows.append([
                e.severity.value.upper(), name, e.host_name, e.timestamp.strftime("%b %d, %Y"),
            ])
        page.table(["Severity", "Alert Name", "Host", "Date"], rows)

    def _vulnerable_assets(self, page: _PageWriter, d: ReportData):
        if not d.vulnerability_summary:
            return
        page.section_title("Vulnerable Assets Summary")
        rows = [
            [v.asset_name, v.vulnerability_count, v.critical_vulns]
            for v in d.vulnerability_summary[:10]
        ]
        page.table(["Asset Name", "Total Vulnerabilities", "Critical"], rows)

    def _recommendations(self, page: _PageWriter, d: ReportData):
        page.section_title("Security Recommendations")
        for i, rec in enumerate(d.recommendations, 1):
            page.text(f"{i}. {rec}")

    def _compliance(self, page: _PageWriter, d: ReportData):
        cm = d.compliance_metrics
        response = "Not reported" if cm.avg_response_time is None else f"{cm.avg_response_time} seconds"
        uptime = "Not reported" if cm.system_uptime is None else f"{cm.system_uptime}%"
        page.section_title("Compliance & Performance Metrics")
        page.text(f"• Events Processed: {cm.events_processed}")
        page.text(f"• Average Response Time: {response}")
        page.text(f"• System Uptime: {uptime}")
