"""
ThreatRadar - Report Renderers
Non-PDF renditions of ReportData.

  JSON      - report view payload (API / frontend tabs)
  Markdown  - for Slack/Teams/email
  CSV       - top security events, one row per event
  XLSX      - formatted workbook: summary, severity chart, events, assets
"""

import csv
import io
import logging

from threatradar.reports.aggregator import ReportData

logger = logging.getLogger(__name__)


def _metric(value, suffix: str = "") -> str:
    return "Not reported" if value is None else f"{value}{suffix}"


def _cell(value) -> str:
    return str(value).replace("|", "\\|")


class JSONRenderer:
    def render(self, data: ReportData, client_name: str) -> dict:
        payload = data.to_dict()
        payload["client"] = client_name
        return payload


class MarkdownRenderer:
    def render(self, data: ReportData, client_name: str) -> str:
        es = data.executive_summary
        s = data.asset_status
        cm = data.compliance_metrics
        total = es.total_events

        lines = [
            "# Security Operations Report",
            f"**Client:** {client_name}  ",
            f"**Period:** {data.window.label}  ",
            f"**Generated:** {data.generated_at.strftime('%Y-%m-%d %H:%M UTC')}",
            "",
            "## Executive Summary",
            f"**Risk Score: {es.risk_score}/100**",
            "",
            f"- Total Security Events: {total}",
            f"- Critical Alerts: {es.critical_alerts}",
            f"- High Priority Alerts: {es.high_alerts}",
            f"- Assets Under Monitoring: {es.assets_monitored}",
            "",
            "## Threat Overview",
            "| Severity | Count | Percentage |",
            "|----------|-------|------------|",
        ]
        for severity, count in data.threat_overview.items():
            lines.append(f"| {severity.capitalize()} | {count} | {data.severity_percentage(severity)}% |")

        lines += [
            "",
            "## Asset Status Summary",
            f"- Total Assets: {s.total}",
            f"- Online Assets: {s.online}",
            f"- Offline Assets: {s.offline}",
            f"- Vulnerable Assets: {s.vulnerable}",
        ]

        if data.top_events:
            lines += [
                "",
                "## Top Security Events",
                "| Severity | Alert Name | Host | Date |",
                "|----------|------------|------|------|",
            ]
            for e in data.top_events:
                lines.append(
                    f"| {e.severity.value.upper()} | {_cell(e.alert_name)} | {_cell(e.host_name)} "
                    f"| {e.timestamp.strftime('%b %d, %Y')} |"
                )

        if data.vulnerability_summary:
            lines += [
                "",
                "## Vulnerable Assets Summary",
                "| Asset Name | Total Vulnerabilities | Critical |",
                "|------------|-----------------------|----------|",
            ]
            for v in data.vulnerability_summary:
                lines.append(f"| {_cell(v.asset_name)} | {v.vulnerability_count} | {v.critical_vulns} |")

        lines += ["", "## Security Recommendations"]
        lines += [f"{i}. {rec}" for i, rec in enumerate(data.recommendations, 1)]

        lines += [
            "",
            "## Compliance & Performance Metrics",
            f"- Events Processed: {cm.events_processed}",
            f"- Average Response Time: {_metric(cm.avg_response_time, ' seconds')}",
            f"- System Uptime: {_metric(cm.system_uptime, '%')}",
            "",
        ]
        return "\n".join(lines)


class CSVRenderer:
    def render(self, data: ReportData) -> str:
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(["Event ID", "Timestamp", "Severity", "Event Type", "Alert Name", "Host"])
        for e in data.top_events:
            writer.writerow([
                e.event_id, e.timestamp.isoformat(), e.severity.value.upper(),
                e.event_type, e.alert_name, e.host_name,
            ])
        return output.getvalue()


class XLSXRenderer:
    def render(self, data: ReportData, client_name: str, filepath: str):
        import openpyxl
        from openpyxl.chart import BarChart, Reference
        from openpyxl.styles import Border, Font, PatternFill, Side

        wb = openpyxl.Workbook()

        title_font = Font(name="Arial", size=16, bold=True, color="2980B9")
        header_font = Font(name="Arial", size=11, bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="2980B9", end_color="2980B9", fill_type="solid")
        crit_fill = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
        crit_font = Font(name="Arial", size=11, bold=True, color="9C0006")
        thin_border = Border(
            left=Side(style="thin"), right=Side(style="thin"),
            top=Side(style="thin"), bottom=Side(style="thin")
        )

        def header_row(sheet, row: int, labels: list[str]):
            for col, label in enumerate(labels, 1):
                cell = sheet.cell(row=row, column=col, value=label)
                cell.font = header_font
                cell.fill = header_fill

        # ── Summary Sheet ──
        ws = wb.active
        ws.title = "Executive Summary"
        ws.merge_cells("A1:D1")
        ws["A1"] = "Security Operations Report"
        ws["A1"].font = title_font
        ws["A2"] = f"{client_name} | {data.window.label}"
        ws["A2"].font = Font(name="Arial", size=10, color="666666")
        ws["A3"] = f"Generated: {data.generated_at.strftime('%Y-%m-%d')}"
        ws["A3"].font = Font(name="Arial", size=10, color="666666")
        for col_letter in ["A", "B"]:
            ws.column_dimensions[col_letter].width = 28

        es = data.executive_summary
        cm = data.compliance_metrics
        metrics = [
            ("Risk Score", f"{es.risk_score}/100"),
            ("Total Security Events", es.total_events),
            ("Critical Alerts", es.critical_alerts),
            ("High Priority Alerts", es.high_alerts),
            ("Assets Under Monitoring", es.assets_monitored),
            ("Online Assets", data.asset_status.online),
            ("Offline Assets", data.asset_status.offline),
            ("Vulnerable Assets", data.asset_status.vulnerable),
            ("Events Processed", cm.events_processed),
            ("Average Response Time", _metric(cm.avg_response_time, " seconds")),
            ("System Uptime", _metric(cm.system_uptime, "%")),
        ]
        row = 5
        header_row(ws, row, ["Metric", "Value"])
        for label, value in metrics:
            row += 1
            c1 = ws.cell(row=row, column=1, value=label)
            c2 = ws.cell(row=row, column=2, value=value)
            c1.font = Font(name="Arial", size=11)
            c2.font = Font(name="Arial", size=11, bold=True)
            c1.border = thin_border
            c2.border = thin_border
            if label == "Critical Alerts" and es.critical_alerts > 0:
                c2.fill = crit_fill
                c2.font = crit_font

        row += 2
        ws.cell(row=row, column=1, value="Security Recommendations").font = Font(name="Arial", size=12, bold=True)
        for i, rec in enumerate(data.recommendations, 1):
            ws.cell(row=row + i, column=1, value=f"{i}. {rec}")

        # ── Severity chart ──
        sev_ws = wb.create_sheet("Threat Overview")
        header_row(sev_ws, 1, ["Severity", "Count", "Percentage"])
        for i, (severity, count) in enumerate(data.threat_overview.items(), 2):
            sev_ws.cell(row=i, column=1, value=severity.capitalize())
            sev_ws.cell(row=i, column=2, value=count)
            sev_ws.cell(row=i, column=3, value=f"{data.severity_percentage(severity)}%")
        chart = BarChart()
        chart.title = "Events by Severity"
        chart.y_axis.title = "Events"
        values = Reference(sev_ws, min_col=2, min_row=1, max_row=1 + len(data.threat_overview))
        labels = Reference(sev_ws, min_col=1, min_row=2, max_row=1 + len(data.threat_overview))
        chart.add_data(values, titles_from_data=True)
        chart.set_categories(labels)
        sev_ws.add_chart(chart, "E2")

        # ── Top events ──
        ev_ws = wb.create_sheet("Top Events")
        header_row(ev_ws, 1, ["Severity", "Alert Name", "Event Type", "Host", "Timestamp"])
        for i, e in enumerate(data.top_events, 2):
            ev_ws.cell(row=i, column=1, value=e.severity.value.upper())
            ev_ws.cell(row=i, column=2, value=e.alert_name)
            ev_ws.cell(row=i, column=3, value=e.event_type)
            ev_ws.cell(row=i, column=4, value=e.host_name)
            ev_ws.cell(row=i, column=5, value=e.timestamp.strftime("%Y-%m-%d %H:%M"))
        ev_ws.column_dimensions["B"].width = 40

        # ── Vulnerable assets ──
        va_ws = wb.create_sheet("Vulnerable Assets")
        header_row(va_ws, 1, ["Asset Name", "Total Vulnerabilities", "Critical"])
        for i, v in enumerate(data.vulnerability_summary, 2):
            va_ws.cell(row=i, column=1, value=v.asset_name)
            va_ws.cell(row=i, column=2, value=v.vulnerability_count)
            va_ws.cell(row=i, column=3, value=v.critical_vulns)
        va_ws.column_dimensions["A"].width = 28

        wb.save(filepath)
        return filepath
