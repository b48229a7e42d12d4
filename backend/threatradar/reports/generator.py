"""
ThreatRadar - Report Generator
Orchestrates aggregate + render for one client and window.

OUTPUT FORMATS: pdf, json, markdown, csv, xlsx
"""

import logging
import os
from typing import Iterable, Optional

from threatradar.config import get_settings
from threatradar.domain import Asset, Event
from threatradar.reports.aggregator import ReportAggregator, ReportData, ReportWindow
from threatradar.reports.pdf import PDFSerializer, export_path, slugify
from threatradar.reports.renderers import (
    CSVRenderer, JSONRenderer, MarkdownRenderer, XLSXRenderer,
)

logger = logging.getLogger(__name__)

FORMATS = ("pdf", "json", "markdown", "csv", "xlsx")


class ReportGenerator:
    """Main entry point for report generation."""

    def __init__(
        self,
        aggregator: Optional[ReportAggregator] = None,
        pdf: Optional[PDFSerializer] = None,
        export_dir: Optional[str] = None,
    ):
        settings = get_settings()
        self.aggregator = aggregator or ReportAggregator(top_n=settings.report_top_n)
        self.export_dir = export_dir or settings.report_export_dir
        self.pdf = pdf or PDFSerializer(export_dir=self.export_dir)

    def build(self, events: Iterable[Event], assets: Iterable[Asset], window: ReportWindow) -> ReportData:
        return self.aggregator.aggregate(events, assets, window)

    def generate(
        self,
        events: Iterable[Event],
        assets: Iterable[Asset],
        window: ReportWindow,
        client_name: str,
        output_format: str = "pdf",
    ) -> dict:
        """Generate a report rendition.

        Returns:
            Dict with 'content', 'content_type', and for file formats
            'filename' and 'filepath'
        """
        data = self.build(events, assets, window)
        fmt = output_format.lower()
        stem = f"security-report-{slugify(client_name)}-{data.generated_at.strftime('%Y-%m-%d')}"

        if fmt == "pdf":
            return self.pdf.export(data, client_name, window)

        elif fmt == "json":
            return {
                "content": JSONRenderer().render(data, client_name),
                "content_type": "application/json",
            }

        elif fmt == "markdown" or fmt == "md":
            return {
                "content": MarkdownRenderer().render(data, client_name),
                "content_type": "text/markdown",
                "filename": f"{stem}.md",
            }

        elif fmt == "csv":
            return {
                "content": CSVRenderer().render(data),
                "content_type": "text/csv",
                "filename": f"{stem}.csv",
            }

        elif fmt == "xlsx":
            os.makedirs(self.export_dir, exist_ok=True)
            path = export_path(self.export_dir, f"{stem}.xlsx")
            XLSXRenderer().render(data, client_name, path)
            return {
                "content": None,
                "content_type": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                "filepath": path,
                "filename": f"{stem}.xlsx",
            }

        raise ValueError(f"Unknown report format '{output_format}'. Use one of: {', '.join(FORMATS)}")
