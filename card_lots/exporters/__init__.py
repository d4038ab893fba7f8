"""Exporters for lot CSV files."""

from card_lots.exporters.base import BaseExporter, ExportResult
from card_lots.exporters.ebay import EbayExporter
from card_lots.exporters.raw import RawExporter

EXPORTERS = {
    "raw": RawExporter,
    "ebay": EbayExporter,
}


def get_exporter(format_name: str) -> BaseExporter:
    """Get an exporter by format name."""
    exporter_class = EXPORTERS.get(format_name.lower())
    if not exporter_class:
        raise ValueError(f"Unknown export format: {format_name}. Available: {', '.join(EXPORTERS.keys())}")
    return exporter_class()


__all__ = ["BaseExporter", "ExportResult", "RawExporter", "EbayExporter", "get_exporter", "EXPORTERS"]
