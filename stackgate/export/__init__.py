"""Data export"""
from stackgate.export.data_exporter import DataExporter

__all__ = ["DataExporter"]
