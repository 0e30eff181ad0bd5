"""Transformer module for converting calendar models to various output formats."""

from .base import BaseTransformer
from .ical_transformer import ExportResult, ICalTransformer, export_timetable

__all__ = ["BaseTransformer", "ExportResult", "ICalTransformer", "export_timetable"]
