"""
Testkit package for quote backend tests.

Provides export factories and golden workflow export fixtures.
"""
from .factories.export_factory import WorkflowExportFactory
from .fixture_loader import load_fixture

__all__ = [
    "WorkflowExportFactory",
    "load_fixture",
]
