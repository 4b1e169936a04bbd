"""Workflow orchestration package for yamlgrid.

This package contains orchestration components for editing sessions:
- SessionLogger: Structured report of loads, edits and saves.
- EditorSession: Entry point for the presentation layer.
"""

from yamlgrid.orchestration.session_logger import SessionLogger
from yamlgrid.orchestration.editor_session import EditorSession

__all__ = ["SessionLogger", "EditorSession"]
