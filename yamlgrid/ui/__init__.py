"""User interface package for yamlgrid.

Provides GridTUI, the Rich-based terminal interface for viewing and editing
the merge table.
"""

from .grid_tui import GridTUI

__all__ = ["GridTUI"]
