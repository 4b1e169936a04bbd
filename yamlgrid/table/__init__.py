"""Merge table package for yamlgrid.

Provides MergeTable, the row-per-key, column-per-file model that holds the
edited state of every open file.
"""

from .merge_table import ChangeCallback, MergeTable

__all__ = ["ChangeCallback", "MergeTable"]
