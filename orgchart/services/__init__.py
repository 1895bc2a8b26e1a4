"""
Service layer for orgchart.
Contains the hierarchy engine, the data source, the store, rendering, and persistence.
"""

from .hierarchy import (
    Record,
    TreeNode,
    BuildDiagnostics,
    HierarchyError,
    DuplicateRecordError,
    InvalidRecordError,
    ManagerCycleError,
    build_forest,
    remove_node,
    remove_by_id,
    find_cycles,
    validate_records,
)
from .source import DirectoryClient, FileDirectory, get_directory, load_records
from .store import HierarchyStore
from .persistence import DatabaseManager
from .tree_renderer import render_forest_html, format_forest_text

__all__ = [
    'Record',
    'TreeNode',
    'BuildDiagnostics',
    'HierarchyError',
    'DuplicateRecordError',
    'InvalidRecordError',
    'ManagerCycleError',
    'build_forest',
    'remove_node',
    'remove_by_id',
    'find_cycles',
    'validate_records',
    'DirectoryClient',
    'FileDirectory',
    'get_directory',
    'load_records',
    'HierarchyStore',
    'DatabaseManager',
    'render_forest_html',
    'format_forest_text'
]
