"""
Process-wide holder of the directory relation and the forest derived from it.
"""
import logging
import threading
from typing import Hashable, List, Optional, Sequence

from orgchart.services.hierarchy import (
    BuildDiagnostics,
    Record,
    TreeNode,
    build_forest,
    remove_by_id,
)


class HierarchyStore:
    """Keeps the relation as source of truth and rebuilds the forest on every change.

    The forest is never patched: each update builds a new one from the new
    relation and swaps relation, forest and diagnostics together.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[Record] = []
        self._forest: List[TreeNode] = []
        self._diagnostics = BuildDiagnostics()

    @property
    def records(self) -> List[Record]:
        return list(self._records)

    @property
    def forest(self) -> List[TreeNode]:
        return list(self._forest)

    @property
    def diagnostics(self) -> BuildDiagnostics:
        return BuildDiagnostics(orphans=list(self._diagnostics.orphans))

    def get(self, record_id: Hashable) -> Optional[Record]:
        return next((r for r in self._records if r.id == record_id), None)

    def set_records(self, records: Sequence[Record]) -> List[TreeNode]:
        """Replaces the relation. A HierarchyError leaves the previous state in place."""
        with self._lock:
            return self._swap(list(records))

    def load(self, directory) -> List[TreeNode]:
        """Fetches the relation from a data source and makes it current."""
        records = directory.fetch_records()
        forest = self.set_records(records)
        logging.info(f"Loaded hierarchy with {len(records)} users and {len(forest)} roots")
        return forest

    def remove(self, record_id: Hashable) -> List[TreeNode]:
        """Removes one person, re-parenting their reports, and rebuilds the forest."""
        with self._lock:
            before = len(self._records)
            forest = self._swap(remove_by_id(self._records, record_id))
            if len(self._records) < before:
                logging.info(f"Removed user {record_id} from hierarchy")
            return forest

    def clear(self):
        with self._lock:
            self._records = []
            self._forest = []
            self._diagnostics = BuildDiagnostics()

    def _swap(self, records: List[Record]) -> List[TreeNode]:
        diagnostics = BuildDiagnostics()
        forest = build_forest(records, diagnostics)
        if diagnostics.orphans:
            logging.warning(f"Users with unknown managers shown as roots: {diagnostics.orphans}")
        self._records, self._forest, self._diagnostics = records, forest, diagnostics
        return list(forest)
