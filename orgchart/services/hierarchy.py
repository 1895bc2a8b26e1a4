"""
Builds the organization tree from a flat list of user records and
removes people from it while keeping their reports attached.
"""
import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple


# Wire names used by the directory payload
ID_KEY = "id"
MANAGER_KEY = "managerId"


def is_hashable(value: Any) -> bool:
    """True if the value can be used as a mapping key (tuples of lists cannot)."""
    try:
        hash(value)
    except TypeError:
        return False
    return True


# Data models
@dataclass(frozen=True)
class Record:
    """A single person in the flat directory relation.

    Records are compared by value but are not hashable, since `attributes`
    is a dict. Each Record owns its own copy of that dict.
    """
    id: Hashable
    manager_id: Optional[Hashable] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    __hash__ = None

    def __post_init__(self):
        object.__setattr__(self, "attributes", dict(self.attributes))


@dataclass
class TreeNode:
    """A record placed in the derived tree, with its direct reports."""
    id: Hashable
    manager_id: Optional[Hashable] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: List['TreeNode'] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Record) -> 'TreeNode':
        return cls(id=record.id, manager_id=record.manager_id, attributes=dict(record.attributes))

    def to_record(self) -> Record:
        return Record(id=self.id, manager_id=self.manager_id, attributes=self.attributes)


@dataclass
class BuildDiagnostics:
    """Collects what build_forest silently absorbed."""
    orphans: List[Hashable] = field(default_factory=list)


# Errors
class HierarchyError(ValueError):
    """Base class for relations that cannot be turned into a forest."""


class InvalidRecordError(HierarchyError):
    def __init__(self, ids: List[Any]):
        self.ids = ids
        super().__init__(f"Record ids must be hashable: {', '.join(map(repr, ids))}")


class DuplicateRecordError(HierarchyError):
    def __init__(self, ids: List[Hashable]):
        self.ids = ids
        super().__init__(f"Duplicate record ids: {', '.join(map(str, ids))}")


class ManagerCycleError(HierarchyError):
    def __init__(self, cycles: List[List[Hashable]]):
        self.cycles = cycles
        described = "; ".join(" -> ".join(map(str, cycle)) for cycle in cycles)
        super().__init__(f"Manager cycle detected: {described}")


def has_manager(manager_id: Optional[Hashable]) -> bool:
    """A falsy manager id (None, 0, empty string) means the record is a root."""
    return bool(manager_id)


# Wire conversion
def record_from_dict(data: Dict[str, Any]) -> Record:
    """Builds a Record from a directory entry; everything but id/managerId is kept opaque.

    A managerId that can never match an id (a list, an object) is kept as
    is and ends up treated as an unknown manager.
    """
    if ID_KEY not in data:
        raise ValueError(f"Directory entry has no '{ID_KEY}': {data!r}")
    if not is_hashable(data[ID_KEY]):
        raise ValueError(f"Directory entry id must be a scalar, got {data[ID_KEY]!r}")
    attributes = {k: v for k, v in data.items() if k not in (ID_KEY, MANAGER_KEY)}
    manager_id = data.get(MANAGER_KEY)
    return Record(id=data[ID_KEY], manager_id=manager_id if has_manager(manager_id) else None,
                  attributes=attributes)


def record_to_dict(record) -> Dict[str, Any]:
    data = {ID_KEY: record.id}
    if has_manager(record.manager_id):
        data[MANAGER_KEY] = record.manager_id
    data.update(record.attributes)
    return data


# Validation
def find_duplicate_ids(records: Iterable[Record]) -> List[Hashable]:
    seen = set()
    duplicates = []
    for record in records:
        if record.id in seen and record.id not in duplicates:
            duplicates.append(record.id)
        seen.add(record.id)
    return duplicates


def _resolvable_manager(record: Record) -> Optional[Hashable]:
    """The manager id to look up, or None for roots and unhashable references."""
    if not has_manager(record.manager_id) or not is_hashable(record.manager_id):
        return None
    return record.manager_id


def find_cycles(records: Sequence[Record]) -> List[List[Hashable]]:
    """Returns every manager cycle in the relation, each as a list of ids.

    Each record's chain of managers is walked once; records already known to
    end at a root (or a dangling reference) are not walked again, so the
    whole check is linear in the number of records. Ids must be unique.
    """
    manager_of = {record.id: _resolvable_manager(record) for record in records}
    done = set()
    cycles = []

    for record in records:
        if record.id in done:
            continue
        path: List[Hashable] = []
        position: Dict[Hashable, int] = {}
        current = record.id
        while current in manager_of and current not in done:
            if current in position:
                cycles.append(path[position[current]:])
                break
            position[current] = len(path)
            path.append(current)
            manager_id = manager_of[current]
            if manager_id is None:
                break
            current = manager_id
        done.update(path)

    return cycles


def validate_records(records: Sequence[Record]) -> None:
    """Raises a HierarchyError for unhashable ids, repeated ids, or manager cycles."""
    invalid = [record.id for record in records if not is_hashable(record.id)]
    if invalid:
        raise InvalidRecordError(invalid)
    duplicates = find_duplicate_ids(records)
    if duplicates:
        raise DuplicateRecordError(duplicates)
    cycles = find_cycles(records)
    if cycles:
        raise ManagerCycleError(cycles)


# Forest builder
def build_forest(records: Sequence[Record], diagnostics: Optional[BuildDiagnostics] = None) -> List[TreeNode]:
    """Turns the flat relation into a list of root nodes with nested children.

    Records without a manager, and records whose manager is not in the
    relation, become roots. Root and sibling order follow input order.
    """
    validate_records(records)

    # Fresh node for every record, so the input is never touched
    nodes: Dict[Hashable, TreeNode] = {record.id: TreeNode.from_record(record) for record in records}
    roots: List[TreeNode] = []

    for record in records:
        node = nodes[record.id]
        if not has_manager(record.manager_id):
            roots.append(node)
            continue

        manager_id = _resolvable_manager(record)
        parent = nodes.get(manager_id) if manager_id is not None else None
        if parent is not None:
            parent.children.append(node)
        else:
            logging.debug(f"Record {record.id} references unknown manager {record.manager_id!r}, treating as root")
            roots.append(node)
            if diagnostics is not None:
                diagnostics.orphans.append(record.id)

    return roots


# Node remover
def remove_node(records: Sequence[Record], target) -> List[Record]:
    """Returns a new relation without `target`, its reports moved up to target's manager.

    `target` may be a Record or a TreeNode; only its id and manager_id are used.
    Removing an id that is not in the relation returns an unchanged copy.
    """
    if not any(record.id == target.id for record in records):
        logging.debug(f"Record {target.id} not in relation, nothing to remove")
        return list(records)

    new_manager = target.manager_id if has_manager(target.manager_id) else None
    result = []
    for record in records:
        if record.id == target.id:
            continue
        if has_manager(record.manager_id) and record.manager_id == target.id:
            record = replace(record, manager_id=new_manager)
        result.append(record)
    return result


def remove_by_id(records: Sequence[Record], record_id: Hashable) -> List[Record]:
    """Looks up the record with `record_id` and removes it with remove_node."""
    target = next((record for record in records if record.id == record_id), None)
    if target is None:
        logging.debug(f"Record {record_id} not in relation, nothing to remove")
        return list(records)
    return remove_node(records, target)


# Forest queries
def iter_nodes(forest: List[TreeNode]) -> Iterator[Tuple[TreeNode, int]]:
    """Walks the forest depth-first, yielding (node, depth) in display order."""
    stack = [(node, 0) for node in reversed(forest)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((child, depth + 1) for child in reversed(node.children))


def count_nodes(forest: List[TreeNode]) -> int:
    return sum(1 for _ in iter_nodes(forest))


def find_node(forest: List[TreeNode], record_id: Hashable) -> Optional[TreeNode]:
    return next((node for node, _ in iter_nodes(forest) if node.id == record_id), None)


def forest_to_dicts(forest: List[TreeNode]) -> List[Dict[str, Any]]:
    """Convert a forest to nested dicts for JSON serialization."""
    result: List[Dict[str, Any]] = []
    # Each entry carries the list its dict belongs in, so depth costs no recursion
    stack = [(node, result) for node in reversed(forest)]
    while stack:
        node, siblings = stack.pop()
        data = {**record_to_dict(node), "children": []}
        siblings.append(data)
        stack.extend((child, data["children"]) for child in reversed(node.children))
    return result


def forest_to_json(forest: List[TreeNode]) -> str:
    """
    Serialize a forest to the same JSON that forest_to_dicts would give.

    The nesting is written out with an explicit stack, so a chain of any
    depth serializes; json.dumps only ever sees one record at a time.
    """
    parts: List[str] = []
    stack: List[Any] = ["]"]
    _push_json_nodes(stack, forest)
    parts.append("[")
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        data = record_to_dict(item)
        data.pop("children", None)
        parts.append(json.dumps(data)[:-1] + ', "children": [')
        stack.append("]}")
        _push_json_nodes(stack, item.children)
    return "".join(parts)


def _push_json_nodes(stack: List[Any], nodes: List[TreeNode]) -> None:
    for i, node in reversed(list(enumerate(nodes))):
        stack.append(node)
        if i:
            stack.append(", ")


def get_initials(first_name: str, last_name: str) -> str:
    """Uppercase first letter of each name, e.g. ("john", "doe") -> "JD"."""
    return f"{first_name[:1]}{last_name[:1]}".upper()
