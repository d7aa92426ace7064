"""
In-memory document store (non-persistent development mode).

Documents live in plain dictionaries keyed by generated identifiers and
vanish when the process exits. The store understands the subset of the
MongoDB query language the services use:

- filters:  $and $or $eq $ne $gt $gte $lt $lte $in $nin $regex $options $exists
- updates:  $set $unset $inc $push ($each)
- pipeline: $match $group $sort $skip $limit $bucket $count
- group accumulators: $sum $avg $min $max, date parts: $year $month

There is no locking: concurrent read-modify-write sequences can interleave.
"""

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging
import re

from app.db.store import (
    Collection,
    Document,
    DocumentStore,
    SortSpec,
    stamp_insert,
    stamp_update,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

def _resolve(doc: Any, path: str) -> List[Any]:
    """
    Values found at a dotted path.

    Arrays met along the way fan out, so "activities.type" yields the
    type of every activity. A missing path yields [].
    """
    current = [doc]
    for part in path.split("."):
        found = []
        for value in current:
            if isinstance(value, dict):
                if part in value:
                    found.append(value[part])
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict) and part in item:
                        found.append(item[part])
        current = found
    return current


def _expand(values: Iterable[Any]) -> List[Any]:
    """Candidate values plus the elements of any array candidate."""
    expanded = []
    for value in values:
        expanded.append(value)
        if isinstance(value, list):
            expanded.extend(value)
    return expanded


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _comparable(a: Any, b: Any) -> bool:
    if _is_number(a) and _is_number(b):
        return True
    if isinstance(a, str) and isinstance(b, str):
        return True
    return isinstance(a, datetime) and isinstance(b, datetime)


def _equals(candidates: List[Any], expected: Any) -> bool:
    if expected is None:
        return not candidates or any(c is None for c in candidates)
    expected = _normalize(expected)
    return any(_normalize(c) == expected for c in _expand(candidates))


def _regex_matches(candidates: List[Any], pattern: Any, options: str = "") -> bool:
    if not isinstance(pattern, re.Pattern):
        flags = re.IGNORECASE if "i" in options else 0
        pattern = re.compile(pattern, flags)
    return any(isinstance(c, str) and pattern.search(c) for c in _expand(candidates))


_COMPARATORS = {
    "$gt": lambda a, b: a > b,
    "$gte": lambda a, b: a >= b,
    "$lt": lambda a, b: a < b,
    "$lte": lambda a, b: a <= b,
}


def _match_operators(candidates: List[Any], ops: Document) -> bool:
    for op, operand in ops.items():
        if op == "$options":
            continue
        if op == "$eq":
            ok = _equals(candidates, operand)
        elif op == "$ne":
            ok = not _equals(candidates, operand)
        elif op in _COMPARATORS:
            compare = _COMPARATORS[op]
            operand = _normalize(operand)
            ok = any(
                _comparable(c, operand) and compare(_normalize(c), operand)
                for c in _expand(candidates)
            )
        elif op == "$in":
            ok = any(
                _regex_matches(candidates, item) if isinstance(item, re.Pattern) else _equals(candidates, item)
                for item in operand
            )
        elif op == "$nin":
            ok = not any(_equals(candidates, item) for item in operand)
        elif op == "$exists":
            ok = bool(candidates) == bool(operand)
        elif op == "$regex":
            ok = _regex_matches(candidates, operand, ops.get("$options", ""))
        else:
            raise ValueError(f"Unsupported query operator: {op}")
        if not ok:
            return False
    return True


def matches(doc: Document, filter: Optional[Document]) -> bool:
    """True when the document satisfies the filter document."""
    for key, condition in (filter or {}).items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise ValueError(f"Unsupported top-level operator: {key}")
        else:
            candidates = _resolve(doc, key)
            if isinstance(condition, re.Pattern):
                ok = _regex_matches(candidates, condition)
            elif isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
                ok = _match_operators(candidates, condition)
            else:
                ok = _equals(candidates, condition)
            if not ok:
                return False
    return True


# MongoDB orders mixed types: null < numbers < strings < objects < arrays < booleans < dates
def _sort_key(value: Any):
    value = _normalize(value)
    if value is None:
        return (0, 0)
    if _is_number(value):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, dict):
        return (3, str(sorted(value.items())))
    if isinstance(value, list):
        return (4, str(value))
    if isinstance(value, bool):
        return (5, value)
    if isinstance(value, datetime):
        return (6, value.timestamp())
    return (7, str(value))


def sort_documents(docs: List[Document], sort: Optional[SortSpec]) -> List[Document]:
    """Multi-key sort; list.sort is stable so keys are applied last to first."""
    ordered = list(docs)
    for field, direction in reversed(list(sort or [])):
        def key(doc, field=field):
            values = _resolve(doc, field)
            return _sort_key(values[0] if values else None)
        ordered.sort(key=key, reverse=direction < 0)
    return ordered


def project(doc: Document, projection: Optional[Document]) -> Document:
    if not projection:
        return doc
    include = {k for k, v in projection.items() if v and k != "_id"}
    if include:
        shown = {k.split(".")[0] for k in include}
        result = {k: v for k, v in doc.items() if k in shown}
        if projection.get("_id", 1):
            result["_id"] = doc.get("_id")
        return result
    hidden = {k for k, v in projection.items() if not v}
    return {k: v for k, v in doc.items() if k not in hidden}


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------

def _parent_for(doc: Document, path: str, create: bool):
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        if part not in current or not isinstance(current[part], dict):
            if not create:
                return None, parts[-1]
            current[part] = {}
        current = current[part]
    return current, parts[-1]


def apply_update(doc: Document, update: Document) -> None:
    """Apply an update document in place."""
    for op, fields in update.items():
        if op == "$set":
            for path, value in fields.items():
                parent, leaf = _parent_for(doc, path, create=True)
                parent[leaf] = deepcopy(value)
        elif op == "$unset":
            for path in fields:
                parent, leaf = _parent_for(doc, path, create=False)
                if parent is not None:
                    parent.pop(leaf, None)
        elif op == "$inc":
            for path, amount in fields.items():
                parent, leaf = _parent_for(doc, path, create=True)
                parent[leaf] = (parent.get(leaf) or 0) + amount
        elif op == "$push":
            for path, value in fields.items():
                parent, leaf = _parent_for(doc, path, create=True)
                items = value["$each"] if isinstance(value, dict) and "$each" in value else [value]
                parent.setdefault(leaf, []).extend(deepcopy(items))
        else:
            raise ValueError(f"Unsupported update operator: {op}")


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _evaluate(doc: Document, expr: Any) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        values = _resolve(doc, expr[1:])
        return values[0] if values else None
    if isinstance(expr, dict):
        if len(expr) == 1:
            (op, arg), = expr.items()
            if op == "$year":
                value = _evaluate(doc, arg)
                return value.year if isinstance(value, datetime) else None
            if op == "$month":
                value = _evaluate(doc, arg)
                return value.month if isinstance(value, datetime) else None
        return {k: _evaluate(doc, v) for k, v in expr.items()}
    return expr


def _freeze(value: Any):
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _accumulate(docs: List[Document], spec: Document) -> Any:
    (op, expr), = spec.items()
    values = [_evaluate(doc, expr) for doc in docs]
    numbers = [v for v in values if _is_number(v)]
    if op == "$sum":
        return sum(numbers)
    if op == "$avg":
        return sum(numbers) / len(numbers) if numbers else None
    if op == "$min":
        present = [v for v in values if v is not None]
        return min(present, key=_sort_key) if present else None
    if op == "$max":
        present = [v for v in values if v is not None]
        return max(present, key=_sort_key) if present else None
    raise ValueError(f"Unsupported accumulator: {op}")


def _group(docs: List[Document], spec: Document) -> List[Document]:
    groups: Dict[Any, List[Document]] = {}
    keys: Dict[Any, Any] = {}
    for doc in docs:
        key = _evaluate(doc, spec["_id"])
        frozen = _freeze(key)
        groups.setdefault(frozen, []).append(doc)
        keys.setdefault(frozen, key)
    results = []
    for frozen, members in groups.items():
        row = {"_id": keys[frozen]}
        for name, acc in spec.items():
            if name != "_id":
                row[name] = _accumulate(members, acc)
        results.append(row)
    return results


def _bucket(docs: List[Document], spec: Document) -> List[Document]:
    boundaries = spec["boundaries"]
    output = spec.get("output") or {"count": {"$sum": 1}}
    default = spec.get("default")
    buckets: Dict[Any, List[Document]] = {}
    for doc in docs:
        value = _evaluate(doc, spec["groupBy"])
        bucket_id = default
        if _is_number(value):
            for lower, upper in zip(boundaries, boundaries[1:]):
                if lower <= value < upper:
                    bucket_id = lower
                    break
        if bucket_id is None and "default" not in spec:
            raise ValueError(f"$bucket value {value!r} outside boundaries and no default given")
        buckets.setdefault(bucket_id, []).append(doc)

    ordered = [b for b in boundaries if b in buckets]
    if "default" in spec and default in buckets and default not in ordered:
        ordered.append(default)
    results = []
    for bucket_id in ordered:
        row = {"_id": bucket_id}
        for name, acc in output.items():
            row[name] = _accumulate(buckets[bucket_id], acc)
        results.append(row)
    return results


def run_pipeline(docs: List[Document], pipeline: List[Document]) -> List[Document]:
    rows = list(docs)
    for stage in pipeline:
        (name, spec), = stage.items()
        if name == "$match":
            rows = [row for row in rows if matches(row, spec)]
        elif name == "$group":
            rows = _group(rows, spec)
        elif name == "$sort":
            rows = sort_documents(rows, list(spec.items()))
        elif name == "$skip":
            rows = rows[spec:]
        elif name == "$limit":
            rows = rows[:spec]
        elif name == "$bucket":
            rows = _bucket(rows, spec)
        elif name == "$count":
            rows = [{spec: len(rows)}]
        else:
            raise ValueError(f"Unsupported pipeline stage: {name}")
    return rows


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class MemoryCollection(Collection):
    """Documents kept in insertion order in a dict keyed by _id."""

    def __init__(self, name: str):
        self.name = name
        self._docs: Dict[str, Document] = {}

    def _matching(self, filter: Optional[Document]) -> List[Document]:
        return [doc for doc in self._docs.values() if matches(doc, filter)]

    def insert_one(self, doc: Document) -> Document:
        stored = stamp_insert(deepcopy(doc))
        if stored["_id"] in self._docs:
            raise ValueError(f"Duplicate _id {stored['_id']} in {self.name}")
        self._docs[stored["_id"]] = stored
        return deepcopy(stored)

    def find_one(self, filter: Document, projection: Optional[Document] = None) -> Optional[Document]:
        for doc in self._docs.values():
            if matches(doc, filter):
                return project(deepcopy(doc), projection)
        return None

    def find(
        self,
        filter: Optional[Document] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
        projection: Optional[Document] = None,
    ) -> List[Document]:
        docs = sort_documents(self._matching(filter), sort)
        docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return [project(deepcopy(doc), projection) for doc in docs]

    def count(self, filter: Optional[Document] = None) -> int:
        return len(self._matching(filter))

    def update_one(self, filter: Document, update: Document) -> Optional[Document]:
        for doc in self._docs.values():
            if matches(doc, filter):
                apply_update(doc, stamp_update(update))
                return deepcopy(doc)
        return None

    def update_many(self, filter: Document, update: Document) -> int:
        targets = self._matching(filter)
        for doc in targets:
            apply_update(doc, stamp_update(update))
        return len(targets)

    def delete_one(self, filter: Document) -> bool:
        for doc_id, doc in self._docs.items():
            if matches(doc, filter):
                del self._docs[doc_id]
                return True
        return False

    def delete_many(self, filter: Optional[Document] = None) -> int:
        targets = [doc["_id"] for doc in self._matching(filter)]
        for doc_id in targets:
            del self._docs[doc_id]
        return len(targets)

    def aggregate(self, pipeline: List[Document]) -> List[Document]:
        return deepcopy(run_pipeline(list(self._docs.values()), pipeline))


class MemoryStore(DocumentStore):
    """All collections in process memory; nothing survives a restart."""

    backend = "memory"

    def __init__(self):
        self._collections: Dict[str, MemoryCollection] = {}
        logger.warning("Using the in-memory store - data is lost on restart")

    def collection(self, name: str) -> Collection:
        if name not in self._collections:
            self._collections[name] = MemoryCollection(name)
        return self._collections[name]

    def ping(self) -> bool:
        return True
