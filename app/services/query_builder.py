"""
Query-string to store-query translation for list endpoints.

Turns the raw query parameters of a list request, e.g.

    ?search=villa&propertyType=House&price[gte]=100000&sort=-price&page=2

into a ListQuery holding a store filter, a sort order, page bounds and a
projection, and shapes the paginated response envelope.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple
import re

from app.db.store import Collection, Document

# Parameters that control the query instead of filtering on a field
RESERVED_PARAMS = ("select", "sort", "page", "limit", "search")

# price[gte]=100 -> ("price", "$gte")
_OPERATOR_KEY = re.compile(r"^(?P<field>[\w.]+)\[(?P<op>gt|gte|lt|lte|in)\]$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")


def is_operator_path(key: str) -> bool:
    """True when any dotted segment of a parameter name starts with "$"."""
    return any(part.startswith("$") for part in key.split("."))


@dataclass(frozen=True)
class QueryFields:
    """
    Per-entity rules for building list queries.

    search_fields: text fields OR-ed together by ?search=
    categorical_fields: equality filters matched case-insensitively
    numeric_fields / boolean_fields / date_fields: how raw values are coerced
    location_fields: text fields OR-ed together by ?location=
    range_aliases: shorthand params, e.g. minPrice -> ("price", "$gte")
    """
    search_fields: Tuple[str, ...]
    default_limit: int
    categorical_fields: FrozenSet[str] = frozenset()
    numeric_fields: FrozenSet[str] = frozenset()
    boolean_fields: FrozenSet[str] = frozenset()
    date_fields: FrozenSet[str] = frozenset({"createdAt", "updatedAt"})
    location_fields: Tuple[str, ...] = ()
    range_aliases: Mapping[str, Tuple[str, str]] = field(default_factory=dict)
    default_sort: Tuple[Tuple[str, int], ...] = (("createdAt", -1),)


PROPERTY_QUERY = QueryFields(
    search_fields=("title", "description", "address.city", "address.state", "address.street"),
    default_limit=12,
    categorical_fields=frozenset({"propertyType", "status", "listingType"}),
    numeric_fields=frozenset({
        "price", "bedrooms", "bathrooms", "area", "lotSize", "yearBuilt",
        "parking", "views", "favorites", "inquiries",
    }),
    boolean_fields=frozenset({"featured"}),
    location_fields=("address.city", "address.state", "address.street"),
    range_aliases={"minPrice": ("price", "$gte"), "maxPrice": ("price", "$lte")},
)

LEAD_QUERY = QueryFields(
    search_fields=("name", "email", "phone"),
    default_limit=20,
    categorical_fields=frozenset({"status", "source", "priority", "interestedIn", "timeline"}),
    numeric_fields=frozenset({"budget.min", "budget.max"}),
    date_fields=frozenset({"createdAt", "updatedAt", "lastContactedAt", "nextFollowUpAt"}),
)


@dataclass
class ListQuery:
    """A fully translated list request."""
    filter: Document
    sort: List[Tuple[str, int]]
    page: int
    limit: int
    projection: Optional[Document] = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> Dict[str, Dict[str, int]]:
        """Next/prev page descriptors, present only when that page exists."""
        links = {}
        if self.page * self.limit < total:
            links["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.skip > 0:
            links["prev"] = {"page": self.page - 1, "limit": self.limit}
        return links

    def envelope(self, data: List[Any], total: int) -> Dict[str, Any]:
        return {
            "success": True,
            "count": len(data),
            "total": total,
            "totalPages": ceil(total / self.limit) if self.limit else 0,
            "currentPage": self.page,
            "pagination": self.pagination(total),
            "data": data,
        }


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """Positive integer from a query value; anything malformed gives the default."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parse_sort(raw: Optional[str], default: Tuple[Tuple[str, int], ...]) -> List[Tuple[str, int]]:
    """
    "-price,createdAt" -> [("price", -1), ("createdAt", 1), ("_id", 1)]

    A trailing _id key breaks ties so pages never overlap.
    """
    keys = []
    for token in re.split(r"[,\s]+", raw or ""):
        name = token[1:] if token.startswith("-") else token.lstrip("+")
        if not name or is_operator_path(name):
            continue
        keys.append((name, -1 if token.startswith("-") else 1))
    if not keys:
        keys = list(default)
    if not any(name == "_id" for name, _ in keys):
        keys.append(("_id", keys[-1][1]))
    return keys


def parse_select(raw: Optional[str]) -> Optional[Document]:
    """ "title,price" -> {"title": 1, "price": 1}; "-description" excludes. """
    fields = [f for f in re.split(r"[,\s]+", raw or "") if f.lstrip("-") and not is_operator_path(f.lstrip("-"))]
    if not fields:
        return None
    included = {f: 1 for f in fields if not f.startswith("-")}
    if included:
        return included
    return {f[1:]: 0 for f in fields}


def _coerce_number(value: str) -> Any:
    # Unparseable values pass through untouched; the store decides what matches
    if _NUMBER.match(value.strip()):
        number = float(value)
        return int(number) if number.is_integer() and "." not in value else number
    return value


def parse_date(value: str) -> Any:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _coerce(fields: QueryFields, field_name: str, value: str) -> Any:
    if field_name in fields.boolean_fields and value.lower() in ("true", "false"):
        return value.lower() == "true"
    if field_name in fields.date_fields:
        return parse_date(value)
    return _coerce_number(value)


def _equality(fields: QueryFields, field_name: str, value: str) -> Any:
    if field_name in fields.categorical_fields:
        return {"$regex": f"^{re.escape(value)}$", "$options": "i"}
    if field_name in fields.numeric_fields or field_name in fields.boolean_fields or field_name in fields.date_fields:
        return _coerce(fields, field_name, value)
    return value


def _is_operators(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(k.startswith("$") for k in value)


def _add_condition(conditions: Document, field_name: str, op: Optional[str], value: Any) -> None:
    # price=5&price[gt]=1 on the same field merge into one operator document
    condition = value if op is None else {op: value}
    existing = conditions.get(field_name)
    if existing is None:
        conditions[field_name] = condition
        return
    merged = dict(existing) if _is_operators(existing) else {"$eq": existing}
    merged.update(condition if _is_operators(condition) else {"$eq": condition})
    conditions[field_name] = merged


def _text_or(fields: Tuple[str, ...], text: str) -> Document:
    pattern = re.escape(text)
    return {"$or": [{name: {"$regex": pattern, "$options": "i"}} for name in fields]}


def build_filter(
    params: Mapping[str, str],
    fields: QueryFields,
    scope: Optional[Document] = None,
) -> Document:
    """
    Build the store filter for a list request.

    Every independent condition becomes its own clause and the clauses are
    AND-ed: the role scope first, then per-field equality/range filters,
    then the ?search= OR, then the ?location= OR. No clause can replace
    another, so user input never widens the scope. Parameter names that
    would address a store operator ($where, a.$ne) are dropped.

    Args:
        params: raw query parameters (name -> string value)
        fields: the entity's QueryFields
        scope: implicit role-scope clause, or None for elevated actors

    Returns:
        A filter document ({} when nothing filters)
    """
    clauses: List[Document] = []
    if scope:
        clauses.append(scope)

    conditions: Document = {}
    for key, raw in params.items():
        if key in RESERVED_PARAMS or is_operator_path(key) or (key == "location" and fields.location_fields):
            continue
        value = "" if raw is None else str(raw)
        if value == "":
            continue

        if key in fields.range_aliases:
            field_name, op = fields.range_aliases[key]
            _add_condition(conditions, field_name, op, _coerce(fields, field_name, value))
            continue

        operator_key = _OPERATOR_KEY.match(key)
        if operator_key:
            field_name, op = operator_key.group("field"), "$" + operator_key.group("op")
            if op == "$in":
                items = [_coerce(fields, field_name, item.strip()) for item in value.split(",") if item.strip()]
                _add_condition(conditions, field_name, op, items)
            else:
                _add_condition(conditions, field_name, op, _coerce(fields, field_name, value))
            continue

        _add_condition(conditions, key, None, _equality(fields, key, value))

    if conditions:
        clauses.append(conditions)

    search = (params.get("search") or "").strip()
    if search:
        clauses.append(_text_or(fields.search_fields, search))

    location = (params.get("location") or "").strip()
    if location and fields.location_fields:
        clauses.append(_text_or(fields.location_fields, location))

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_list_query(
    params: Mapping[str, str],
    fields: QueryFields,
    scope: Optional[Document] = None,
) -> ListQuery:
    """Translate raw query parameters into a ListQuery."""
    return ListQuery(
        filter=build_filter(params, fields, scope),
        sort=parse_sort(params.get("sort"), fields.default_sort),
        page=parse_positive_int(params.get("page"), 1),
        limit=parse_positive_int(params.get("limit"), fields.default_limit),
        projection=parse_select(params.get("select")),
    )


def run_list_query(collection: Collection, query: ListQuery) -> Tuple[List[Document], int]:
    """Execute a ListQuery; returns (page of documents, total matching)."""
    total = collection.count(query.filter)
    docs = collection.find(
        query.filter,
        sort=query.sort,
        skip=query.skip,
        limit=query.limit,
        projection=query.projection,
    )
    return docs, total
