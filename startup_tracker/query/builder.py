"""
Parameterized SQL composition for listing resources.

A QueryBuilder collects predicate fragments, each with its own named bind
parameters, and renders a count statement and a paged data statement that
share the same WHERE clause and the same parameter mapping.

Only three kinds of text ever reach the SQL string:
- fragments written in this package
- column expressions taken from a resource's sort allow-list
- the keywords ASC / DESC

Client values are always bind parameters.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from startup_tracker.query.params import ORDERS, ListingParams


@dataclass(frozen=True)
class ResourceSchema:
    """
    Static SQL shape of one listing resource.

    Attributes:
        name: Resource name, also the cache key prefix
        select_sql: SELECT ... FROM ... (joins included) for the data statement
        count_sql: SELECT COUNT(*) ... FROM ... for the count statement
        sorts: Allow-list of client sort key -> trusted column expression
        default_sort: Sort key used when the client's is not allowed
        default_order: "ASC" or "DESC"
        tiebreak: Unique column appended to every ORDER BY
        secondary: (expression, order) keys applied after the client's sort
            and before the tiebreak, skipped when equal to the sort
    """
    name: str
    select_sql: str
    count_sql: str
    sorts: Mapping[str, str]
    default_sort: str
    default_order: str
    tiebreak: str
    secondary: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        if self.default_sort not in self.sorts:
            raise ValueError(f"{self.name}: default sort {self.default_sort!r} not in allow-list")
        if self.default_order not in ORDERS:
            raise ValueError(f"{self.name}: bad default order {self.default_order!r}")
        for expr, order in self.secondary:
            if order not in ORDERS:
                raise ValueError(f"{self.name}: bad order {order!r} for secondary key {expr!r}")


@dataclass
class BuiltQuery:
    """Count and data statements plus their shared bind parameters."""
    count_sql: str
    data_sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def count_params(self) -> Dict[str, Any]:
        """Parameters for the count statement (no paging binds)."""
        return {k: v for k, v in self.params.items() if k not in ("limit", "offset")}


def is_present(value: Any) -> bool:
    """A filter value contributes a predicate unless it is None, "" or False."""
    return value is not None and value != "" and value is not False


class QueryBuilder:
    """
    Accumulates predicates for one resource.

    Predicates are joined with AND in the order they were added. Parameter
    names must be unique across predicates.
    """

    def __init__(self, schema: ResourceSchema):
        self.schema = schema
        self._predicates: List[str] = []
        self._params: Dict[str, Any] = {}

    def add(self, fragment: str, **params: Any) -> "QueryBuilder":
        """Add a predicate fragment and the parameters it references."""
        for name in params:
            if name in self._params or name in ("limit", "offset"):
                raise ValueError(f"Bind parameter {name!r} already in use")
        self._predicates.append(fragment)
        self._params.update(params)
        return self

    def add_if(self, value: Any, fragment: str, **params: Any) -> "QueryBuilder":
        """Add the predicate only when value is present."""
        if is_present(value):
            self.add(fragment, **params)
        return self

    @property
    def predicates(self) -> List[str]:
        return list(self._predicates)

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    @property
    def where_sql(self) -> str:
        if not self._predicates:
            return ""
        return "WHERE " + " AND ".join(self._predicates)

    def order_sql(self, sort_expr: str, order: str) -> str:
        """
        ORDER BY with nulls last in both directions and a unique tiebreak.

        sort_expr must come from the schema's allow-list.
        """
        if sort_expr not in self.schema.sorts.values():
            raise ValueError(f"Sort expression {sort_expr!r} is not allow-listed")
        if order not in ORDERS:
            raise ValueError(f"Bad sort order {order!r}")
        tiebreak = self.schema.tiebreak
        if sort_expr == tiebreak:
            return f"ORDER BY {sort_expr} {order}"
        keys = [f"({sort_expr} IS NULL)", f"{sort_expr} {order}"]
        for expr, direction in self.schema.secondary:
            if expr != sort_expr:
                keys.extend([f"({expr} IS NULL)", f"{expr} {direction}"])
        keys.append(f"{tiebreak} ASC")
        return "ORDER BY " + ", ".join(keys)

    def build(self, listing: ListingParams, paged: bool = True) -> BuiltQuery:
        """
        Render count and data statements.

        With paged=False the data statement has LIMIT but no OFFSET.
        """
        where = self.where_sql
        count_sql = f"{self.schema.count_sql} {where}".strip()

        params = dict(self._params)
        parts = [self.schema.select_sql]
        if where:
            parts.append(where)
        parts.append(self.order_sql(listing.sort_expr, listing.order))
        if paged:
            parts.append("LIMIT :limit OFFSET :offset")
            params["limit"] = listing.limit
            params["offset"] = listing.offset
        else:
            parts.append("LIMIT :limit")
            params["limit"] = listing.limit

        return BuiltQuery(count_sql=count_sql, data_sql="\n".join(parts), params=params)


def builder_for(schema: ResourceSchema, predicates: Optional[List[tuple]] = None) -> QueryBuilder:
    """
    Create a builder and apply (value, fragment, params) triples in order.
    """
    builder = QueryBuilder(schema)
    for value, fragment, params in predicates or []:
        builder.add_if(value, fragment, **params)
    return builder
